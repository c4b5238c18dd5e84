# dnsmonitor

Watch DNS traffic and print a summary of every DNS message seen, either from a
saved pcap capture or from a live network interface. Optionally, every domain
name seen and every name-to-address translation (A and AAAA records) is
collected into text files.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Usage

```
dns-monitor (-i <interface> | -p <pcapfile>) [-v] [-d <domainsfile>] [-t <translationsfile>]
```

- `-i <interface>`: listen on a network interface (Linux only; usually needs
  elevated privileges). Capture stops on SIGINT, SIGTERM or SIGQUIT.
- `-p <pcapfile>`: read packets from a pcap file
- `-v`: verbose mode, printing all details of each DNS message
- `-d <domainsfile>`: write every unique domain name seen to this file
- `-t <translationsfile>`: write every unique `name address` translation to this file

Exactly one of `-i` and `-p` must be given. An unknown option, a second source,
or no source at all makes the command exit with status 1, as does a capture
source or output file that cannot be opened. The files given with `-d` and
`-t` are created, or emptied if they exist, before packets are read; names
are written without their trailing dot, and a line already in the file is not
written again.

Only UDP traffic to or from port 53 over IPv4 or IPv6 is reported. The
supported link layers are Ethernet and Linux cooked capture. The supported
record types are A, AAAA, NS, CNAME, SOA, MX and SRV; questions and records of
any other type are left out of the verbose listing.

### Simple output

```
2024-10-01 12:00:00 192.0.2.1 -> 192.0.2.53 (Q 1/0/0/0)
```

The counts are questions, answers, authority records and additional records,
as given in the DNS header. The timestamp is in local time.

### Verbose output

```
Timestamp: 2024-10-01 12:00:00
SrcIP: 192.0.2.53
DstIP: 192.0.2.1
SrcPort: UDP/53
DstPort: UDP/51000
Identifier: 0x1A2B
Flags: QR=1, OPCODE=0, AA=0, TC=0, RD=1, RA=1, AD=0, CD=0, RCODE=0

[Question Section]
example.com. IN A

[Answer Section]
example.com. 300 IN A 192.0.2.10
====================
```

## Library use

The parsing pieces can be used on their own:

- `dnsmonitor.packet.parse_packet(frame, timestamp, datalink, translations_file=None, domains_file=None)`
  turns a captured frame into a `DNSPacket`, whose `format_simple()` and
  `format_verbose()` give the text shown above. Frames that are not DNS over
  UDP raise `dnsmonitor.errors.IgnorePacket`.
- `dnsmonitor.sections.parse_sections` decodes the four sections of a raw DNS
  message into a `DNSSections` holding `DNSQuestion`, `DNSRecord`,
  `MXRecord`, `SOARecord` and `SRVRecord` entries; `read_name` decodes a
  (possibly compressed) domain name.
- `dnsmonitor.flags.parse_flags` splits the DNS header flag word into a `DNSFlags`.
- `dnsmonitor.capture.read_pcap(stream)` reads a pcap header from a binary
  stream and returns the link type together with an iterator of
  `(timestamp, frame)` pairs.
- `dnsmonitor.capture.run(args, out=None)` runs the whole monitoring loop for
  an `Arguments` value from `dnsmonitor.args.parse_arguments`.

## Limitations

- Only classic pcap files (microsecond or nanosecond timestamps, either byte
  order) are read; pcapng files are rejected.
- Live capture uses a raw packet socket and is available on Linux only.
- DNS over TCP is not reported.