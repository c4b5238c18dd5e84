"""Decoding of captured link-layer frames that carry DNS over UDP."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Union

from .errors import IgnorePacket
from .flags import DNSFlags, parse_flags
from .ip import (
    IPV4_TYPE,
    IPV6_TYPE,
    ipv4_dst,
    ipv4_payload,
    ipv4_protocol,
    ipv4_src,
    ipv6_dst,
    ipv6_next_header,
    ipv6_payload,
    ipv6_src,
)
from .sections import DNSSections, parse_sections

DLT_EN10MB = 1
DLT_LINUX_SLL = 113

UDP_PROTOCOL = 0x11
DNS_PORT = 53

_ETHER_TYPE_OFFSET = 12
_ETHER_HEADER_SIZE = 14
_COOKED_TYPE_OFFSET = 12
_UDP_HEADER_SIZE = 8
_DNS_HEADER = struct.Struct("!6H")
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_SEPARATOR = "=" * 20

Timestamp = Union[int, float, datetime]


@dataclass
class DNSPacket:
    """The fields of one captured DNS message that the monitor reports."""

    timestamp: str
    src_ip: str
    dst_ip: str
    protocol: str
    src_port: int
    dst_port: int
    identifier: int
    flags: DNSFlags
    question_count: int
    answer_count: int
    authority_count: int
    additional_count: int
    sections: DNSSections

    def format_simple(self) -> str:
        """One-line summary using the counts from the DNS header."""
        return (
            f"{self.timestamp} {self.src_ip} -> {self.dst_ip} "
            f"({self.flags.query_response} {self.question_count}/"
            f"{self.answer_count}/{self.authority_count}/{self.additional_count})"
        )

    def format_verbose(self) -> str:
        """Full multi-line listing of the message, ending with a separator."""
        flags = self.flags
        lines = [
            f"Timestamp: {self.timestamp}",
            f"SrcIP: {self.src_ip}",
            f"DstIP: {self.dst_ip}",
            f"SrcPort: {self.protocol}/{self.src_port}",
            f"DstPort: {self.protocol}/{self.dst_port}",
            f"Identifier: 0x{self.identifier:04X}",
            f"Flags: QR={int(flags.qr)}, OPCODE={flags.opcode}, AA={int(flags.aa)}, "
            f"TC={int(flags.tc)}, RD={int(flags.rd)}, RA={int(flags.ra)}, "
            f"AD={int(flags.ad)}, CD={int(flags.cd)}, RCODE={flags.rcode}",
        ]

        sections = self.sections
        for title, entries in (
            ("Question", sections.questions),
            ("Answer", sections.answers),
            ("Authority", sections.authorities),
            ("Additional", sections.additionals),
        ):
            if entries:
                lines.append("")
                lines.append(f"[{title} Section]")
                lines.extend(entry.format() for entry in entries)

        lines.append(_SEPARATOR)
        return "\n".join(lines)


def _format_timestamp(timestamp: Timestamp) -> str:
    if isinstance(timestamp, datetime):
        moment = timestamp.astimezone() if timestamp.tzinfo else timestamp
    else:
        moment = datetime.fromtimestamp(int(timestamp))
    return moment.strftime(_TIME_FORMAT)


def _unpack(layout: str, data: bytes, what: str) -> tuple[int, ...]:
    try:
        return struct.unpack_from(layout, data)
    except struct.error as exc:
        raise IgnorePacket(f"truncated {what}") from exc


def parse_packet(
    frame: bytes,
    timestamp: Timestamp,
    datalink: int,
    translations_file: str | Path | None = None,
    domains_file: str | Path | None = None,
) -> DNSPacket:
    """Decode a captured frame into a DNSPacket.

    ``datalink`` is the capture's link type (Ethernet or Linux cooked).
    Raises IgnorePacket for anything that is not DNS over UDP on IPv4/IPv6.
    """
    frame = bytes(frame)
    if datalink == DLT_EN10MB:
        type_offset = _ETHER_TYPE_OFFSET
        ip_offset = _ETHER_HEADER_SIZE
    else:
        type_offset = _COOKED_TYPE_OFFSET
        ip_offset = _COOKED_TYPE_OFFSET + 2

    (ether_type,) = _unpack("!H", frame[type_offset:], "link-layer header")
    ip_header = frame[ip_offset:]

    if ether_type == IPV6_TYPE:
        src_ip = ipv6_src(ip_header)
        dst_ip = ipv6_dst(ip_header)
        protocol = ipv6_next_header(ip_header)
        payload = ipv6_payload(ip_header)
    elif ether_type == IPV4_TYPE:
        src_ip = ipv4_src(ip_header)
        dst_ip = ipv4_dst(ip_header)
        protocol = ipv4_protocol(ip_header)
        payload = ipv4_payload(ip_header)
    else:
        raise IgnorePacket(f"unsupported network protocol 0x{ether_type:04X}")

    if protocol != UDP_PROTOCOL:
        raise IgnorePacket(f"unsupported transport protocol {protocol}")

    src_port, dst_port = _unpack("!HH", payload, "UDP header")
    if DNS_PORT not in (src_port, dst_port):
        raise IgnorePacket("not a DNS packet")

    message = payload[_UDP_HEADER_SIZE:]
    identifier, flag_word, qd, an, ns, ar = _unpack(
        _DNS_HEADER.format, message, "DNS header"
    )

    sections = parse_sections(
        message,
        _DNS_HEADER.size,
        qd,
        an,
        ns,
        ar,
        translations_file,
        domains_file,
    )

    return DNSPacket(
        timestamp=_format_timestamp(timestamp),
        src_ip=src_ip,
        dst_ip=dst_ip,
        protocol="UDP",
        src_port=src_port,
        dst_port=dst_port,
        identifier=identifier,
        flags=parse_flags(flag_word),
        question_count=qd,
        answer_count=an,
        authority_count=ns,
        additional_count=ar,
        sections=sections,
    )