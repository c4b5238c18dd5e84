import io
import socket
import struct
from unittest import mock

import pytest

from dnsmonitor.args import Arguments
from dnsmonitor.capture import live_capture, prepare_file, read_pcap, run
from dnsmonitor.errors import HandleSetUpError

SRC = bytes([192, 0, 2, 1])
DST = bytes([192, 0, 2, 53])


def encode_name(name):
    return b"".join(bytes([len(p)]) + p.encode() for p in name.split(".")) + b"\0"


def dns_query(name="example.com", qtype=1):
    return (
        struct.pack("!6H", 0x1234, 0x0100, 1, 0, 0, 0)
        + encode_name(name)
        + struct.pack("!HH", qtype, 1)
    )


def dns_response(name="example.com"):
    return (
        struct.pack("!6H", 0x1234, 0x8180, 1, 1, 0, 0)
        + encode_name(name)
        + struct.pack("!HH", 1, 1)
        + struct.pack("!HHHIH", 0xC00C, 1, 1, 300, 4)
        + bytes([192, 0, 2, 80])
    )


def ipv4_udp_frame(dns, sport=40000, dport=53):
    udp = struct.pack("!HHHH", sport, dport, 8 + len(dns), 0) + dns
    ip = struct.pack(
        "!BBHHHBBH4s4s", 0x45, 0, 20 + len(udp), 0, 0, 64, 17, 0, SRC, DST
    ) + udp
    return bytes(6) + bytes(6) + struct.pack("!H", 0x0800) + ip


def pcap_bytes(records, linktype=1, endian="<", magic=0xA1B2C3D4):
    data = struct.pack(endian + "IHHiIII", magic, 2, 4, 0, 0, 65535, linktype)
    for seconds, fraction, frame in records:
        data += struct.pack(endian + "IIII", seconds, fraction, len(frame), len(frame))
        data += frame
    return data


def write_pcap(tmp_path, records, linktype=1):
    path = tmp_path / "capture.pcap"
    path.write_bytes(pcap_bytes(records, linktype=linktype))
    return path


def test_prepare_file_truncates_existing(tmp_path):
    path = tmp_path / "domains.txt"
    path.write_text("old content\n")
    assert prepare_file(path) is True
    assert path.read_text() == ""


def test_prepare_file_creates_missing(tmp_path):
    path = tmp_path / "new.txt"
    assert prepare_file(path) is True
    assert path.exists()


def test_prepare_file_fails_for_directory(tmp_path, capsys):
    assert prepare_file(tmp_path) is False
    assert f"Cannot open {tmp_path}." in capsys.readouterr().err


@pytest.mark.parametrize("endian", ["<", ">"])
def test_read_pcap_both_byte_orders(endian):
    frames = [(1, 250000, b"abc"), (2, 0, b"defg")]
    datalink, records = read_pcap(io.BytesIO(pcap_bytes(frames, linktype=113, endian=endian)))
    assert datalink == 113
    assert list(records) == [(1.25, b"abc"), (2.0, b"defg")]


def test_read_pcap_nanosecond_resolution():
    data = pcap_bytes([(10, 500000000, b"x")], magic=0xA1B23C4D)
    _, records = read_pcap(io.BytesIO(data))
    assert list(records) == [(10.5, b"x")]


def test_read_pcap_bad_magic():
    with pytest.raises(HandleSetUpError):
        read_pcap(io.BytesIO(b"\x00" * 24))


def test_read_pcap_short_header():
    with pytest.raises(HandleSetUpError):
        read_pcap(io.BytesIO(b"\xd4\xc3\xb2\xa1"))


def test_read_pcap_stops_at_truncated_record():
    data = pcap_bytes([(1, 0, b"first"), (2, 0, b"second")])
    _, records = read_pcap(io.BytesIO(data[:-3]))
    assert list(records) == [(1.0, b"first")]


def test_run_simple_output(tmp_path):
    path = write_pcap(tmp_path, [(0, 0, ipv4_udp_frame(dns_query()))])
    out = io.StringIO()
    run(Arguments(pcap_file=str(path)), out)
    lines = out.getvalue().splitlines()
    assert len(lines) == 1
    assert lines[0].endswith("192.0.2.1 -> 192.0.2.53 (Q 1/0/0/0)")


def test_run_verbose_output(tmp_path):
    path = write_pcap(tmp_path, [(0, 0, ipv4_udp_frame(dns_query()))])
    out = io.StringIO()
    run(Arguments(pcap_file=str(path), verbose=True), out)
    text = out.getvalue()
    assert "Identifier: 0x1234" in text
    assert "[Question Section]\nexample.com. IN A\n" in text
    assert text.endswith("=" * 20 + "\n")


def test_run_ignores_non_dns_packets(tmp_path):
    frames = [
        (0, 0, ipv4_udp_frame(dns_query(), sport=40000, dport=80)),
        (1, 0, ipv4_udp_frame(dns_query())),
    ]
    path = write_pcap(tmp_path, frames)
    out = io.StringIO()
    run(Arguments(pcap_file=str(path)), out)
    assert len(out.getvalue().splitlines()) == 1


def test_run_writes_domains_and_translations(tmp_path):
    domains = tmp_path / "domains.txt"
    translations = tmp_path / "translations.txt"
    domains.write_text("stale\n")
    frames = [
        (0, 0, ipv4_udp_frame(dns_query())),
        (1, 0, ipv4_udp_frame(dns_response(), sport=53, dport=40000)),
    ]
    path = write_pcap(tmp_path, frames)
    out = io.StringIO()
    run(
        Arguments(
            pcap_file=str(path),
            domains_file=str(domains),
            translations_file=str(translations),
        ),
        out,
    )
    assert domains.read_text().splitlines() == ["example.com"]
    assert translations.read_text().splitlines() == ["example.com 192.0.2.80"]
    assert "(R 1/1/0/0)" in out.getvalue()


def test_run_unsupported_datalink(tmp_path, capsys):
    path = write_pcap(tmp_path, [], linktype=105)
    with pytest.raises(HandleSetUpError):
        run(Arguments(pcap_file=str(path)), io.StringIO())
    assert "Unsupported datalink" in capsys.readouterr().err


def test_run_missing_pcap_file(tmp_path, capsys):
    with pytest.raises(HandleSetUpError):
        run(Arguments(pcap_file=str(tmp_path / "missing.pcap")), io.StringIO())
    assert capsys.readouterr().err.startswith("Error: ")


def test_run_unwritable_domains_file(tmp_path):
    path = write_pcap(tmp_path, [(0, 0, ipv4_udp_frame(dns_query()))])
    out = io.StringIO()
    with pytest.raises(HandleSetUpError):
        run(Arguments(pcap_file=str(path), domains_file=str(tmp_path)), out)
    assert out.getvalue() == ""


def test_live_capture_reads_frames_until_error():
    frame = ipv4_udp_frame(dns_query())
    fake = mock.MagicMock()
    fake.recv.side_effect = [frame, socket.timeout(), OSError("interface down")]
    with mock.patch.object(socket, "AF_PACKET", 17, create=True), mock.patch.object(
        socket, "socket", return_value=fake
    ):
        datalink, frames = live_capture("eth0")
        captured = list(frames)
    assert datalink == 1
    assert [data for _, data in captured] == [frame]
    fake.bind.assert_called_once_with(("eth0", 0))


def test_live_capture_open_failure():
    with mock.patch.object(socket, "AF_PACKET", 17, create=True), mock.patch.object(
        socket, "socket", side_effect=PermissionError("not permitted")
    ):
        with pytest.raises(HandleSetUpError):
            live_capture("eth0")