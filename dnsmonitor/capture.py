"""Packet sources (PCAP files and live interfaces) and the monitoring loop."""

from __future__ import annotations

import signal
import socket
import struct
import sys
import threading
import time
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, TextIO

from .args import Arguments
from .errors import HandleSetUpError, IgnorePacket
from .packet import DLT_EN10MB, DLT_LINUX_SLL, parse_packet

Frame = tuple[float, bytes]

_SUPPORTED_DATALINKS = (DLT_EN10MB, DLT_LINUX_SLL)

_PCAP_HEADER_SIZE = 24
_PCAP_RECORD_SIZE = 16
_LINKTYPE_MASK = 0x03FFFFFF
# Magic number -> divisor turning the fractional field into seconds.
_PCAP_MAGICS = {
    0xA1B2C3D4: 1_000_000,
    0xA1B23C4D: 1_000_000_000,
}

_ETH_P_ALL = 0x0003
_SNAPLEN = 65535
_READ_TIMEOUT = 0.1


def prepare_file(path: str | Path) -> bool:
    """Create ``path`` or empty it; return False when it cannot be opened."""
    try:
        with open(path, "w", encoding="utf-8"):
            pass
    except OSError:
        print(f"Cannot open {path}.", file=sys.stderr)
        return False
    return True


def _pcap_records(stream: BinaryIO, endian: str, divisor: int) -> Iterator[Frame]:
    record = struct.Struct(endian + "IIII")
    while True:
        head = stream.read(_PCAP_RECORD_SIZE)
        if len(head) < _PCAP_RECORD_SIZE:
            return
        seconds, fraction, captured, _ = record.unpack(head)
        data = stream.read(captured)
        if len(data) < captured:
            return
        yield seconds + fraction / divisor, data


def read_pcap(stream: BinaryIO) -> tuple[int, Iterator[Frame]]:
    """Read the header of a PCAP capture.

    Returns the link type and an iterator of ``(timestamp, frame)`` pairs.
    Reading stops quietly at the end of the data or at a truncated record.
    """
    header = stream.read(_PCAP_HEADER_SIZE)
    if len(header) < _PCAP_HEADER_SIZE:
        raise HandleSetUpError("truncated dump file; tried to read the file header")

    for endian in ("<", ">"):
        (magic,) = struct.unpack(endian + "I", header[:4])
        if magic in _PCAP_MAGICS:
            break
    else:
        raise HandleSetUpError("unknown file format")

    *_, network = struct.unpack(endian + "HHiIII", header[4:])
    return network & _LINKTYPE_MASK, _pcap_records(stream, endian, _PCAP_MAGICS[magic])


def _install_handlers(handler) -> dict[int, object]:
    previous = {}
    for name in ("SIGINT", "SIGTERM", "SIGQUIT"):
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            previous[signum] = signal.signal(signum, handler)
        except (ValueError, OSError):
            continue
    return previous


def _restore_handlers(previous: dict[int, object]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _live_frames(sock: socket.socket) -> Iterator[Frame]:
    stop = threading.Event()

    def request_stop(signum, frame):
        stop.set()

    previous = _install_handlers(request_stop)
    try:
        with sock:
            while not stop.is_set():
                try:
                    data = sock.recv(_SNAPLEN)
                except (socket.timeout, InterruptedError):
                    continue
                except OSError:
                    break
                yield time.time(), data
    finally:
        _restore_handlers(previous)


def live_capture(interface: str) -> tuple[int, Iterator[Frame]]:
    """Open ``interface`` for capture of Ethernet frames.

    Returns the link type and an iterator of ``(timestamp, frame)`` pairs
    that ends on SIGINT, SIGTERM or SIGQUIT, or when the interface fails.
    """
    family = getattr(socket, "AF_PACKET", None)
    if family is None:
        raise HandleSetUpError("live capture is not supported on this platform")

    sock: Optional[socket.socket] = None
    try:
        sock = socket.socket(family, socket.SOCK_RAW, socket.ntohs(_ETH_P_ALL))
        sock.bind((interface, 0))
        sock.settimeout(_READ_TIMEOUT)
    except OSError as exc:
        if sock is not None:
            sock.close()
        raise HandleSetUpError(f"{interface}: {exc}") from exc
    return DLT_EN10MB, _live_frames(sock)


def _open_source(args: Arguments, stack: ExitStack) -> tuple[int, Iterator[Frame]]:
    try:
        if args.use_file:
            try:
                stream = stack.enter_context(open(args.pcap_file, "rb"))
            except OSError as exc:
                raise HandleSetUpError(f"{args.pcap_file}: {exc.strerror or exc}") from exc
            return read_pcap(stream)
        datalink, frames = live_capture(args.interface)
        stack.callback(frames.close)
        return datalink, frames
    except HandleSetUpError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise


def run(args: Arguments, out: Optional[TextIO] = None) -> None:
    """Read packets from the source named in ``args`` and report DNS messages.

    Raises HandleSetUpError when the source or an output file cannot be set up.
    """
    out = sys.stdout if out is None else out
    with ExitStack() as stack:
        datalink, frames = _open_source(args, stack)

        if datalink not in _SUPPORTED_DATALINKS:
            print("Unsupported datalink", file=sys.stderr)
            raise HandleSetUpError(f"unsupported datalink {datalink}")

        for path in (args.domains_file, args.translations_file):
            if path is not None and not prepare_file(path):
                raise HandleSetUpError(f"cannot open {path}")

        for timestamp, frame in frames:
            try:
                packet = parse_packet(
                    frame,
                    timestamp,
                    datalink,
                    args.translations_file,
                    args.domains_file,
                )
            except IgnorePacket:
                continue
            text = packet.format_verbose() if args.verbose else packet.format_simple()
            out.write(text + "\n")