"""Field access for IPv4 and IPv6 headers held in raw bytes."""

from __future__ import annotations

import socket

from .errors import IgnorePacket

IPV4_TYPE = 0x0800
IPV4_PROTOCOL_OFFSET = 9
IPV4_ADDRESS_SIZE = 4
IPV4_SOURCE_OFFSET = 12
IPV4_DESTINATION_OFFSET = IPV4_SOURCE_OFFSET + IPV4_ADDRESS_SIZE

IPV6_TYPE = 0x86DD
IPV6_NEXT_HEADER_OFFSET = 6
IPV6_HEADER_SIZE = 40
IPV6_ADDRESS_SIZE = 16
IPV6_SOURCE_OFFSET = 8
IPV6_DESTINATION_OFFSET = IPV6_SOURCE_OFFSET + IPV6_ADDRESS_SIZE


def _ntop(family: int, raw: bytes, size: int) -> str:
    chunk = bytes(raw[:size])
    if len(chunk) < size:
        return ""
    try:
        return socket.inet_ntop(family, chunk)
    except (OSError, ValueError):
        return ""


def _byte_at(data: bytes, offset: int, what: str) -> int:
    if len(data) <= offset:
        raise IgnorePacket(f"truncated {what} header")
    return data[offset]


def parse_ipv4_address(raw: bytes) -> str:
    """Dotted form of the 4-byte address at the start of ``raw``, or ``""``."""
    return _ntop(socket.AF_INET, raw, IPV4_ADDRESS_SIZE)


def ipv4_src(data: bytes) -> str:
    """Source address of an IPv4 header."""
    return parse_ipv4_address(data[IPV4_SOURCE_OFFSET:])


def ipv4_dst(data: bytes) -> str:
    """Destination address of an IPv4 header."""
    return parse_ipv4_address(data[IPV4_DESTINATION_OFFSET:])


def ipv4_protocol(data: bytes) -> int:
    """Upper-layer protocol number of an IPv4 header."""
    return _byte_at(data, IPV4_PROTOCOL_OFFSET, "IPv4")


def ipv4_payload(data: bytes) -> bytes:
    """Bytes following the IPv4 header, as sized by its IHL field."""
    ihl = _byte_at(data, 0, "IPv4") & 0xF
    return data[4 * ihl:]


def parse_ipv6_address(raw: bytes) -> str:
    """Textual form of the 16-byte address at the start of ``raw``, or ``""``."""
    return _ntop(socket.AF_INET6, raw, IPV6_ADDRESS_SIZE)


def ipv6_src(data: bytes) -> str:
    """Source address of an IPv6 header."""
    return parse_ipv6_address(data[IPV6_SOURCE_OFFSET:])


def ipv6_dst(data: bytes) -> str:
    """Destination address of an IPv6 header."""
    return parse_ipv6_address(data[IPV6_DESTINATION_OFFSET:])


def ipv6_next_header(data: bytes) -> int:
    """Next-header protocol number of an IPv6 header."""
    return _byte_at(data, IPV6_NEXT_HEADER_OFFSET, "IPv6")


def ipv6_payload(data: bytes) -> bytes:
    """Bytes following the fixed 40-byte IPv6 header."""
    return data[IPV6_HEADER_SIZE:]