"""Decoding of the 16-bit flags word of a DNS header."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DNSFlags:
    """Individual fields of a DNS header flags word.

    qr: query/response, aa: authoritative answer, tc: truncation,
    rd: recursion desired, ra: recursion available, ad: authentic data,
    cd: checking disabled, opcode: operation code, rcode: response code.
    """

    qr: bool
    opcode: int
    aa: bool
    tc: bool
    rd: bool
    ra: bool
    ad: bool
    cd: bool
    rcode: int

    @property
    def query_response(self) -> str:
        """``"R"`` for a response, ``"Q"`` for a query."""
        return "R" if self.qr else "Q"


def parse_flags(value: int) -> DNSFlags:
    """Split a 16-bit DNS flags word into its fields."""
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"DNS flags must fit in 16 bits, got {value!r}")

    def bit(shift: int) -> bool:
        return bool((value >> shift) & 1)

    return DNSFlags(
        qr=bit(15),
        opcode=(value >> 11) & 0xF,
        aa=bit(10),
        tc=bit(9),
        rd=bit(8),
        ra=bit(7),
        ad=bit(5),
        cd=bit(4),
        rcode=value & 0xF,
    )