"""Decoding of the question and resource-record sections of a DNS message."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .errors import IgnorePacket, IgnoreRecord
from .ip import parse_ipv4_address, parse_ipv6_address

_TYPE_NAMES = {
    1: "A",
    2: "NS",
    5: "CNAME",
    6: "SOA",
    15: "MX",
    28: "AAAA",
    33: "SRV",
}

_CLASS_NAMES = {
    1: "IN",
    2: "CS",
    3: "CH",
    4: "HS",
}

_POINTER_FLAGS = 0xC0


@dataclass(frozen=True)
class DNSQuestion:
    """One entry of the question section."""

    qname: str
    qtype: str
    qclass: str

    def format(self) -> str:
        """Line shown for the question in verbose output."""
        return f"{self.qname} {self.qclass} {self.qtype}"


@dataclass(frozen=True)
class DNSRecord:
    """A resource record whose data is a single address or name."""

    name: str
    rtype: str
    rclass: str
    ttl: int
    rdata: str

    def format(self) -> str:
        """Line shown for the record in verbose output."""
        return f"{self.name} {self.ttl} {self.rclass} {self.rtype} {self.rdata}"

    def name_rdata(self) -> str:
        """Owner name without its trailing dot, followed by the record data."""
        return f"{self.name[:-1]} {self.rdata}"


@dataclass(frozen=True)
class MXRecord:
    """A mail exchange record."""

    name: str
    rtype: str
    rclass: str
    ttl: int
    preference: int
    rdata: str

    def format(self) -> str:
        """Line shown for the record in verbose output."""
        return (
            f"{self.name} {self.ttl} {self.rclass} {self.rtype} "
            f"{self.preference} {self.rdata}"
        )


@dataclass(frozen=True)
class SOARecord:
    """A start-of-authority record."""

    name: str
    rtype: str
    rclass: str
    ttl: int
    mname: str
    rname: str
    serial: int
    refresh: int
    retry: int
    expire: int
    minimum_ttl: int

    def format(self) -> str:
        """Line shown for the record in verbose output."""
        return (
            f"{self.name} {self.ttl} {self.rclass} {self.rtype} {self.mname} "
            f"{self.rname} {self.serial} {self.refresh} {self.retry} "
            f"{self.expire} {self.minimum_ttl}"
        )


@dataclass(frozen=True)
class SRVRecord:
    """A service location record."""

    name: str
    rtype: str
    rclass: str
    ttl: int
    priority: int
    weight: int
    port: int
    target: str

    def format(self) -> str:
        """Line shown for the record in verbose output."""
        return (
            f"{self.name} {self.ttl} {self.rclass} {self.rtype} "
            f"{self.priority} {self.weight} {self.port} {self.target}"
        )


Record = Union[DNSRecord, MXRecord, SOARecord, SRVRecord]


@dataclass
class DNSSections:
    """Supported entries of the four sections of a DNS message."""

    questions: list[DNSQuestion] = field(default_factory=list)
    answers: list[Record] = field(default_factory=list)
    authorities: list[Record] = field(default_factory=list)
    additionals: list[Record] = field(default_factory=list)
    end_offset: int = 0


def record_type_name(code: int) -> str:
    """Mnemonic of a supported record type; raises IgnoreRecord otherwise."""
    try:
        return _TYPE_NAMES[code]
    except KeyError:
        raise IgnoreRecord(f"unsupported record type {code}") from None


def class_name(code: int) -> str:
    """Mnemonic of a record class, ``"Unknown"`` when not recognised."""
    return _CLASS_NAMES.get(code, "Unknown")


def read_name(message: bytes, offset: int) -> tuple[str, int]:
    """Decode the possibly compressed domain name at ``offset``.

    Returns the dotted name (with trailing dot, empty for the root) and the
    offset just past the name where it was read, before any pointer jumps.
    """
    message = bytes(message)
    labels: list[str] = []
    position = offset
    end: Optional[int] = None
    jumps = 0

    while True:
        if position >= len(message):
            raise IgnorePacket("truncated domain name")
        length = message[position]

        if length & _POINTER_FLAGS == _POINTER_FLAGS:
            if position + 1 >= len(message):
                raise IgnorePacket("truncated name pointer")
            if end is None:
                end = position + 2
            jumps += 1
            if jumps > len(message):
                raise IgnorePacket("name compression loop")
            position = ((length & 0x3F) << 8) | message[position + 1]
            continue

        position += 1
        if length == 0:
            break
        label = message[position:position + length]
        if len(label) < length:
            raise IgnorePacket("truncated label")
        labels.append(label.decode("latin-1") + ".")
        position += length

    return "".join(labels), position if end is None else end


def _append_unique(path: str | Path, line: str) -> None:
    try:
        with open(path, encoding="utf-8") as existing:
            if any(entry.rstrip("\n") == line for entry in existing):
                return
    except OSError:
        print("Cannot open file", file=sys.stderr)

    with open(path, "a", encoding="utf-8") as out:
        out.write(line + "\n")


def add_translation(path: str | Path, line: str) -> None:
    """Append a name-to-address line to ``path`` unless it is already there."""
    _append_unique(path, line)


def add_domain_name(path: str | Path, name: str) -> None:
    """Append ``name`` without its trailing dot to ``path`` unless present."""
    _append_unique(path, name[:-1])


class _Cursor:
    """Moving read position inside a DNS message."""

    def __init__(self, message: bytes, offset: int) -> None:
        self.message = message
        self.offset = offset

    def _unpack(self, fmt: str, size: int) -> int:
        try:
            (value,) = struct.unpack_from(fmt, self.message, self.offset)
        except struct.error as exc:
            raise IgnorePacket("truncated DNS message") from exc
        self.offset += size
        return value

    def u16(self) -> int:
        return self._unpack("!H", 2)

    def u32(self) -> int:
        return self._unpack("!I", 4)

    def name(self) -> str:
        name, self.offset = read_name(self.message, self.offset)
        return name

    def take(self, size: int) -> bytes:
        chunk = self.message[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def skip(self, size: int) -> None:
        self.offset += size


class _SectionParser:
    def __init__(
        self,
        cursor: _Cursor,
        translations_file: str | Path | None,
        domains_file: str | Path | None,
    ) -> None:
        self.cursor = cursor
        self.translations_file = translations_file
        self.domains_file = domains_file

    def _domain(self, name: str) -> None:
        if self.domains_file is not None:
            add_domain_name(self.domains_file, name)

    def questions(self, count: int) -> list[DNSQuestion]:
        cursor = self.cursor
        questions = []
        for _ in range(count):
            qname = cursor.name()
            try:
                qtype = record_type_name(cursor.u16())
            except IgnoreRecord:
                cursor.skip(2)
                continue
            qclass = class_name(cursor.u16())
            questions.append(DNSQuestion(qname=qname, qtype=qtype, qclass=qclass))
            self._domain(qname)
        return questions

    def records(self, count: int) -> list[Record]:
        records: list[Record] = []
        for _ in range(count):
            record = self._record()
            if record is not None:
                records.append(record)
        return records

    def _record(self) -> Optional[Record]:
        cursor = self.cursor
        name = cursor.name()
        try:
            rtype = record_type_name(cursor.u16())
        except IgnoreRecord:
            cursor.skip(6)
            cursor.skip(cursor.u16())
            return None

        rclass = class_name(cursor.u16())
        ttl = cursor.u32()
        cursor.skip(2)

        if rtype == "MX":
            preference = cursor.u16()
            exchange = cursor.name()
            self._domain(name)
            self._domain(exchange)
            return MXRecord(name, rtype, rclass, ttl, preference, exchange)

        if rtype == "SOA":
            mname = cursor.name()
            rname = cursor.name()
            serial, refresh, retry, expire, minimum = (cursor.u32() for _ in range(5))
            self._domain(name)
            self._domain(mname)
            return SOARecord(
                name, rtype, rclass, ttl, mname, rname,
                serial, refresh, retry, expire, minimum,
            )

        if rtype == "SRV":
            priority = cursor.u16()
            weight = cursor.u16()
            port = cursor.u16()
            target = cursor.name()
            self._domain(target)
            return SRVRecord(name, rtype, rclass, ttl, priority, weight, port, target)

        if rtype == "A":
            rdata = parse_ipv4_address(cursor.take(4))
        elif rtype == "AAAA":
            rdata = parse_ipv6_address(cursor.take(16))
        else:
            rdata = cursor.name()

        record = DNSRecord(name, rtype, rclass, ttl, rdata)
        is_address = rtype in ("A", "AAAA")
        if is_address and self.translations_file is not None:
            add_translation(self.translations_file, record.name_rdata())
        self._domain(name)
        if not is_address:
            self._domain(rdata)
        return record


def parse_sections(
    message: bytes,
    offset: int,
    question_count: int,
    answer_count: int,
    authority_count: int,
    additional_count: int,
    translations_file: str | Path | None = None,
    domains_file: str | Path | None = None,
) -> DNSSections:
    """Decode all four sections starting at ``offset`` of ``message``.

    Unsupported record types are skipped. When a file is given, names and
    address translations found are appended to it without duplicates.
    """
    parser = _SectionParser(_Cursor(bytes(message), offset), translations_file, domains_file)
    questions = parser.questions(question_count)
    answers = parser.records(answer_count)
    authorities = parser.records(authority_count)
    additionals = parser.records(additional_count)
    return DNSSections(
        questions=questions,
        answers=answers,
        authorities=authorities,
        additionals=additionals,
        end_offset=parser.cursor.offset,
    )