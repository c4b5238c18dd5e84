"""Exceptions raised while reading captured DNS traffic."""


class DNSMonitorError(Exception):
    """Base class for all errors raised by the monitor."""


class IgnorePacket(DNSMonitorError):
    """The packet is not DNS over UDP on IPv4/IPv6 and should be skipped."""


class IgnoreRecord(DNSMonitorError):
    """The record has a type the monitor does not support."""


class HandleSetUpError(DNSMonitorError):
    """The capture source or an output file could not be prepared."""


class ArgParserError(DNSMonitorError):
    """The command line is invalid or incomplete."""