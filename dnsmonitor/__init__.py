"""Report DNS messages from pcap captures or live interfaces."""

__version__ = "1.0.0"