"""Command-line option parsing for the monitor."""

from __future__ import annotations

import getopt
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import ArgParserError

_OPTIONS = "i:p:vd:t:"

_HELP = (
    "./dns-monitor (-i <interface> | -p <pcapfile>) [-v] [-d <domainsfile>] "
    "[-t <translationsfile>]\n"
    "-i <interface> - name of interface, where will program listen, or\n"
    "-p <pcapfile> - name of PCAP file, which will program analyse;\n"
    "-v - mode `verbose`: complete listing of DNS messages details;\n"
    "-d <domainsfile> - file name for domain names;\n"
    "-t <translationsfile> - file name for domain names to IP translations."
)


@dataclass
class Arguments:
    """Options given on the command line."""

    interface: Optional[str] = None
    pcap_file: Optional[str] = None
    verbose: bool = False
    domains_file: Optional[str] = None
    translations_file: Optional[str] = None

    @property
    def use_interface(self) -> bool:
        """True when packets are captured live from an interface."""
        return self.interface is not None

    @property
    def use_file(self) -> bool:
        """True when packets are read from a PCAP file."""
        return self.pcap_file is not None

    @property
    def d_mode(self) -> bool:
        """True when domain names are collected into a file."""
        return self.domains_file is not None

    @property
    def t_mode(self) -> bool:
        """True when name-to-address translations are collected into a file."""
        return self.translations_file is not None


def help_text() -> str:
    """Usage text of the command."""
    return _HELP


def _fail(message: str, show_help: bool) -> ArgParserError:
    print(message, file=sys.stderr)
    if show_help:
        print(help_text())
    return ArgParserError(message)


def parse_arguments(argv: Sequence[str]) -> Arguments:
    """Parse command-line options (without the program name).

    Exactly one of ``-i`` and ``-p`` is required; raises ArgParserError
    for unknown options, a second source, or no source at all.
    """
    try:
        options, _ = getopt.gnu_getopt(list(argv), _OPTIONS)
    except getopt.GetoptError:
        raise _fail("Unsuported argument", show_help=True) from None

    args = Arguments()
    for option, value in options:
        if option in ("-i", "-p"):
            if args.use_file or args.use_interface:
                raise _fail("Too many arguments", show_help=True)
            if option == "-i":
                args.interface = value
            else:
                args.pcap_file = value
        elif option == "-v":
            args.verbose = True
        elif option == "-d":
            args.domains_file = value
        elif option == "-t":
            args.translations_file = value

    if not args.use_file and not args.use_interface:
        raise _fail("Missing arguments!", show_help=False)
    return args