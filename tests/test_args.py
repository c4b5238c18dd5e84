import pytest

from dnsmonitor.args import Arguments, help_text, parse_arguments
from dnsmonitor.errors import ArgParserError


def test_interface_only():
    args = parse_arguments(["-i", "eth0"])
    assert args == Arguments(interface="eth0")
    assert args.use_interface and not args.use_file
    assert not args.verbose and not args.d_mode and not args.t_mode


def test_all_options_with_file():
    args = parse_arguments(["-p", "dump.pcap", "-v", "-d", "d.txt", "-t", "t.txt"])
    assert args.pcap_file == "dump.pcap"
    assert args.use_file and not args.use_interface
    assert args.verbose
    assert (args.domains_file, args.translations_file) == ("d.txt", "t.txt")
    assert args.d_mode and args.t_mode


def test_options_in_any_order():
    args = parse_arguments(["-v", "-i", "lo"])
    assert args.interface == "lo"
    assert args.verbose


def test_two_sources_rejected(capsys):
    with pytest.raises(ArgParserError):
        parse_arguments(["-i", "eth0", "-p", "dump.pcap"])
    captured = capsys.readouterr()
    assert "Too many arguments" in captured.err
    assert help_text() in captured.out


def test_repeated_interface_rejected():
    with pytest.raises(ArgParserError):
        parse_arguments(["-i", "eth0", "-i", "eth1"])


def test_missing_source(capsys):
    with pytest.raises(ArgParserError):
        parse_arguments(["-v"])
    captured = capsys.readouterr()
    assert "Missing arguments!" in captured.err
    assert captured.out == ""


def test_empty_command_line():
    with pytest.raises(ArgParserError):
        parse_arguments([])


def test_unknown_option(capsys):
    with pytest.raises(ArgParserError):
        parse_arguments(["-x"])
    assert "Unsuported argument" in capsys.readouterr().err


def test_option_missing_value():
    with pytest.raises(ArgParserError):
        parse_arguments(["-i"])


def test_help_text_usage_line():
    lines = help_text().split("\n")
    assert lines[0].startswith("./dns-monitor (-i <interface> | -p <pcapfile>)")
    assert len(lines) == 6