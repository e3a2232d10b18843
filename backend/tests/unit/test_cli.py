"""
Unit Tests for the command line parser
"""
import pytest

from iep_monitor.cli import create_parser


class TestParser:

    def test_scan(self):
        args = create_parser().parse_args(["scan", "--actor", "u1", "--dedupe"])

        assert args.command == "scan"
        assert args.actor == "u1"
        assert args.dedupe is True
        assert args.json is False

    def test_scan_dedupe_defaults_to_settings(self):
        args = create_parser().parse_args(["scan", "--actor", "u1"])

        assert args.dedupe is None

    def test_analytics_range(self):
        args = create_parser().parse_args(["--json", "analytics", "--actor", "u1", "-r", "month"])

        assert args.json is True
        assert args.time_range == "month"

    def test_unknown_range_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["analytics", "--actor", "u1", "-r", "decade"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])
