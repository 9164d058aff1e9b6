"""
Unit tests for the command-line entry point.
"""

from pathlib import Path

import pytest

from fileserver import __version__
from fileserver.__main__ import build_parser, config_from_args, main
from fileserver.config import ServerConfig


def parse(*argv: str):
    return build_parser().parse_args(list(argv))


class TestConfigFromArgs:
    """Tests for config_from_args()."""

    def test_no_flags_keep_base(self):
        base = ServerConfig(port=9000, confine_to_root=True)
        assert config_from_args(parse(), base) == base

    def test_flags_override_base(self, tmp_path: Path):
        args = parse(
            "--host", "127.0.0.1",
            "--port", "3000",
            "--root", str(tmp_path),
            "--timeout", "1.5",
            "--workers", "8",
            "--queue-size", "4",
            "--content-length",
            "--confine",
            "-i",
            "--log-level", "DEBUG",
            "--log-format", "json",
        )
        config = config_from_args(args, ServerConfig())

        assert config.host == "127.0.0.1"
        assert config.port == 3000
        assert config.root_dir == str(tmp_path)
        assert config.timeout == 1.5
        assert config.max_workers == 8
        assert config.queue_size == 4
        assert config.send_content_length is True
        assert config.confine_to_root is True
        assert config.case_insensitive is True
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_env_is_the_default_base(self, monkeypatch):
        monkeypatch.setenv("FILESERVER_PORT", "4321")
        assert config_from_args(parse()).port == 4321
        assert config_from_args(parse("-p", "1234")).port == 1234


class TestMain:
    """Tests for main()."""

    def test_invalid_config_exits_1(self, tmp_path: Path, capsys):
        status = main(["--root", str(tmp_path / "missing")])

        assert status == 1
        assert "Invalid configuration" in capsys.readouterr().err

    def test_invalid_port_exits_1(self, tmp_path: Path):
        assert main(["--root", str(tmp_path), "--port", "70000"]) == 1

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_unknown_log_level_rejected(self):
        with pytest.raises(SystemExit):
            main(["--log-level", "LOUD"])
