#!/usr/bin/env python
"""Command line front end - exit codes, flags, error channel."""

import importlib
import io
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from anew import cli
from anew.config import CONFIG_ENV

OLD_MTIME_NS = 1_600_000_000 * 10**9


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """No stray config from the environment or working directory."""
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.chdir(tmp_path)


def _cli(argv, stdin_text=""):
    """Run the CLI; returns (exit code, stdout text)."""
    out = io.StringIO()
    code = cli.run(argv, stdin=io.StringIO(stdin_text), stdout=out)
    return code, out.getvalue()


class TestParseArgs:
    """Flag parsing"""

    def test_defaults_are_unset(self):
        """Unset flags stay None so config values apply"""
        args = cli.parse_args([])
        assert args.file is None
        assert all(getattr(args, name) is None for name in cli.OPTION_FIELDS)

    def test_single_dash_flags(self):
        """-q -d -t -r -ln are single-dash options"""
        args = cli.parse_args(["-q", "-d", "-t", "-r", "-ln", "3", "out.txt"])
        assert args.quiet and args.dry_run and args.trim and args.rewrite
        assert args.max_lines == 3
        assert args.file == "out.txt"

    def test_bundled_flags(self):
        """Short flags can be combined"""
        args = cli.parse_args(["-qt", "out.txt"])
        assert args.quiet and args.trim

    def test_negative_limit(self):
        """-ln -1 means unlimited"""
        assert cli.parse_args(["-ln", "-1"]).max_lines == -1

    def test_extra_flags(self):
        """Sort, immediate and touch map onto option fields"""
        args = cli.parse_args(["-s", "-i", "--touch"])
        assert args.order == "sorted"
        assert args.append_mode == "immediate"
        assert args.restore_mtime is False

    def test_negation_flags(self):
        """--no-* flags set the field to off rather than leaving it unset"""
        args = cli.parse_args(
            ["--no-quiet", "--no-dry-run", "--no-trim", "--no-rewrite",
             "--no-sort", "--batch", "--restore-mtime"]
        )
        assert args.quiet is False and args.dry_run is False
        assert args.trim is False and args.rewrite is False
        assert args.order == "first-seen"
        assert args.append_mode == "batch"
        assert args.restore_mtime is True

    def test_bad_limit(self):
        """Non-integer limit is a usage error"""
        with pytest.raises(SystemExit) as exc:
            cli.parse_args(["-ln", "many"])
        assert exc.value.code == 2


class TestRun:
    """End to end through the CLI"""

    def test_appends_and_prints(self, tmp_path):
        """Prints only new lines and appends them"""
        p = tmp_path / "seen.txt"
        p.write_text("x\n", encoding="utf-8")

        code, out = _cli([str(p)], "x\ny\ny\n")

        assert code == 0
        assert out == "y\n"
        assert p.read_text(encoding="utf-8") == "x\ny\n"

    def test_quiet_dry_run(self, tmp_path):
        """-q -d prints nothing and changes nothing"""
        p = tmp_path / "seen.txt"
        p.write_text("x\n", encoding="utf-8")

        code, out = _cli(["-q", "-d", str(p)], "y\n")

        assert code == 0
        assert out == ""
        assert p.read_text(encoding="utf-8") == "x\n"

    def test_trim_rewrite_sort(self, tmp_path):
        """-t -r -s normalizes the whole file"""
        p = tmp_path / "seen.txt"
        p.write_text(" c\nc \n\na\n", encoding="utf-8")

        code, out = _cli(["-t", "-r", "-s", str(p)], "  b\na\n")

        assert code == 0
        assert out == "b\n"
        assert p.read_text(encoding="utf-8") == "a\nb\nc\n"

    def test_limit(self, tmp_path):
        """-ln 2 stores only two lines"""
        p = tmp_path / "seen.txt"
        code, out = _cli(["-ln", "2", str(p)], "a\nb\nc\n")
        assert code == 0
        assert out == "a\nb\n"
        assert p.read_text(encoding="utf-8") == "a\nb\n"

    def test_touch(self, tmp_path):
        """--touch keeps the new mtime"""
        p = tmp_path / "seen.txt"
        p.write_text("x\n", encoding="utf-8")
        os.utime(p, ns=(OLD_MTIME_NS, OLD_MTIME_NS))

        _cli(["--touch", str(p)], "y\n")
        assert p.stat().st_mtime_ns > OLD_MTIME_NS

        p.write_text("x\n", encoding="utf-8")
        os.utime(p, ns=(OLD_MTIME_NS, OLD_MTIME_NS))
        _cli([str(p)], "y\n")
        assert p.stat().st_mtime_ns == OLD_MTIME_NS

    def test_config_file(self, tmp_path):
        """Config values apply, flags override them"""
        cfg = tmp_path / "anew.yaml"
        cfg.write_text("trim: true\nquiet: true\n", encoding="utf-8")
        p = tmp_path / "seen.txt"
        p.write_text("x\n", encoding="utf-8")

        code, out = _cli(["-c", str(cfg), str(p)], "  x\n  y\n")

        assert code == 0
        assert out == ""
        assert p.read_text(encoding="utf-8") == "x\ny\n"

    def test_flags_turn_off_config_values(self, tmp_path):
        """--no-trim and --no-quiet override true values from the config"""
        cfg = tmp_path / "anew.yaml"
        cfg.write_text("trim: true\nquiet: true\n", encoding="utf-8")
        p = tmp_path / "seen.txt"
        p.write_text("x\n", encoding="utf-8")

        code, out = _cli(["-c", str(cfg), "--no-trim", "--no-quiet", str(p)], "  x\nx\n")

        assert code == 0
        assert out == "  x\n"
        assert p.read_text(encoding="utf-8") == "x\n  x\n"


class TestExitCodes:
    """Failures and the error channel"""

    def test_stat_failure(self, tmp_path, capsys):
        """Fatal target error -> exit 1, message on stderr, no output"""
        blocker = tmp_path / "file.txt"
        blocker.write_text("x\n", encoding="utf-8")

        code, out = _cli([str(blocker / "seen.txt")], "a\n")

        assert code == cli.EXIT_IO_ERROR
        assert out == ""
        assert "failed to stat" in capsys.readouterr().err

    def test_create_failure(self, tmp_path, capsys):
        """Missing directory -> exit 1"""
        code, out = _cli([str(tmp_path / "nope" / "seen.txt")], "a\n")
        assert code == cli.EXIT_IO_ERROR
        assert out == ""
        assert "failed to create" in capsys.readouterr().err

    def test_append_failure(self, tmp_path, monkeypatch, capsys):
        """Append error -> exit 1, echoed output stands"""
        p = tmp_path / "seen.txt"
        p.write_text("x\n", encoding="utf-8")

        def fail(path, lines):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr("anew.dedup.store.append_lines", fail)

        code, out = _cli([str(p)], "y\n")

        assert code == cli.EXIT_IO_ERROR
        assert out == "y\n"
        assert "Permission denied" in capsys.readouterr().err

    def test_mtime_failure_is_not_fatal(self, tmp_path, monkeypatch, capsys):
        """Restore failure -> warning, exit 0"""
        p = tmp_path / "seen.txt"
        p.write_text("x\n", encoding="utf-8")

        def fail(path, mtime_ns):
            raise PermissionError(1, "Operation not permitted")

        monkeypatch.setattr("anew.dedup.store.set_mtime_ns", fail)

        code, out = _cli([str(p)], "y\n")

        assert code == cli.EXIT_OK
        assert out == "y\n"
        assert p.read_text(encoding="utf-8") == "x\ny\n"
        assert "WARNING" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        """Invalid config -> exit 2"""
        cfg = tmp_path / "anew.yaml"
        cfg.write_text("order: random\n", encoding="utf-8")

        code, _ = _cli(["-c", str(cfg)], "a\n")

        assert code == cli.EXIT_CONFIG_ERROR
        assert "Invalid options" in capsys.readouterr().err

    def test_quiet_stderr_on_success(self, tmp_path, capsys):
        """Successful runs log nothing at the default level"""
        _cli([str(tmp_path / "seen.txt")], "a\n")
        assert capsys.readouterr().err == ""

    def test_verbose(self, tmp_path, capsys):
        """-v logs the run summary"""
        _cli(["-v", str(tmp_path / "seen.txt")], "a\n")
        err = capsys.readouterr().err
        assert "INFO" in err
        assert "1 new lines" in err

    def test_log_file(self, tmp_path):
        """--log-file receives the same records"""
        log = tmp_path / "anew.log"
        _cli(["-v", "--log-file", str(log), str(tmp_path / "seen.txt")], "a\n")
        assert "new lines" in log.read_text(encoding="utf-8")


class TestMain:
    """Console entry point"""

    def test_exit_status(self, tmp_path, monkeypatch):
        """main() exits with run()'s status"""
        monkeypatch.setattr(cli, "run", lambda: cli.EXIT_IO_ERROR)
        with pytest.raises(SystemExit) as exc:
            cli.main()
        assert exc.value.code == cli.EXIT_IO_ERROR

    def test_keyboard_interrupt(self, monkeypatch):
        """Ctrl-C exits 130 without a traceback"""

        def interrupted():
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "run", interrupted)
        with pytest.raises(SystemExit) as exc:
            cli.main()
        assert exc.value.code == cli.EXIT_INTERRUPTED

    def test_module_import_does_not_run(self, monkeypatch):
        """Importing anew.__main__ only runs main() under python -m"""
        calls = []
        monkeypatch.setattr(cli, "main", lambda: calls.append(1))
        monkeypatch.delitem(sys.modules, "anew.__main__", raising=False)

        importlib.import_module("anew.__main__")

        assert calls == []


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
