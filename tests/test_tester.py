"""
Tests for the batch runner over program files
"""

import sys
from pathlib import Path

import tester

PROGRAMS = Path(__file__).resolve().parent.parent / "programs"


class TestExpectations:
    """Expected verdicts come from file names"""

    def test_expected_returncode(self):
        assert tester.expected_returncode("programs/max_invalid.wp") == 2
        assert tester.expected_returncode("programs/max.wp") == 0
        assert tester.expected_returncode("invalid/max.wp") == 0

    def test_collect_files(self, tmp_path):
        (tmp_path / "a.wp").write_text("skip")
        (tmp_path / "notes.txt").write_text("")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.wp").write_text("skip")
        files = tester.collect_files([str(tmp_path), str(tmp_path / "a.wp")])
        assert files == [str(tmp_path / "a.wp"), str(tmp_path / "sub" / "b.wp")]

    def test_collect_nothing(self, tmp_path):
        assert tester.collect_files([str(tmp_path / "missing")]) == []


class TestRun:
    """End to end over the bundled programs"""

    def test_bundled_programs(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["tester.py", str(PROGRAMS)])
        assert tester.main() == 0
        out = capsys.readouterr().out
        n = len(list(PROGRAMS.glob("*.wp")))
        assert f"{n}/{n} programs as expected" in out
