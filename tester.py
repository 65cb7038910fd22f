#!/usr/bin/env python3
"""Batch runner: verify every `*.wp` program and compare against the expected verdict."""
import argparse
import glob
import subprocess
import sys
from pathlib import Path

DEFAULT_SCRIPT = Path(__file__).resolve().parent / "src" / "hoare_main.py"


def expected_returncode(testfile: str) -> int:
    """Programs named `*invalid*` must be rejected (exit 2); all others must verify (exit 0)."""
    return 2 if "invalid" in Path(testfile).name else 0


def _programs_under(path: Path) -> list[str]:
    if path.is_dir():
        return sorted(str(x) for x in path.rglob("*.wp"))
    if path.exists():
        return [str(path)]
    return []


def collect_files(paths: list[str]) -> list[str]:
    """Expand files, directories and glob patterns into a de-duplicated list of programs."""
    found: dict[str, None] = {}
    for p in paths:
        for match in glob.glob(p) or [p]:
            found.update(dict.fromkeys(_programs_under(Path(match))))
    return list(found)


def run_one(script: Path, testfile: str) -> int:
    print(f"==> {testfile}")
    p = subprocess.run([sys.executable, str(script), str(Path(testfile).resolve())], cwd=str(script.parent))
    return p.returncode


def main() -> int:
    ap = argparse.ArgumentParser(description="Check the verdict of hoare_main.py on a set of .wp programs.")
    ap.add_argument("paths", nargs="+", help="program files, directories or globs (e.g. programs/ foo.wp)")
    ap.add_argument("--script", default=str(DEFAULT_SCRIPT), help="driver to run (default: src/hoare_main.py)")
    ap.add_argument("--fail-fast", action="store_true", help="stop at the first unexpected verdict")
    args = ap.parse_args()

    script = Path(args.script).resolve()
    if not script.exists():
        print(f"error: script not found: {script}", file=sys.stderr)
        return 2
    files = collect_files(args.paths)
    if not files:
        print("error: no .wp files found", file=sys.stderr)
        return 2

    failures = 0
    for f in files:
        rc, want = run_one(script, f), expected_returncode(f)
        if rc != want:
            print(f"FAIL: {f} exited {rc}, expected {want}")
            failures += 1
            if args.fail_fast:
                return 1

    print(f"{len(files) - failures}/{len(files)} programs as expected")
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
