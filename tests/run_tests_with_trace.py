"""Run the suite under ``trace`` and report line coverage per switchkit module."""
from __future__ import annotations

import argparse
import dis
import sys
import trace
from pathlib import Path
from types import CodeType

ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = ROOT / "switchkit"
DEFAULT_THRESHOLD = 0.8


def package_modules(package_dir: Path = PACKAGE_DIR) -> list[Path]:
    return sorted(path for path in package_dir.glob("*.py") if path.name != "__init__.py")


def executable_lines(path: Path) -> set[int]:
    """Line numbers that start a bytecode instruction anywhere in ``path``."""

    lines: set[int] = set()
    pending: list[CodeType] = [compile(path.read_text(encoding="utf-8"), str(path), "exec")]
    while pending:
        code = pending.pop()
        lines.update(lineno for _, lineno in dis.findlinestarts(code) if lineno)
        pending.extend(const for const in code.co_consts if isinstance(const, CodeType))
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--threshold", type=float, default=DEFAULT_THRESHOLD,
        help="Minimum covered fraction for each module (default %(default)s).",
    )
    parser.add_argument(
        "--module", dest="modules", action="append", type=Path,
        help="Module to check (repeatable, default every switchkit module).",
    )
    parser.add_argument("pytest_args", nargs="*", default=["tests"])
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    modules = args.modules or package_modules()

    sys.path.insert(0, str(ROOT))
    tracer = trace.Trace(count=True, trace=False,
                         ignoremods=("pytest", "pluggy", "_pytest"))
    exit_code = 0
    try:
        tracer.runctx(
            "raise SystemExit(pytest.main(pytest_args))",
            globals={"pytest": __import__("pytest")},
            locals={"pytest_args": list(args.pytest_args)},
        )
    except SystemExit as exc:  # pragma: no cover - invoked by pytest
        exit_code = exc.code or 0

    counts = tracer.results().counts
    executed_by_file: dict[Path, set[int]] = {}
    for (filename, lineno), count in counts.items():
        if count > 0:
            executed_by_file.setdefault(Path(filename).resolve(), set()).add(lineno)

    below = []
    for module in modules:
        eligible = executable_lines(module)
        covered = len(executed_by_file.get(module.resolve(), set()) & eligible)
        ratio = covered / len(eligible) if eligible else 1.0
        print(f"Coverage {module}: {ratio:.1%} ({covered}/{len(eligible)})")
        if ratio < args.threshold:
            below.append(module)

    if exit_code != 0:
        print(f"Test run failed with exit code {exit_code}.")
        return int(exit_code)
    if below:
        names = ", ".join(str(module) for module in below)
        print(f"Coverage below {args.threshold:.0%} for: {names}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
