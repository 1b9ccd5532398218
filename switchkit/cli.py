from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .config import DEFAULT_ENV_VAR, load_switch_config
from .errors import SwitchKitError, ValidationError
from .matching import IF_HAYSTACK_NOT_FOUND, LOOK_FOR, find_in_location
from .models import RETURN_KINDS
from .reconcile import match_files_to_csv_data, rules_from_json
from .tabular import excel_to_csv

LOGGER = logging.getLogger(__name__)

EXIT_CODES = {"success": 0, "warning": 1, "error": 2}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Helpers for job-processing flow elements")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    match_parser = subparsers.add_parser(
        "match", help="Fill CSV result columns with matching files")
    match_parser.add_argument("--csv", type=Path, required=True, help="CSV file to reconcile.")
    match_parser.add_argument(
        "--rules",
        type=Path,
        required=True,
        help="JSON file holding a match rule object or a list of rules.",
    )
    target = match_parser.add_mutually_exclusive_group()
    target.add_argument("--out", type=Path, help="Write the updated CSV here.")
    target.add_argument("--overwrite", action="store_true", help="Write the updated CSV over the input.")
    match_parser.add_argument("--report", type=Path, help="Write the HTML report to this path.")

    find_parser = subparsers.add_parser(
        "find", help="Search a directory tree for matching names")
    find_parser.add_argument("needle")
    find_parser.add_argument("root", type=Path)
    find_parser.add_argument("--depth", type=int, default=0, help="Directory levels to descend.")
    find_parser.add_argument("--exact", action="store_true", help="Require the whole name to match.")
    find_parser.add_argument("--case-sensitive", action="store_true")
    find_parser.add_argument("--ext", action="append", default=[], help="Allowed extension (repeatable).")
    find_parser.add_argument("--look-for", choices=LOOK_FOR, default="files")
    find_parser.add_argument(
        "--return", dest="return_type", action="append", choices=RETURN_KINDS,
        help="Result kind to print (repeatable, default full).",
    )
    find_parser.add_argument(
        "--if-not-found", choices=IF_HAYSTACK_NOT_FOUND, default="returnEmptyResults")

    excel_parser = subparsers.add_parser(
        "excel2csv", help="Convert each worksheet of a workbook to CSV")
    excel_parser.add_argument("workbook", type=Path)
    excel_parser.add_argument("out_dir", type=Path)
    excel_parser.add_argument("--include-hidden", action="store_true")
    excel_parser.add_argument("--min-rows", type=int, default=1)

    config_parser = subparsers.add_parser(
        "config", help="Print the settings file named by the environment")
    config_parser.add_argument("--env-var", default=DEFAULT_ENV_VAR)

    return parser


def _load_rules(path: Path) -> list:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(f"Rules file {path} cannot be read: {exc}") from exc
    return rules_from_json(raw, f"Rules file {path}")


def _run_match(args: argparse.Namespace) -> int:
    _, report = match_files_to_csv_data(
        args.csv,
        _load_rules(args.rules),
        save_to=args.out,
        overwrite=args.overwrite,
    )
    if args.report:
        report.write_html(args.report)
    for row in report.rows:
        print(f"[{row.severity.upper()}] {row.message}")
    counts = report.counts()
    print(f"Done. Errors: {counts['error']} | Warnings: {counts['warning']} | Success: {counts['success']}")
    return EXIT_CODES[report.highest_severity()]


def _run_find(args: argparse.Namespace) -> int:
    kinds = args.return_type or ["full"]
    found = find_in_location(
        args.needle,
        args.root,
        allowed_ext=args.ext,
        partial_match=not args.exact,
        case_sensitive=args.case_sensitive,
        return_type=kinds,
        depth=args.depth,
        look_for=args.look_for,
        if_haystack_not_found=args.if_not_found,
    )
    for kind in kinds:
        for value in found.results[kind]:
            print(value)
    LOGGER.info("%d result(s) in %.3fs", found.stats.results_found, found.stats.time_taken)
    return 0


def _run_excel(args: argparse.Namespace) -> int:
    sheets = excel_to_csv(args.workbook, include_hidden=args.include_hidden, min_rows=args.min_rows)
    args.out_dir.mkdir(parents=True, exist_ok=True)
    for title, content in sheets.items():
        target = args.out_dir / f"{args.workbook.stem}_{title}.csv"
        target.write_text(content, encoding="utf-8")
        print(target)
    return 0


def _run_config(args: argparse.Namespace) -> int:
    config = load_switch_config(args.env_var)
    print(json.dumps(dict(config.settings), indent=2))
    return 0


COMMANDS = {
    "match": _run_match,
    "find": _run_find,
    "excel2csv": _run_excel,
    "config": _run_config,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    command = COMMANDS.get(args.command)
    if command is None:
        parser.error("Unknown command")
        return 1
    try:
        return command(args)
    except SwitchKitError as exc:
        LOGGER.error("%s", exc)
        return EXIT_CODES["error"]


if __name__ == "__main__":  # pragma: no cover - exercised via CLI entry point
    raise SystemExit(main())
