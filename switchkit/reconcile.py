"""Fill CSV result columns with the files each row refers to."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Sequence

from .errors import ValidationError
from .matching import find_in_location
from .models import MatchRule, ScanResult, Table
from .report import ReportBuilder
from .tabular import format_cell, load_csv, save_csv

LOGGER = logging.getLogger(__name__)

Finder = Callable[..., ScanResult]


def rules_from_json(raw: str, source: str) -> list[Any]:
    """Decode a rule object or list of rule objects held in ``source``."""

    try:
        rules = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{source} is not valid JSON: {exc}") from exc
    if isinstance(rules, dict):
        rules = [rules]
    if not isinstance(rules, list):
        raise ValidationError(f"{source} must hold a rule object or a list of rules")
    return rules


def parse_rules(rules: Iterable[MatchRule | Mapping[str, Any]]) -> list[MatchRule]:
    parsed = [rule if isinstance(rule, MatchRule) else MatchRule.from_mapping(rule) for rule in rules]
    if not parsed:
        raise ValidationError("At least one match rule is required")
    return parsed


def _resolve_value(rule: MatchRule, value: str) -> str:
    if rule.results_append_method != "full" or not rule.use_different_root_location:
        return value
    relative = os.path.relpath(value, str(rule.scan_location))
    return os.path.join(rule.use_different_root_location, relative)


def _apply_rule(table: Table, rule: MatchRule, report: ReportBuilder, finder: Finder) -> None:
    match_indexes = table.header_indexes(rule.column_to_match)
    if not match_indexes:
        report.add_row(
            rule.if_column_to_match_not_present,
            f'Column "{rule.column_to_match}" is not present in the CSV file.',
        )
        return
    if len(match_indexes) > 1:
        report.add_row(
            "error",
            f'Column "{rule.column_to_match}" appears {len(match_indexes)} times in the CSV file;',
            "cannot decide which one to match.",
        )
        return
    if not rule.scan_location.is_dir():
        report.add_row("error", f"Scan location {rule.scan_location} does not exist.")
        return

    source_index = match_indexes[0]
    result_indexes = table.ensure_column(rule.column_for_results)
    return_type = list(dict.fromkeys([rule.results_append_method, "name"]))

    for offset, row in enumerate(table.rows):
        row_number = table.row_number(offset)
        needle = format_cell(row[source_index]).strip()
        if not needle:
            report.add_row("warning", f'Row {row_number}: "{rule.column_to_match}" is empty, nothing to match.')
            continue

        found = finder(
            needle,
            rule.scan_location,
            allowed_ext=rule.allowed_ext,
            partial_match=rule.match_method == "partial",
            return_type=return_type,
            depth=rule.depth,
        )
        values = found.results[rule.results_append_method]
        names = found.results["name"]

        if not values:
            report.add_row("warning", f'Row {row_number}: no file found for "{needle}" in {rule.scan_location}.')
        elif len(values) > 1:
            report.add_row(
                "warning",
                f'Row {row_number}: {len(values)} files found for "{needle}", none written:',
                ", ".join(names) + ".",
            )
        else:
            value = _resolve_value(rule, values[0])
            for index in result_indexes:
                row[index] = value
            report.add_row("success", f'Row {row_number}: "{needle}" matched {value}.')


def reconcile(
    table: Table,
    rules: Sequence[MatchRule],
    *,
    report: ReportBuilder | None = None,
    finder: Finder = find_in_location,
) -> tuple[Table, ReportBuilder]:
    """Apply every rule to ``table`` in order, mutating it in place.

    Ambiguous rows (several matching files) are reported and left untouched.
    """

    report = report or ReportBuilder()
    for rule in rules:
        LOGGER.debug("Matching column %r against %s", rule.column_to_match, rule.scan_location)
        _apply_rule(table, rule, report, finder)
    LOGGER.info("Reconciliation finished: %s", report.counts())
    return table, report


def match_files_to_csv_data(
    csv_path: Path | str,
    rules: Iterable[MatchRule | Mapping[str, Any]],
    *,
    save_to: Path | str | None = None,
    overwrite: bool = False,
    report: ReportBuilder | None = None,
) -> tuple[Table, ReportBuilder]:
    """Load ``csv_path``, reconcile it against ``rules`` and optionally save it.

    Every rule and the CSV path are validated before any row is processed.
    """

    parsed = parse_rules(rules)
    table = load_csv(csv_path)
    table, report = reconcile(table, parsed, report=report)

    if save_to is not None:
        save_csv(table, save_to)
    elif overwrite:
        save_csv(table)
    return table, report
