"""Data models used by the matching and reconciliation helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .errors import ValidationError

LOGGER = logging.getLogger(__name__)

Cell = Union[str, int, float, bool]

RETURN_KINDS = ("full", "name", "nameProper")
MATCH_METHODS = ("full", "partial")
SEVERITIES = ("success", "warning", "error")
DEFAULT_RESULTS_COLUMN = "FileMatchResults"
DEFAULT_ALLOWED_EXT = (".pdf",)


def normalise_extensions(extensions: Iterable[str]) -> Tuple[str, ...]:
    """Lower-case every extension and make sure it starts with a dot."""

    normalised = []
    for ext in extensions:
        ext = str(ext).strip().lower()
        if not ext:
            continue
        normalised.append(ext if ext.startswith(".") else f".{ext}")
    return tuple(normalised)


@dataclass(slots=True)
class Table:
    """In-memory copy of a delimited file: a header row plus data rows."""

    headers: List[str]
    rows: List[List[Cell]]
    rows_start_index: int = 2
    source: Optional[Path] = None

    def header_indexes(self, name: str) -> list[int]:
        wanted = name.lower()
        return [i for i, header in enumerate(self.headers) if str(header).lower() == wanted]

    def ensure_column(self, name: str) -> list[int]:
        widest = max((len(row) for row in self.rows), default=0)
        if widest > len(self.headers):
            # Unnamed headers keep extra cells out of the way of appended columns.
            LOGGER.warning(
                "Rows hold %d cells but only %d headers; padding headers with blank names",
                widest,
                len(self.headers),
            )
            self.headers.extend([""] * (widest - len(self.headers)))
        indexes = self.header_indexes(name)
        if not indexes:
            self.headers.append(name)
            indexes = [len(self.headers) - 1]
        width = len(self.headers)
        for row in self.rows:
            if len(row) < width:
                row.extend([""] * (width - len(row)))
        return indexes

    def row_number(self, offset: int) -> int:
        return self.rows_start_index + offset


@dataclass(slots=True)
class ScanStats:
    folders_scanned: int = 0
    entities_tested: int = 0
    results_found: int = 0
    time_taken: float = 0.0


@dataclass(slots=True)
class ScanResult:
    """Matches grouped by return kind, plus statistics about the walk."""

    results: Dict[str, List[str]]
    stats: ScanStats = field(default_factory=ScanStats)

    @classmethod
    def empty(cls, return_type: Iterable[str]) -> "ScanResult":
        return cls(results={kind: [] for kind in return_type})

    def __len__(self) -> int:
        return self.stats.results_found


@dataclass(slots=True, frozen=True)
class ReportRow:
    severity: str
    message: str


def _choice(mapping: Mapping[str, Any], key: str, allowed: Iterable[str], default: str) -> str:
    value = mapping.get(key, default)
    if value not in allowed:
        raise ValidationError(f"{key} must be one of {', '.join(allowed)}; got {value!r}")
    return value


def _required_text(mapping: Mapping[str, Any], key: str) -> str:
    value = mapping.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required and must be a non-empty string")
    return value


@dataclass(slots=True, frozen=True)
class MatchRule:
    """One column-to-files reconciliation rule."""

    column_to_match: str
    scan_location: Path
    column_for_results: str = DEFAULT_RESULTS_COLUMN
    match_method: str = "full"
    results_append_method: str = "full"
    use_different_root_location: Optional[str] = None
    if_column_to_match_not_present: str = "error"
    allowed_ext: Tuple[str, ...] = DEFAULT_ALLOWED_EXT
    depth: int = 0

    def __post_init__(self) -> None:
        if not self.column_to_match:
            raise ValidationError("columnToMatch is required")
        if not isinstance(self.column_for_results, str) or not self.column_for_results.strip():
            raise ValidationError("columnForResults must be a non-empty string")
        if self.match_method not in MATCH_METHODS:
            raise ValidationError(f"matchMethod must be one of {', '.join(MATCH_METHODS)}")
        if self.results_append_method not in RETURN_KINDS:
            raise ValidationError(f"resultsAppendMethod must be one of {', '.join(RETURN_KINDS)}")
        if self.if_column_to_match_not_present not in SEVERITIES:
            raise ValidationError(
                f"ifColumnToMatchNotPresent must be one of {', '.join(SEVERITIES)}"
            )
        if isinstance(self.depth, bool) or not isinstance(self.depth, int) or self.depth < 0:
            raise ValidationError("depth must be a non-negative integer")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "MatchRule":
        if not isinstance(mapping, Mapping):
            raise ValidationError(f"Match rule must be an object, got {type(mapping).__name__}")

        different_root = mapping.get("useDifferentRootLocation") or None
        if different_root is not None and not isinstance(different_root, str):
            raise ValidationError("useDifferentRootLocation must be a string")

        allowed_ext = mapping.get("allowedExt", DEFAULT_ALLOWED_EXT)
        if isinstance(allowed_ext, str) or not isinstance(allowed_ext, Iterable):
            raise ValidationError("allowedExt must be a list of extensions")

        return cls(
            column_to_match=_required_text(mapping, "columnToMatch"),
            scan_location=Path(_required_text(mapping, "scanLocation")),
            column_for_results=(
                _required_text(mapping, "columnForResults")
                if mapping.get("columnForResults") is not None
                else DEFAULT_RESULTS_COLUMN
            ),
            match_method=_choice(mapping, "matchMethod", MATCH_METHODS, "full"),
            results_append_method=_choice(mapping, "resultsAppendMethod", RETURN_KINDS, "full"),
            use_different_root_location=different_root,
            if_column_to_match_not_present=_choice(
                mapping, "ifColumnToMatchNotPresent", SEVERITIES, "error"
            ),
            allowed_ext=normalise_extensions(allowed_ext),
            depth=mapping.get("depth", 0),
        )
