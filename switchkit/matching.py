"""Depth-bounded search for files and folders whose names match a needle."""
from __future__ import annotations

import logging
import os
from pathlib import Path
import time
from typing import Iterable, Iterator, List

from .errors import HaystackNotFoundError, ValidationError
from .models import RETURN_KINDS, ScanResult, ScanStats, normalise_extensions

LOGGER = logging.getLogger(__name__)

LOOK_FOR = ("files", "folders", "both")
IF_HAYSTACK_NOT_FOUND = ("returnEmptyResults", "throwError")


def _validate_return_type(return_type: str | Iterable[str]) -> list[str]:
    kinds = [return_type] if isinstance(return_type, str) else list(return_type)
    if not kinds:
        raise ValidationError("returnType must name at least one of " + ", ".join(RETURN_KINDS))
    unknown = [kind for kind in kinds if kind not in RETURN_KINDS]
    if unknown:
        raise ValidationError(f"Unknown returnType value(s): {', '.join(map(str, unknown))}")
    return list(dict.fromkeys(kinds))


def _list_dir(path: str | os.PathLike[str]) -> List[os.DirEntry[str]]:
    with os.scandir(path) as entries:
        return sorted(entries, key=lambda entry: entry.name)


def _walk(root: Path, depth: int, stats: ScanStats) -> Iterator[os.DirEntry[str]]:
    """Yield candidate entries, descending into a directory before yielding it.

    An explicit stack replaces recursion; each frame remembers the directory
    it lists so that directory is yielded once its children are exhausted.
    """

    stats.folders_scanned += 1
    stack = [(iter(_list_dir(root)), 0, None)]
    while stack:
        entries, level, owner = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            if owner is not None:
                yield owner
            continue
        if level < depth and entry.is_dir():
            stats.folders_scanned += 1
            stack.append((iter(_list_dir(entry.path)), level + 1, entry))
            continue
        yield entry


def find_in_location(
    needle: str,
    haystack: Path | str,
    *,
    allowed_ext: Iterable[str] = (),
    partial_match: bool = True,
    case_sensitive: bool = False,
    return_type: str | Iterable[str] = ("full",),
    depth: int = 0,
    look_for: str = "files",
    if_haystack_not_found: str = "returnEmptyResults",
) -> ScanResult:
    """Search ``haystack`` for entries whose name matches ``needle``.

    ``depth`` 0 only scans the root directory; every additional level lets the
    walk descend one more directory. Directories are descended into and are
    also tested as candidates themselves.

    Returns a :class:`ScanResult` holding one list per requested return kind:
    ``full`` paths, bare ``name`` values or ``nameProper`` (name without the
    extension).
    """

    kinds = _validate_return_type(return_type)
    if look_for not in LOOK_FOR:
        raise ValidationError(f"lookFor must be one of {', '.join(LOOK_FOR)}; got {look_for!r}")
    if if_haystack_not_found not in IF_HAYSTACK_NOT_FOUND:
        raise ValidationError(
            f"ifHaystackNotFound must be one of {', '.join(IF_HAYSTACK_NOT_FOUND)}; got {if_haystack_not_found!r}"
        )
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
        raise ValidationError(f"depth must be a non-negative integer; got {depth!r}")
    extensions = set(normalise_extensions(allowed_ext))

    result = ScanResult.empty(kinds)
    root = Path(haystack)
    if not root.is_dir():
        if if_haystack_not_found == "throwError":
            raise HaystackNotFoundError(f"Haystack {root} does not exist")
        LOGGER.debug("Haystack %s not found; returning empty results", root)
        return result

    target = needle if case_sensitive else needle.lower()
    stats = result.stats
    started = time.perf_counter()

    for entry in _walk(root, depth, stats):
        stats.entities_tested += 1
        is_dir = entry.is_dir()
        if look_for == "files" and is_dir:
            continue
        if look_for == "folders" and not is_dir:
            continue

        name = entry.name
        stem, ext = os.path.splitext(name)
        candidate = name if case_sensitive else name.lower()
        if partial_match:
            if target not in candidate:
                continue
        # An exact needle may omit the extension, so "A1" equals "A1.pdf".
        elif target != candidate and target != (stem if case_sensitive else stem.lower()):
            continue

        if extensions and ext.lower() not in extensions:
            continue

        stats.results_found += 1
        for kind in kinds:
            if kind == "full":
                result.results[kind].append(entry.path)
            elif kind == "name":
                result.results[kind].append(name)
            else:
                result.results[kind].append(stem)

    stats.time_taken = time.perf_counter() - started
    LOGGER.debug(
        "Scanned %s for %r: %d folders, %d entities, %d results in %.3fs",
        root,
        needle,
        stats.folders_scanned,
        stats.entities_tested,
        stats.results_found,
        stats.time_taken,
    )
    return result
