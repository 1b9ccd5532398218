"""Dataset helpers that hide the temp-file bookkeeping the host API needs."""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
import shutil
from typing import Any

from .errors import DatasetError, ValidationError
from .host import AccessLevel, DatasetModel, FlowElement, Job, LogLevel
from .naming import unique_path

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class TempFile:
    """A temporary file the caller must release once the host has consumed it."""

    path: Path

    def remove(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            LOGGER.debug("Temp file %s was already removed", self.path)

    def __enter__(self) -> "TempFile":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.remove()


def _check_target(name: str, tmp_store: Path | str | None) -> Path:
    if not isinstance(name, str) or not name:
        raise ValidationError(f"Dataset name {name!r} is invalid")
    if not tmp_store or not Path(tmp_store).is_dir():
        raise ValidationError(f'Invalid location "{tmp_store}" for storing temporary metadata files')
    return Path(tmp_store)


def create_dataset(job: Job, name: str, payload: Any, tmp_store: Path | str | None) -> TempFile:
    """Attach ``payload`` to ``job`` as a JSON dataset.

    The payload is written to a uniquely named file in ``tmp_store``. Call
    ``remove()`` on the returned handle after the job has been sent on.
    """

    if not isinstance(payload, (dict, list)):
        raise ValidationError(
            f'Expected a JSON object or array, got "{type(payload).__name__}". '
            "A dataset can only be created from an object"
        )
    store = _check_target(name, tmp_store)

    location = unique_path(store, "dataset", ".json")
    with location.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle)

    handle = TempFile(location)
    try:
        job.create_dataset(name, str(location), DatasetModel.JSON)
    except Exception:
        handle.remove()
        raise
    return handle


def create_opaque_dataset(job: Job, name: str, source: Path | str, tmp_store: Path | str | None) -> TempFile:
    """Attach an arbitrary file to ``job`` with the opaque dataset model."""

    store = _check_target(name, tmp_store)
    source = Path(source)
    if not source.is_file():
        raise ValidationError(f"Dataset source {source} is not a file")

    location = unique_path(store, "dataset", source.suffix)
    shutil.copyfile(source, location)

    handle = TempFile(location)
    try:
        job.create_dataset(name, str(location), DatasetModel.OPAQUE)
    except Exception:
        handle.remove()
        raise
    return handle


def dataset_exists(job: Job, name: str) -> bool:
    try:
        return any(entry.get("name") == name for entry in job.list_datasets())
    except Exception as exc:
        job.log(LogLevel.WARNING, str(exc))
        return False


def get_dataset(job: Job, name: str) -> Any:
    """Return the decoded JSON content of dataset ``name``."""

    try:
        if not dataset_exists(job, name):
            raise DatasetError(f'Dataset "{name}" does not exist')
        location = job.get_dataset(name, AccessLevel.READ_ONLY)
        with open(location, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except Exception as exc:
        job.log(LogLevel.WARNING, str(exc))
        if isinstance(exc, DatasetError):
            raise
        raise DatasetError(str(exc)) from exc


def get_property(flow_element: FlowElement, name: str) -> str | None:
    if flow_element.has_property(name):
        return flow_element.get_property_string_value(name)
    return None
