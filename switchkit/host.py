"""Interfaces of the job host that the helpers talk to.

The host runtime supplies the real objects; these protocols only name the
calls switchkit makes so tests can inject a fake.
"""
from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AccessLevel(str, Enum):
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"


class DatasetModel(str, Enum):
    JSON = "JSON"
    XML = "XML"
    OPAQUE = "Opaque"


class ConnectionLevel(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@runtime_checkable
class Job(Protocol):
    def create_dataset(self, name: str, path: str, model: DatasetModel) -> None: ...

    def list_datasets(self) -> Iterable[Mapping[str, Any]]: ...

    def get_dataset(self, name: str, access_level: AccessLevel) -> str: ...

    def log(self, level: LogLevel, message: str) -> None: ...

    def create_child(self, path: str) -> "Job": ...

    def send_to_log(self, level: ConnectionLevel, model: DatasetModel, name: str | None = None) -> None: ...

    def send_to_data(self, level: ConnectionLevel, name: str | None = None) -> None: ...


@runtime_checkable
class FlowElement(Protocol):
    def has_property(self, name: str) -> bool: ...

    def get_property_string_value(self, name: str) -> str: ...


def _host_level(levelno: int) -> LogLevel:
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARNING
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


class HostLogHandler(logging.Handler):
    """Forwards Python log records to the job's message log."""

    def __init__(self, job: Job, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._job = job

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._job.log(_host_level(record.levelno), self.format(record))
        except Exception:  # pragma: no cover - logging must not raise
            self.handleError(record)
