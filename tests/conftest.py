import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from switchkit.config import SwitchConfig, load_switch_config


class FakeJob:
    """Records every host call so tests can assert on them."""

    def __init__(self, path: str = "job.csv") -> None:
        self.path = path
        self.datasets: dict[str, tuple[str, object]] = {}
        self.logs: list[tuple[object, str]] = []
        self.children: list["FakeJob"] = []
        self.sent_to_log: list[tuple[object, object, object]] = []
        self.sent_to_data: list[tuple[object, object]] = []
        self.fail_listing = False
        self.seen_files: dict[str, str] = {}

    def create_dataset(self, name, path, model):
        with open(path, "rb") as handle:
            self.seen_files[name] = handle.read().decode("utf-8", errors="replace")
        self.datasets[name] = (path, model)

    def list_datasets(self):
        if self.fail_listing:
            raise RuntimeError("dataset listing unavailable")
        return [{"name": name} for name in self.datasets]

    def get_dataset(self, name, access_level):
        return self.datasets[name][0]

    def log(self, level, message):
        self.logs.append((level, message))

    def create_child(self, path):
        child = FakeJob(path)
        with open(path, "r", encoding="utf-8") as handle:
            child.seen_files["content"] = handle.read()
        self.children.append(child)
        return child

    def send_to_log(self, level, model, name=None):
        self.sent_to_log.append((level, model, name))

    def send_to_data(self, level, name=None):
        self.sent_to_data.append((level, name))


class FakeFlowElement:
    def __init__(self, properties: dict[str, str] | None = None) -> None:
        self.properties = properties or {}

    def has_property(self, name):
        return name in self.properties

    def get_property_string_value(self, name):
        return self.properties[name]


@pytest.fixture
def job() -> FakeJob:
    return FakeJob()


@pytest.fixture
def flow_element() -> FakeFlowElement:
    return FakeFlowElement()


@pytest.fixture
def tmp_store(tmp_path: Path) -> Path:
    store = tmp_path / "tmp_store"
    store.mkdir()
    return store


@pytest.fixture
def switch_config(tmp_path: Path, tmp_store: Path, monkeypatch) -> SwitchConfig:
    settings = tmp_path / "switch.json"
    settings.write_text(json.dumps({"TempMetadataFileLocation": str(tmp_store)}))
    monkeypatch.setenv("SwitchConfig", str(settings))
    return load_switch_config()


@pytest.fixture
def scan_dir(tmp_path: Path) -> Path:
    """A small tree:

    docs/
        A1.pdf
        B2.PDF
        notes.txt
        A1 folder/
            A1_nested.pdf
            deeper/
                A1_deep.pdf
    """

    root = tmp_path / "docs"
    (root / "A1 folder" / "deeper").mkdir(parents=True)
    (root / "A1.pdf").write_text("a1")
    (root / "B2.PDF").write_text("b2")
    (root / "notes.txt").write_text("notes")
    (root / "A1 folder" / "A1_nested.pdf").write_text("nested")
    (root / "A1 folder" / "deeper" / "A1_deep.pdf").write_text("deep")
    return root
