# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from stock_import.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """logs_dir: logs
color_map:
  blk: Black
data_sources:
  acme:
    name: Acme
    linked_sale_source: acme-sale
    files: [data/acme.xlsx]
  acme-sale:
    name: Acme Sale
    source_type: sales
    files: [data/acme-sale.xlsx]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_xlsx(temp_workdir: Path) -> Callable[..., Path]:
    """Write rows (no header handling) to ``data/<name>`` with openpyxl."""

    def _make(name: str, rows: Sequence[Sequence[Any]], sheet: str = "Sheet1") -> Path:
        path = temp_workdir / "data" / name
        df = pd.DataFrame([list(r) for r in rows])
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet, header=False, index=False)
        return path

    return _make


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
