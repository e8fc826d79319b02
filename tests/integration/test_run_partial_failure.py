from __future__ import annotations

import json
from pathlib import Path

from stock_import.cli.__main__ import main as cli_main
from stock_import.config.loader import load_config
from stock_import.db.store import InMemoryInventoryStore
from stock_import.logging.error_log import ErrorLogBuffer
from stock_import.models.import_result import ImportOutcome
from stock_import.models.raw_matrix import RawMatrix
from stock_import.models.variant_item import VariantItem
from stock_import.services.orchestrator import run_import

HEADER = ["Style", "Color", "Size", "Qty"]


def _matrix(n: int) -> RawMatrix:
    return RawMatrix.from_rows([HEADER] + [[f"S{i}", "Red", "4", 1] for i in range(n)])


def _store_with(n: int) -> InMemoryInventoryStore:
    store = InMemoryInventoryStore()
    store.replace_items("acme", [VariantItem(f"Acme P{i}", "Red", "4", stock=1) for i in range(n)])
    return store


def test_empty_upload_cannot_wipe_inventory(write_config, temp_workdir: Path):
    cfg = load_config(write_config)
    store = _store_with(1000)
    before = [i.sku for i in store.items("acme")]

    result = run_import(RawMatrix(), "acme", cfg, store, error_log=ErrorLogBuffer(temp_workdir / "logs"))

    assert result.outcome is ImportOutcome.BLOCKED
    assert [i.sku for i in store.items("acme")] == before
    assert store.load_snapshot("acme") is None


def test_drop_threshold(write_config, temp_workdir: Path):
    cfg = load_config(write_config)

    store = _store_with(100)
    assert run_import(_matrix(40), "acme", cfg, store, error_log=ErrorLogBuffer(temp_workdir / "logs")).is_blocked
    assert store.count_items("acme") == 100

    store = _store_with(100)
    result = run_import(_matrix(60), "acme", cfg, store, error_log=ErrorLogBuffer(temp_workdir / "logs"))
    assert result.outcome is ImportOutcome.SUCCESS
    assert store.count_items("acme") == 60


def test_cli_partial_failure_writes_error_log(write_config, make_xlsx, temp_workdir: Path, clean_logging, capsys):
    make_xlsx("acme.xlsx", [HEADER, ["A100", "Red", "4", 1], [None, "Red", "6", 1]])
    # acme-sale.xlsx is missing

    code = cli_main(["--dry-run"])
    out = capsys.readouterr().out

    assert code == 1
    assert "SUMMARY source=acme outcome=success" in out
    assert "ERROR read: acme-sale:" in out

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(r["data_source"], r["error_type"]) for r in records] == [
        ("acme", "ROW_SKIPPED"),
        ("acme-sale", "READ_ERROR"),
    ]
    assert records[0]["file"] == "acme.xlsx"
    assert records[0]["row"] == 2
