from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

from stock_import.config.loader import load_config
from stock_import.db.store import InMemoryInventoryStore
from stock_import.excel.reader import read_matrix
from stock_import.logging.error_log import ErrorLogBuffer
from stock_import.models.import_result import ImportOutcome
from stock_import.services.orchestrator import import_files


def test_date_formatted_headers_import_as_date_header_pivot(write_config, make_xlsx, temp_workdir: Path):
    header = ["Product", "Available", datetime(2030, 3, 1), datetime(2030, 4, 1), datetime(2030, 5, 1)]
    path = make_xlsx("acme-arrivals.xlsx", [header, ["A1-Red-4", 2, 5, 0, 3], ["A2-Blue-6", 0, 0, 4, 0]])
    assert read_matrix(path).row(0)[2:] == ("2030-03-01", "2030-04-01", "2030-05-01")

    store = InMemoryInventoryStore()
    result = import_files(
        [path], "acme", load_config(write_config), store,
        error_log=ErrorLogBuffer(temp_workdir / "logs"), today=date(2026, 1, 1),
    )

    assert result.outcome is ImportOutcome.SUCCESS
    assert result.used_format == "date_header_pivot"
    # one item per variant survives; the on-hand row comes first
    assert result.stats.duplicates_removed == 2
    rows = {(i.style, i.color, i.size, i.stock, i.incoming_stock, i.ship_date) for i in store.items("acme")}
    assert rows == {
        ("Acme A1", "Red", "4", 2, None, None),
        ("Acme A2", "Blue", "6", 0, 4, "2030-04-01"),
    }


def test_generic_pivot_reads_every_size_column(write_config, make_xlsx, temp_workdir: Path):
    header = ["Style", "Color", "OO0", "02", 4, 6, 8, 32, 34, 36]
    path = make_xlsx("acme-sizes.xlsx", [header, ["G1", "Black"] + [1] * 8])

    store = InMemoryInventoryStore()
    result = import_files(
        [path], "acme", load_config(write_config), store, error_log=ErrorLogBuffer(temp_workdir / "logs")
    )

    assert result.used_format == "generic_pivot"
    assert [i.size for i in store.items("acme")] == ["000", "2", "4", "6", "8", "32", "34", "36"]
    assert {i.stock for i in store.items("acme")} == {1}
