from __future__ import annotations

from pathlib import Path

from stock_import.config.loader import load_config
from stock_import.db.store import InMemoryInventoryStore
from stock_import.logging.error_log import ErrorLogBuffer
from stock_import.services.orchestrator import import_files

HEADER = ["Style", "Color", "Size", "Qty"]


def test_sale_source_discontinues_styles_of_linked_source(write_config, make_xlsx, temp_workdir: Path):
    cfg = load_config(write_config)
    store = InMemoryInventoryStore()
    log = ErrorLogBuffer(temp_workdir / "logs")

    regular = make_xlsx("acme.xlsx", [HEADER, ["ACME-100", "Red", "4", 2], ["ACME-100", "Red", "6", 1], ["ACME-200", "Red", "4", 4]])
    sale = make_xlsx("acme-sale.xlsx", [HEADER, ["ACME-100", "Red", "4", 1]])

    import_files([regular], "acme", cfg, store, error_log=log)
    assert store.count_items("acme") == 3

    sale_result = import_files([sale], "acme-sale", cfg, store, error_log=log)
    assert sale_result.stats.sale_styles_registered == 1
    assert store.discontinued_styles("acme-sale") == ["Acme ACME-100"]
    # persisted items of the discontinued style are gone from the linked source
    assert [i.style for i in store.items("acme")] == ["Acme ACME-200"]

    again = import_files([regular], "acme", cfg, store, error_log=log)
    assert again.stats.discontinued_styles_filtered == 2
    assert again.stats.discontinued_styles == ["Acme ACME-100"]
    assert [i.sku for i in store.items("acme")] == ["Acme-ACME-200-Red-4"]


def test_new_sale_list_replaces_previous_registry(write_config, make_xlsx, temp_workdir: Path):
    cfg = load_config(write_config)
    store = InMemoryInventoryStore()
    log = ErrorLogBuffer(temp_workdir / "logs")

    first = make_xlsx("acme-sale.xlsx", [HEADER, ["ACME-100", "Red", "4", 1], ["ACME-300", "Red", "4", 1]])
    result = import_files([first], "acme-sale", cfg, store, error_log=log)
    assert result.stats.sale_styles_registered == 2

    second = make_xlsx("acme-sale-2.xlsx", [HEADER, ["ACME-300", "Red", "4", 1], ["ACME-400", "Red", "4", 1]])
    import_files([second], "acme-sale", cfg, store, error_log=log)
    assert store.discontinued_styles("acme-sale") == ["Acme ACME-300", "Acme ACME-400"]
