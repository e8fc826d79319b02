from __future__ import annotations

from pathlib import Path

import pytest

from stock_import.config.loader import (
    ConfigError,
    load_config,
    merge_layers,
    resolve_data_source,
)


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert set(cfg.data_sources) == {"acme", "acme-sale"}
    assert cfg.logs_dir == "logs"
    assert cfg.color_map == {"blk": "Black"}
    assert cfg.database.dsn is None


def test_load_config_missing_file(temp_workdir: Path):
    missing = temp_workdir / "config" / "not_exists.yml"
    with pytest.raises(ConfigError):
        load_config(missing)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("data_sources: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


def test_load_config_missing_required(write_config: Path):
    write_config.write_text("logs_dir: logs\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_bad_source_type(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("source_type: sales", "source_type: outlet")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


def test_database_url_env_wins(write_config: Path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u@localhost/stock")
    cfg = load_config(write_config)
    assert cfg.database.dsn == "postgresql://u@localhost/stock"


def test_merge_layers_precedence():
    base = {"a": 1, "nested": {"x": 1, "y": 2}, "items": [1, 2]}
    top = {"a": None, "nested": {"y": 3}, "items": [9]}
    merged = merge_layers(base, None, top)
    assert merged == {"a": 1, "nested": {"x": 1, "y": 3}, "items": [9]}
    # inputs untouched
    assert base["nested"] == {"x": 1, "y": 2}


def test_resolve_data_source(write_config: Path):
    cfg = load_config(write_config)
    ds = resolve_data_source(cfg, "acme")
    assert ds.name == "Acme"
    assert ds.linked_sale_source == "acme-sale"
    assert ds.files == ("data/acme.xlsx",)
    assert ds.sheet is None
    assert ds.color_map == {"blk": "Black"}
    assert ds.future_dates.enabled is True
    assert ds.cleaning.trim_whitespace is True
    assert not ds.is_sale_source

    sale = resolve_data_source(cfg, "acme-sale")
    assert sale.is_sale_source


def test_resolve_layer_precedence(write_config: Path):
    text = write_config.read_text(encoding="utf-8")
    text = text.replace(
        "data_sources:\n",
        "defaults:\n  skip_rows: 1\n  future_dates:\n    offset_days: 3\ndata_sources:\n",
    )
    text = text.replace("    files: [data/acme.xlsx]\n", "    files: [data/acme.xlsx]\n    skip_rows: 2\n    sheet: Stock\n")
    write_config.write_text(text, encoding="utf-8")
    cfg = load_config(write_config)

    ds = resolve_data_source(cfg, "acme")
    assert ds.skip_rows == 2
    assert ds.sheet == "Stock"
    assert ds.future_dates.offset_days == 3
    assert ds.future_dates.enabled is True

    overridden = resolve_data_source(cfg, "acme", {"skip_rows": 5, "future_dates": {"enabled": False}})
    assert overridden.skip_rows == 5
    assert overridden.future_dates.enabled is False
    assert overridden.future_dates.offset_days == 3

    assert resolve_data_source(cfg, "acme-sale").skip_rows == 1


def test_resolve_source_color_map_extends_global(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "    name: Acme\n", "    name: Acme\n    color_map:\n      nvy: Navy\n", 1
    )
    write_config.write_text(text, encoding="utf-8")
    ds = resolve_data_source(load_config(write_config), "acme")
    assert ds.color_map == {"blk": "Black", "nvy": "Navy"}


def test_resolve_unknown_source(write_config: Path):
    cfg = load_config(write_config)
    with pytest.raises(ConfigError) as e:
        resolve_data_source(cfg, "nope")
    assert "unknown data source: nope" in str(e.value)


def test_build_nested_rule_families(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "    files: [data/acme.xlsx]\n",
        "    files: [data/acme.xlsx]\n"
        "    variant_rules:\n"
        "      size_limits:\n"
        "        enabled: true\n"
        "        min_size: 0\n"
        "        max_size: 16\n"
        "      expansion_rules:\n"
        "        - expand_down_count: 1\n"
        "          expand_up_count: 2\n"
        "    price_expansion:\n"
        "      enabled: true\n"
        "      tiers:\n"
        "        - min_price: 0\n"
        "          max_price: 300\n"
        "          expand_down_count: 1\n",
    )
    write_config.write_text(text, encoding="utf-8")
    ds = resolve_data_source(load_config(write_config), "acme")
    limits = ds.variant_rules.size_limits
    assert (limits.enabled, limits.min_size, limits.max_size) == (True, "0", "16")
    rule = ds.variant_rules.expansion_rules[0]
    assert (rule.expand_down_count, rule.expand_up_count, rule.min_trigger_stock) == (1, 2, 1)
    tier = ds.price_expansion.tiers[0]
    assert (tier.min_price, tier.max_price, tier.expand_down_count) == (0.0, 300.0, 1)
