from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any

from ..config.loader import resolve_data_source
from ..db.store import InventoryStore
from ..excel.reader import read_files
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import DataSourceConfig, ImportConfig
from ..models.error_record import (
    EXTRACTOR_EMPTY,
    IMPORT_BLOCKED,
    PARSE_FAILED,
    ROW_SKIPPED,
    VALIDATION_FAILED,
)
from ..models.format_identity import DetectedFormat, FormatIdentity
from ..models.import_result import ImportOutcome, ImportResult, ImportStats
from ..models.raw_matrix import RawMatrix
from ..models.variant_item import VariantItem
from ..parsers.detector import detect_format
from ..parsers.extractors import ExtractContext, candidate_formats, extract
from .discontinued import register_sale_styles
from .pipeline import PipelineContext, run_pipeline
from .safety_net import check_safety_net
from .validation import capture_snapshot, validate_import

"""Import orchestration: one data source, one consolidated matrix, one result.

Flow per run (serialized per data source):

1. resolve the data source configuration
2. detect the format and run the extractor cascade
3. run the rule pipeline
4. apply the safety net against the currently persisted item count
5. validate against the previous snapshot
6. persist items, snapshot and (for sale sources) the discontinued registry
   in a single store transaction

Row-level problems are collected as warnings and error-log records; only a
total parse failure or a safety-net block changes the outcome.
"""

__all__ = [
    "ParseFailedError",
    "source_lock",
    "extract_with_cascade",
    "linked_regular_sources",
    "run_import",
    "import_files",
]

logger = logging.getLogger(__name__)

# one entry per configured data source; run_import resolves the id before locking
_source_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


class ParseFailedError(Exception):
    """Every extractor candidate produced nothing from a non-empty matrix."""


@contextmanager
def source_lock(source_id: str) -> Iterator[None]:
    """Serialize imports of the same data source; different sources run freely."""
    with _locks_guard:
        lock = _source_locks.setdefault(source_id, threading.Lock())
    with lock:
        yield


def extract_with_cascade(
    matrix: RawMatrix,
    config: DataSourceConfig,
    detected: DetectedFormat,
    context: ExtractContext,
) -> tuple[list[VariantItem], FormatIdentity]:
    """Try the detected format, then the row and generic pivot extractors."""
    for identity in candidate_formats(detected.identity):
        items = extract(identity, matrix, config, context)
        if items:
            return items, identity
        context.warn(f"{identity.value} extractor produced no items")
    raise ParseFailedError(f"no extractor produced items (detected {detected.identity.value})")


def linked_regular_sources(config: ImportConfig, sale_source_id: str) -> list[str]:
    return [
        source_id
        for source_id, raw in config.data_sources.items()
        if (raw or {}).get("linked_sale_source") == sale_source_id
    ]


def _record_context(error_log: ErrorLogBuffer, source_id: str, file_name: str, context: ExtractContext, row_offset: int) -> None:
    for row, reason in context.skipped_rows:
        error_log.record(source_id, file_name, row + row_offset, ROW_SKIPPED, reason)
    for warning in context.warnings:
        if "produced no items" in warning:
            error_log.record(source_id, file_name, -1, EXTRACTOR_EMPTY, warning)


def run_import(
    matrix: RawMatrix,
    source_id: str,
    config: ImportConfig,
    store: InventoryStore,
    *,
    file_name: str | None = None,
    file_id: str | None = None,
    override: Mapping[str, Any] | None = None,
    style_prices: Mapping[str, float] | None = None,
    today: date | None = None,
    dry_run: bool = False,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Import one consolidated matrix for ``source_id``.

    Raises:
        ConfigError: unknown data source or invalid merged configuration
        StoreError: the store failed; nothing from this run is persisted
    """
    owns_log = error_log is None
    log = error_log if error_log is not None else ErrorLogBuffer(Path(config.logs_dir))
    shown_file = file_name or ""

    ds = resolve_data_source(config, source_id, override)
    with source_lock(source_id):
        work = matrix.skip(ds.skip_rows)
        forced = ds.format or ("configured_grouped" if ds.grouped_pivot is not None else None)
        detected = detect_format(work, ds.name, file_name, forced)
        logger.info(f"{source_id}: format {detected.identity.value} ({detected.provenance.value})")

        context = ExtractContext(data_source_name=ds.name, file_name=file_name)
        used: FormatIdentity | None = None
        items: list[VariantItem] = []
        if not work.is_empty:
            try:
                items, used = extract_with_cascade(work, ds, detected, context)
            except ParseFailedError as e:
                logger.error(f"{source_id}: {e}")
                _record_context(log, source_id, shown_file, context, ds.skip_rows)
                log.record(source_id, shown_file, -1, PARSE_FAILED, str(e))
                if owns_log:
                    log.flush()
                return ImportResult(
                    source_id=source_id,
                    outcome=ImportOutcome.PARSE_FAILED,
                    items=[],
                    stats=ImportStats(rows_skipped=len(context.skipped_rows)),
                    detected=detected,
                    warnings=tuple(context.warnings),
                    message=str(e),
                )
        _record_context(log, source_id, shown_file, context, ds.skip_rows)

        registry: tuple[str, ...] = ()
        if not ds.is_sale_source and ds.linked_sale_source:
            registry = tuple(store.discontinued_styles(ds.linked_sale_source))

        pipeline_context = PipelineContext(today=today, style_prices=style_prices, discontinued_styles=registry)
        items, stats = run_pipeline(items, ds, pipeline_context)
        stats.rows_skipped = len(context.skipped_rows)
        warnings = tuple(context.warnings + pipeline_context.warnings)
        used_format = used.value if used is not None else None

        existing = store.count_items(source_id)
        block = check_safety_net(existing, len(items))
        if block is not None:
            logger.warning(f"{source_id}: import blocked: {block.reason}")
            log.record(source_id, shown_file, -1, IMPORT_BLOCKED, block.reason)
            if owns_log:
                log.flush()
            return ImportResult(
                source_id=source_id,
                outcome=ImportOutcome.BLOCKED,
                items=items,
                stats=stats,
                detected=detected,
                used_format=used_format,
                blocked=block,
                warnings=warnings,
                message=block.reason,
            )

        previous = store.load_snapshot(source_id)
        snapshot = capture_snapshot(items)
        report = validate_import(items, previous, ds.validation, snapshot)
        for failure in report.failures:
            log.record(source_id, shown_file, -1, VALIDATION_FAILED, f"{failure.name}: {failure.message}")

        if not dry_run:
            with store.transaction():
                store.replace_items(source_id, items, file_id)
                store.save_snapshot(source_id, snapshot)
                if ds.is_sale_source:
                    registered = register_sale_styles(store, source_id, items)
                    stats.sale_styles_registered = registered.total
                    styles = store.discontinued_styles(source_id)
                    for regular_id in linked_regular_sources(config, source_id):
                        removed = store.remove_styles(regular_id, styles)
                        if removed:
                            logger.info(f"{regular_id}: removed {removed} persisted items of discontinued styles")

        if owns_log:
            log.flush()
        logger.info(
            f"{source_id}: {stats.final_count} items "
            f"({'dry run' if dry_run else 'persisted'}, {len(report.failures)} validation failures)"
        )
        return ImportResult(
            source_id=source_id,
            outcome=ImportOutcome.SUCCESS,
            items=items,
            stats=stats,
            detected=detected,
            used_format=used_format,
            snapshot=snapshot,
            validation=report,
            warnings=warnings,
        )


def import_files(
    paths: Sequence[Path],
    source_id: str,
    config: ImportConfig,
    store: InventoryStore,
    *,
    sheet: str | int | None = None,
    file_name: str | None = None,
    **kwargs: Any,
) -> ImportResult:
    """Read and consolidate every file first, then import the single matrix."""
    matrix = read_files(paths, sheet)
    name = file_name or " ".join(p.name for p in paths)
    return run_import(matrix, source_id, config, store, file_name=name, **kwargs)
