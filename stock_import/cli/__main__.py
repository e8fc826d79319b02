from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from stock_import.config.loader import ConfigError, load_config, resolve_data_source
from stock_import.db.postgres import PostgresInventoryStore, connect
from stock_import.db.store import InMemoryInventoryStore, InventoryStore, StoreError
from stock_import.excel.reader import ReaderError, read_files
from stock_import.logging.error_log import ErrorLogBuffer
from stock_import.logging.init import log_summary, setup_logging
from stock_import.models.config_models import ImportConfig
from stock_import.models.error_record import READ_ERROR
from stock_import.models.import_result import ImportOutcome, ImportResult
from stock_import.parsers.detector import detect_format
from stock_import.services.orchestrator import import_files
from stock_import.services.progress import ProgressTracker
from stock_import.services.summary import render_summary_line

"""CLI entrypoint.

- Load ``.env`` (python-dotenv, overriding the process environment)
- Load and validate the YAML configuration
- Import every selected data source from its files (``--file`` or the
  data source's ``files`` list)
- Print one SUMMARY line per data source and map the outcomes to an exit
  code
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2
EXIT_BLOCKED = 3

INSPECT_ROWS = 5


@contextmanager
def _open_store(cfg: ImportConfig, dry_run: bool) -> Iterator[InventoryStore]:
    """Yield the in-memory store for dry runs (or without a DSN), else PostgreSQL."""
    if dry_run or not cfg.database.dsn:
        yield InMemoryInventoryStore()
        return
    conn = connect(cfg.database.dsn)
    try:
        cur = conn.cursor()
        try:
            yield PostgresInventoryStore(cur)
        finally:
            cur.close()
    finally:
        conn.close()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Supplier inventory spreadsheet importer")
    p.add_argument("--config", type=Path, default=Path("config/import.yml"), help="Configuration file")
    p.add_argument("--source", action="append", default=[], help="Data source id (repeatable; default all)")
    p.add_argument("--file", action="append", default=[], type=Path, help="Input file (repeatable; consolidated)")
    p.add_argument("--file-name", default=None, help="File name used for format detection")
    p.add_argument("--dry-run", action="store_true", help="Run against an in-memory store")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print detected format and first rows then exit")
    return p.parse_args(argv)


def _input_paths(args: argparse.Namespace, files: tuple[str, ...]) -> list[Path]:
    if args.file:
        return list(args.file)
    return [Path(f) for f in files]


def _inspect_data(cfg: ImportConfig, source_ids: list[str], args: argparse.Namespace) -> int:
    for source_id in source_ids:
        ds = resolve_data_source(cfg, source_id)
        paths = _input_paths(args, ds.files)
        if not paths:
            print(f"inspect: {source_id}: no input files")
            continue
        try:
            matrix = read_files(paths, ds.sheet).skip(ds.skip_rows)
        except ReaderError as e:
            print(f"inspect: {source_id}: read_error: {e}")
            return EXIT_FATAL
        file_name = args.file_name or " ".join(p.name for p in paths)
        detected = detect_format(matrix, ds.name, file_name, ds.format)
        print(f"SOURCE: {source_id} format={detected.identity.value} provenance={detected.provenance.value}")
        for i in range(min(INSPECT_ROWS, len(matrix))):
            print(f"  row{i}={list(matrix.row(i))}")
    return EXIT_SUCCESS_ALL


def _exit_code(results: list[ImportResult], fatal: int) -> int:
    if fatal or any(r.outcome is ImportOutcome.PARSE_FAILED for r in results):
        return EXIT_FATAL
    if any(r.is_blocked for r in results):
        return EXIT_BLOCKED
    if any(r.validation.failures for r in results):
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)

    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    source_ids = args.source or list(cfg.data_sources)
    unknown = [s for s in source_ids if s not in cfg.data_sources]
    if unknown:
        logger.error(f"config: unknown data source: {', '.join(unknown)}")
        return EXIT_FATAL

    if args.inspect_data:
        try:
            return _inspect_data(cfg, source_ids, args)
        except ConfigError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL

    error_log = ErrorLogBuffer(Path(cfg.logs_dir))
    results: list[ImportResult] = []
    fatal = 0
    try:
        with _open_store(cfg, args.dry_run) as store, ProgressTracker(len(source_ids)) as progress:
            for source_id in source_ids:
                progress.start_source(source_id)
                try:
                    ds = resolve_data_source(cfg, source_id)
                    paths = _input_paths(args, ds.files)
                    if not paths:
                        raise ReaderError(f"no input files for data source {source_id}")
                    result = import_files(
                        paths,
                        source_id,
                        cfg,
                        store,
                        sheet=ds.sheet,
                        file_name=args.file_name,
                        dry_run=args.dry_run,
                        error_log=error_log,
                    )
                except ConfigError as e:
                    logger.error(f"config: {e}")
                    fatal += 1
                except ReaderError as e:
                    logger.error(f"read: {source_id}: {e}")
                    error_log.record(source_id, args.file_name or "", -1, READ_ERROR, str(e))
                    fatal += 1
                else:
                    results.append(result)
                    log_summary(render_summary_line(result)[len("SUMMARY "):])
                    progress.set_postfix(items=result.stats.final_count)
                finally:
                    progress.finish_source()
    except StoreError as e:
        logger.error(f"store: {e}")
        fatal += 1
    finally:
        written = error_log.flush()
        if written is not None:
            logger.info(f"error log written: {written}")

    return _exit_code(results, fatal)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
