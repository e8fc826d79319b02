from __future__ import annotations

from datetime import date

import pytest

from stock_import.models.format_identity import FormatIdentity, Provenance
from stock_import.models.raw_matrix import RawMatrix
from stock_import.parsers.detector import detect_by_name, detect_format


def _m(*rows):
    return RawMatrix.from_rows(rows)


@pytest.mark.parametrize(
    "name,file_name,expected",
    [
        ("Jovani Sale", None, FormatIdentity.INTERLEAVED_PIVOT),
        ("Feriani", None, FormatIdentity.GROUPED_PIVOT),
        ("Gia Franco", None, FormatIdentity.GROUPED_PIVOT),
        ("Tarik Ediz", None, FormatIdentity.SECTIONED_REPORT),
        ("Sherri Hill", None, FormatIdentity.ALTERNATING_PIVOT),
        ("Alyce", None, FormatIdentity.GENERIC_PIVOT),
        ("Vendor", "PR-1 stock.xlsx", FormatIdentity.DATE_HEADER_PIVOT),
        ("Vendor", "grn_0912.xlsx", FormatIdentity.INVOICE),
        ("Store", "inventory.xlsx", FormatIdentity.MULTI_BRAND_ROW),
        ("Acme", None, None),
    ],
)
def test_detect_by_name(name, file_name, expected):
    assert detect_by_name(name, file_name) is expected


def test_name_rule_beats_header_shape():
    matrix = _m(["Style", "Color", "00", "0", "2", "4", "6"], ["A", "Red", 1, 1, 1, 1, 1])
    detected = detect_format(matrix, "Sherri Hill", None)
    assert detected.identity is FormatIdentity.ALTERNATING_PIVOT
    assert detected.provenance is Provenance.NAME


def test_content_signature():
    matrix = _m(["Inventory Report - Up-To-Date"], ["x"])
    assert detect_format(matrix, "Acme").identity is FormatIdentity.SECTIONED_REPORT
    matrix = _m(["GRN 2291"], ["x"])
    detected = detect_format(matrix, "Acme")
    assert detected.identity is FormatIdentity.INVOICE
    assert detected.provenance is Provenance.CONTENT


@pytest.mark.parametrize(
    "header,expected",
    [
        (["Style", "Color", "OTS1", "OTS2"], FormatIdentity.QUOTA),
        (["Style", "Color", "Special Date", "2"], FormatIdentity.ALTERNATING_PIVOT),
        (["Delivery", "Style", "Color", "2", "4"], FormatIdentity.GROUPED_PIVOT),
        (["Product", "Available", 45000, "3/1/2030", "4/1/2030"], FormatIdentity.DATE_HEADER_PIVOT),
        (["Product", "Available", "2030-03-01", "2030-04-01", "2030-05-01"], FormatIdentity.DATE_HEADER_PIVOT),
        (["Product", "Available", date(2030, 3, 1), date(2030, 4, 1), date(2030, 5, 1)], FormatIdentity.DATE_HEADER_PIVOT),
        (["Product", "Available", 52000, 52031, 52061], FormatIdentity.DATE_HEADER_PIVOT),
        (["Style", "Color", "00", "0", "2", "4", "6"], FormatIdentity.GENERIC_PIVOT),
        (["Style", "Color", "OO0", "02", "32", "34", "36"], FormatIdentity.GENERIC_PIVOT),
        (["", "00", "0", "2", "4", "6"], FormatIdentity.INTERLEAVED_PIVOT),
        (["Vendor", "Style", "Color", "Size", "Qty"], FormatIdentity.MULTI_BRAND_ROW),
    ],
)
def test_header_shape(header, expected):
    matrix = _m(header, ["x", "y", 1])
    detected = detect_format(matrix, "Acme", "upload.xlsx")
    assert detected.identity is expected
    assert detected.provenance is Provenance.HEADER


def test_header_shape_scans_first_rows():
    matrix = _m(["Spring price list"], [], ["Style", "Color", "00", "0", "2", "4", "6"], ["A"])
    assert detect_format(matrix, "Acme").identity is FormatIdentity.GENERIC_PIVOT


def test_default_row_identity():
    matrix = _m(["Style", "Color", "Size", "Qty"], ["A", "Red", "4", 1])
    detected = detect_format(matrix, "Acme", "acme.xlsx")
    assert detected.identity is FormatIdentity.ROW
    assert detected.provenance is Provenance.FALLBACK


def test_short_matrix_is_row():
    assert detect_format(_m(["Style"]), "Acme").identity is FormatIdentity.ROW


def test_forced_format_and_aliases():
    matrix = _m(["Style", "Color", "Size", "Qty"], ["A", "Red", "4", 1])
    detected = detect_format(matrix, "Acme", None, "jovani")
    assert detected.identity is FormatIdentity.INTERLEAVED_PIVOT
    assert detected.provenance is Provenance.CONFIGURED
    assert detect_format(matrix, "Acme", None, "configured-grouped").identity is FormatIdentity.CONFIGURED_GROUPED


def test_unknown_forced_format_falls_back_to_detection():
    matrix = _m(["Style", "Color", "Size", "Qty"], ["A", "Red", "4", 1])
    detected = detect_format(matrix, "Acme", None, "nonsense")
    assert detected.identity is FormatIdentity.ROW
    assert detected.provenance is Provenance.FALLBACK
