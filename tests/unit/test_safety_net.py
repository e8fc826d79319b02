from __future__ import annotations

import pytest

from stock_import.services.safety_net import check_safety_net


@pytest.mark.parametrize(
    "existing,new",
    [
        (1000, 0),
        (100, 40),
        (21, 10),
        (5, 0),
    ],
)
def test_blocked(existing, new):
    block = check_safety_net(existing, new)
    assert block is not None
    assert block.existing_count == existing
    assert block.new_count == new


@pytest.mark.parametrize(
    "existing,new",
    [
        (100, 60),
        (100, 50),
        (20, 1),
        (0, 0),
        (0, 500),
        (100, 300),
    ],
)
def test_allowed(existing, new):
    assert check_safety_net(existing, new) is None


def test_block_details():
    block = check_safety_net(1000, 0)
    assert block.drop_percent == 100.0
    assert "0 items" in block.reason

    partial = check_safety_net(100, 40)
    assert partial.drop_percent == 60.0
    assert "60%" in partial.reason
