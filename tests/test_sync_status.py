from decimal import Decimal

import pytest

from sync_model import SyncStateKind
from sync_status import GOOD_PROGRESS, NEAR_COMPLETE, classify, to_numeric


@pytest.mark.parametrize("height", [0, 1, 500, 12_345_678])
def test_equal_heights_are_synced(height):
    assert classify(height, height).kind is SyncStateKind.SYNCED


@pytest.mark.parametrize("local,remote", [(1, 0), (501, 500), (10_000, 9_999)])
def test_local_above_remote_is_ahead(local, remote):
    assert classify(local, remote).kind is SyncStateKind.AHEAD


@pytest.mark.parametrize("local,remote", [(0, 1), (1, 3), (499, 500), (9_998, 9_999)])
def test_syncing_progress_stays_below_100(local, remote):
    state = classify(local, remote)
    assert state.kind is SyncStateKind.SYNCING
    assert Decimal(0) <= state.progress < Decimal(100)


def test_unknown_on_either_side():
    assert classify(None, 10).kind is SyncStateKind.UNKNOWN
    assert classify(10, None).kind is SyncStateKind.UNKNOWN
    assert classify(None, None).kind is SyncStateKind.UNKNOWN


def test_ninety_percent_is_not_near_complete():
    state = classify(450, 500)
    assert state.kind is SyncStateKind.SYNCING
    assert str(state.progress) == "90.00"
    assert state.milestone == GOOD_PROGRESS


def test_milestone_boundaries_are_strict():
    # 90.20 still has integer part 90
    assert classify(451, 500).milestone == GOOD_PROGRESS
    assert classify(454, 500).milestone == GOOD_PROGRESS
    assert classify(455, 500).milestone == NEAR_COMPLETE
    assert classify(250, 500).milestone is None
    assert classify(254, 500).milestone is None
    assert classify(255, 500).milestone == GOOD_PROGRESS


def test_decorated_strings_are_stripped():
    assert to_numeric("1,234,567") == 1234567
    state = classify("1,000", "2,000")
    assert state.kind is SyncStateKind.SYNCING
    assert state.progress == Decimal("50.00")
    assert classify("1,000", 1000).kind is SyncStateKind.SYNCED


def test_non_numeric_input_is_invalid_data():
    assert classify("abc", 10).kind is SyncStateKind.INVALID_DATA
    assert classify(10, "n/a").kind is SyncStateKind.INVALID_DATA
    assert classify(True, 10).kind is SyncStateKind.INVALID_DATA
    assert classify(-5, 10).kind is SyncStateKind.INVALID_DATA
