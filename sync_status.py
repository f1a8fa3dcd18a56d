# sync_status.py
import re
from typing import Optional

from number_format import calculate_percentage
from sync_model import InvalidData, SyncState, SyncStateKind

NEAR_COMPLETE = "near-complete"
GOOD_PROGRESS = "good-progress"

_NON_DIGITS = re.compile(r"[^0-9]")


def to_numeric(value) -> int:
    """
    Heights may arrive decorated ("1,234,567"); strip everything but digits.
    Raises InvalidData if nothing numeric is left.
    """
    if isinstance(value, bool):
        raise InvalidData(f"not a block number: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise InvalidData(f"negative block number: {value}")
        return value
    if isinstance(value, str):
        digits = _NON_DIGITS.sub("", value)
        if digits:
            return int(digits)
    raise InvalidData(f"not a block number: {value!r}")


def milestone_for(progress) -> Optional[str]:
    if progress is None:
        return None
    whole = int(progress)
    if whole > 90:
        return NEAR_COMPLETE
    if whole > 50:
        return GOOD_PROGRESS
    return None


def classify(local, remote) -> SyncState:
    """Turn a local and a remote height into a sync state."""
    if local is None or remote is None:
        return SyncState(SyncStateKind.UNKNOWN)
    try:
        local_num = to_numeric(local)
        remote_num = to_numeric(remote)
    except InvalidData:
        return SyncState(SyncStateKind.INVALID_DATA)

    if local_num == remote_num:
        return SyncState(SyncStateKind.SYNCED, calculate_percentage(local_num, remote_num))
    if local_num > remote_num:
        return SyncState(SyncStateKind.AHEAD)

    progress = calculate_percentage(local_num, remote_num)
    return SyncState(SyncStateKind.SYNCING, progress, milestone_for(progress))
