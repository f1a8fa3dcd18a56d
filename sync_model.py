# sync_model.py
"""Shared types for the Aztec sync checker.

A height is a plain ``int`` or ``None`` when it could not be determined.
``None`` is never treated as block 0.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional

Height = Optional[int]


class SyncCheckError(Exception):
    """Base class for everything the checker recovers from inside a cycle."""


class FetchError(SyncCheckError):
    """Network failure, timeout, error response or malformed body."""


class ParseError(FetchError):
    """A field that should hold a block number does not."""


class ResolutionExhausted(SyncCheckError):
    """Backward search went past height 0 without a proven block."""


class InvalidData(SyncCheckError):
    """A height could not be read as a number at classification time."""


# explorer blockStatus code for a proven block; other codes are passed through as ints
PROVEN_STATUS = 4


class SourceIdentity(Enum):
    PRIMARY = "RPC"
    FALLBACK = "AztecScan"
    NONE = "None"


class BlockRow(NamedTuple):
    height: int
    status: int


class SyncStateKind(Enum):
    UNKNOWN = "unknown"
    SYNCED = "synced"
    AHEAD = "ahead"
    SYNCING = "syncing"
    INVALID_DATA = "invalid_data"


@dataclass(frozen=True)
class SyncState:
    kind: SyncStateKind
    progress: Optional[Decimal] = None
    milestone: Optional[str] = None


@dataclass(frozen=True)
class SyncSnapshot:
    local_height: Height
    remote_height: Height
    remote_source: SourceIdentity
    timestamp: float
    state: SyncState

    def __post_init__(self):
        if (self.remote_height is None) != (self.remote_source is SourceIdentity.NONE):
            raise ValueError("remote_source must be NONE exactly when remote_height is unknown")


@dataclass
class RunningStats:
    total_checks: int = 0
    error_checks: int = 0
    last_source: SourceIdentity = SourceIdentity.NONE

    @property
    def successful_checks(self) -> int:
        # a cycle can log a local and a remote failure, so errors may outrun checks
        return max(0, self.total_checks - self.error_checks)

    @property
    def success_rate(self) -> int:
        if self.total_checks == 0:
            return 0
        return self.successful_checks * 100 // self.total_checks


def parse_block_number(value) -> int:
    """
    Read a JSON-RPC block number: an int, a string of digits, or a 0x-prefixed
    hex quantity. Anything else (including bools and negatives) is a ParseError.
    """
    if isinstance(value, bool):
        raise ParseError(f"expected block number, got {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        s = value.strip()
        try:
            if s.lower().startswith("0x"):
                number = int(s[2:], 16)
            elif s.isdigit():
                number = int(s)
            else:
                raise ValueError(s)
        except ValueError:
            raise ParseError(f"expected block number, got {value!r}") from None
    else:
        raise ParseError(f"expected block number, got {value!r}")
    if number < 0:
        raise ParseError(f"negative block number {number}")
    return number
