# proven_resolver.py
"""Resolve the remote proven height: primary RPC first, explorer search second."""
import sys
from typing import Optional, Tuple

from sync_model import (
    PROVEN_STATUS,
    FetchError,
    Height,
    ResolutionExhausted,
    SourceIdentity,
)

DEFAULT_WINDOW = 20


class ProvenHeightResolver:
    """
    Walks the explorer backwards from the tip, one window per request, and
    returns the highest proven height in the first window that has any.

    Later windows are never consulted once a window hits, so the answer is the
    newest proven block only if proven blocks form a suffix of the chain.
    """

    def __init__(self, explorer, window: int = DEFAULT_WINDOW):
        if window < 1:
            raise ValueError("window must be >= 1")
        self.explorer = explorer
        self.window = window

    def chain_tip(self) -> int:
        rows = self.explorer.fetch_page(0, 0)
        if not rows:
            raise FetchError("explorer returned no blocks for the tip query")
        return rows[0].height

    def find_latest_proven(self) -> int:
        current = self.chain_tip()
        while True:
            from_height = max(0, current - self.window + 1)
            rows = self.explorer.fetch_page(from_height, current)
            proven = sorted(
                (r.height for r in rows if r.status == PROVEN_STATUS),
                reverse=True,
            )
            if proven:
                return proven[0]
            current = from_height - 1
            if current < 0:
                raise ResolutionExhausted("no proven block found down to height 0")

    def resolve(self) -> Height:
        try:
            return self.find_latest_proven()
        except ResolutionExhausted as e:
            print(f"⚠️  {e}", file=sys.stderr)
        except FetchError as e:
            print(f"⚠️  Explorer search failed: {e}", file=sys.stderr)
        return None


class RemoteResolver:
    """Primary RPC once, then the explorer search. Never both at the same time."""

    def __init__(self, primary, fallback: ProvenHeightResolver, verbose: bool = True):
        self.primary = primary
        self.fallback = fallback
        self.verbose = verbose

    def resolve(self) -> Tuple[Optional[int], SourceIdentity]:
        if self.verbose:
            print(f"🔍 Trying remote RPC: {self.primary.endpoint}", file=sys.stderr)
        try:
            return self.primary.fetch(), SourceIdentity.PRIMARY
        except FetchError as e:
            print(f"⚠️  RPC failed ({e}), trying AztecScan API fallback...", file=sys.stderr)

        height = self.fallback.resolve()
        if height is None:
            return None, SourceIdentity.NONE
        return height, SourceIdentity.FALLBACK
