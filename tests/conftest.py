import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from sync_model import BlockRow, FetchError


class FakeExplorer:
    """Serves fixed pages keyed by (from, to); unknown ranges come back empty."""

    def __init__(self, pages, fail_on=None):
        self.pages = pages
        self.fail_on = fail_on or set()
        self.calls = []

    def fetch_page(self, from_height, to_height):
        self.calls.append((from_height, to_height))
        if (from_height, to_height) in self.fail_on:
            raise FetchError(f"page {from_height}..{to_height} unavailable")
        return [BlockRow(h, s) for h, s in self.pages.get((from_height, to_height), [])]


class FakeNode:
    """Returns (or raises) the queued results in order, repeating the last one."""

    def __init__(self, *results, endpoint="http://localhost:8080"):
        self.results = list(results)
        self.endpoint = endpoint
        self.calls = 0

    def fetch(self):
        self.calls += 1
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture()
def fake_explorer():
    return FakeExplorer


@pytest.fixture()
def fake_node():
    return FakeNode
