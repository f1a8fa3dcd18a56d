# sources.py
"""Upstream height sources.

NodeRPCSource speaks JSON-RPC to an Aztec node (the local node or the remote
RPC). ExplorerSource reads block pages from the AztecScan API. Neither retries;
callers decide what to do with a FetchError.
"""
from typing import Any, Dict, List

import requests
from web3 import Web3

from sync_model import BlockRow, FetchError, ParseError, parse_block_number

DEFAULT_TIMEOUT = 5.0
TIPS_METHOD = "node_getL2Tips"
BLOCKS_PATH = "l2/ui/blocks-for-table"


class NodeRPCSource:
    def __init__(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT, provider=None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.provider = provider or Web3.HTTPProvider(endpoint, request_kwargs={"timeout": timeout})

    def fetch_tips(self) -> Dict[str, Any]:
        try:
            response = self.provider.make_request(TIPS_METHOD, [])
        except Exception as e:
            raise FetchError(f"{TIPS_METHOD} on {self.endpoint} failed: {e}") from e
        if not response:
            raise FetchError(f"empty response from {self.endpoint}")
        if not isinstance(response, dict):
            raise FetchError(f"unexpected response from {self.endpoint}: {response!r}")
        if response.get("error"):
            raise FetchError(f"{self.endpoint} returned error: {response['error']}")
        result = response.get("result")
        if not isinstance(result, dict):
            raise FetchError(f"no result in response from {self.endpoint}")
        return result

    def fetch(self) -> int:
        """Return the proven tip (result.proven.number) reported by the node."""
        tips = self.fetch_tips()
        proven = tips.get("proven")
        if not isinstance(proven, dict) or proven.get("number") is None:
            raise ParseError(f"no proven tip in response from {self.endpoint}")
        return parse_block_number(proven["number"])


class ExplorerSource:
    def __init__(self, api_url: str, api_key: str, timeout: float = DEFAULT_TIMEOUT, session=None):
        self.url = f"{api_url.rstrip('/')}/v1/{api_key}/{BLOCKS_PATH}"
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_page(self, from_height: int, to_height: int) -> List[BlockRow]:
        params = {"from": from_height, "to": to_height}
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise FetchError(f"explorer page {from_height}..{to_height} failed: {e}") from e

        if not isinstance(payload, list):
            raise ParseError(f"explorer page {from_height}..{to_height} is not a list")
        rows: List[BlockRow] = []
        for item in payload:
            if not isinstance(item, dict):
                raise ParseError(f"unexpected explorer row: {item!r}")
            status = item.get("blockStatus")
            if isinstance(status, bool) or not isinstance(status, int):
                raise ParseError(f"unexpected blockStatus: {status!r}")
            rows.append(BlockRow(parse_block_number(item.get("height")), status))
        return rows
