# sync_check.py
"""Monitor an Aztec node's sync progress against the network's proven height.

Every interval the local node is asked for its proven tip (with retries), the
remote proven height is taken from a public RPC or, failing that, found by
searching AztecScan block pages backwards, and the two are compared.

Example: python sync_check.py --port 8080 --interval 10
"""
import os
import sys
import json
import time
import signal
import socket
import argparse
import functools
from typing import Callable, Optional

from number_format import (
    BLUE,
    CYAN,
    GREEN,
    PURPLE,
    RED,
    YELLOW,
    color,
    calculate_percentage,
    format_number,
    format_percentage,
)
from proven_resolver import ProvenHeightResolver, RemoteResolver
from sources import ExplorerSource, NodeRPCSource
from sync_model import FetchError, Height, RunningStats, SyncSnapshot, SyncStateKind
from sync_status import GOOD_PROGRESS, NEAR_COMPLETE, classify

__version__ = "0.1.0"

DEFAULT_PORT = int(os.getenv("LOCAL_RPC_PORT", "8080"))
DEFAULT_LOCAL_RPC = os.getenv("LOCAL_RPC")
DEFAULT_REMOTE_RPC = os.getenv("REMOTE_RPC", "https://aztec-rpc.cerberusnode.com")
DEFAULT_EXPLORER_URL = os.getenv("AZTECSCAN_API_URL", "https://api.testnet.aztecscan.xyz")
DEFAULT_API_KEY = os.getenv("AZTECSCAN_API_KEY", "temporary-api-key")
DEFAULT_INTERVAL = float(os.getenv("CHECK_INTERVAL", "10"))
DEFAULT_MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
DEFAULT_WINDOW = int(os.getenv("PROVEN_WINDOW_SIZE", "20"))
DEFAULT_TIMEOUT = float(os.getenv("RPC_TIMEOUT", "5"))
RETRY_DELAY = 1.0

def status(message: str, code: str, enabled: bool = True) -> None:
    print(color(message, code, enabled), file=sys.stderr)


class PollLoop:
    """
    Runs check cycles: local height (retried), remote height (primary then
    explorer), classification, statistics, then sleeps.

    KeyboardInterrupt is not caught here; it surfaces from whichever network
    call or sleep is in progress and ends the loop mid-cycle.
    """

    def __init__(
        self,
        local: NodeRPCSource,
        remote: RemoteResolver,
        interval: float = DEFAULT_INTERVAL,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        report: Optional[Callable[[SyncSnapshot, RunningStats], None]] = None,
        use_color: bool = True,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.local = local
        self.remote = remote
        self.interval = interval
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.clock = clock
        self.report = report
        self.use_color = use_color
        self.stats = RunningStats()

    def fetch_local(self) -> Height:
        for attempt in range(1, self.max_retries + 1):
            try:
                return self.local.fetch()
            except FetchError as e:
                last_error = e
                if attempt < self.max_retries:
                    status(f"⚠️ Local node retry {attempt}/{self.max_retries}...", YELLOW, self.use_color)
                    self.sleep(self.retry_delay)
        status(
            f"❌ Local node not responding after {self.max_retries} retries "
            f"({last_error}). Please check if it's running on {self.local.endpoint}",
            RED,
            self.use_color,
        )
        return None

    def run_cycle(self) -> SyncSnapshot:
        self.stats.total_checks += 1
        now = self.clock()
        status(f"🔍 Check #{self.stats.total_checks} - {fmt_local(now)}", PURPLE, self.use_color)

        local_height = self.fetch_local()
        if local_height is None:
            self.stats.error_checks += 1

        remote_height, source = self.remote.resolve()
        if remote_height is None:
            status("❌ All remote sources failed (RPC and AztecScan)", RED, self.use_color)
            self.stats.error_checks += 1
        else:
            status(f"✅ Got remote block from {source.value}: {remote_height}", GREEN, self.use_color)

        state = classify(local_height, remote_height)
        if state.kind is SyncStateKind.SYNCED:
            self.stats.error_checks = 0
        self.stats.last_source = source

        snapshot = SyncSnapshot(local_height, remote_height, source, now, state)
        if self.report is not None:
            self.report(snapshot, self.stats)
        return snapshot

    def run(self, once: bool = False) -> None:
        while True:
            self.run_cycle()
            if once:
                return
            status(f"⏰ Next check in {self.interval:g} seconds... (Press Ctrl+C to stop)", PURPLE, self.use_color)
            print("-" * 40, file=sys.stderr)
            self.sleep(self.interval)


# ---------- Output ----------
def fmt_local(ts: float) -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ts))


def snapshot_to_dict(snapshot: SyncSnapshot, stats: RunningStats) -> dict:
    state = snapshot.state
    return {
        "timestamp": fmt_local(snapshot.timestamp),
        "localHeight": snapshot.local_height,
        "remoteHeight": snapshot.remote_height,
        "remoteSource": snapshot.remote_source.value,
        "progress": format_percentage(calculate_percentage(snapshot.local_height, snapshot.remote_height)),
        "state": state.kind.value,
        "milestone": state.milestone,
        "stats": {
            "totalChecks": stats.total_checks,
            "errorChecks": stats.error_checks,
            "successfulChecks": stats.successful_checks,
            "successRate": stats.success_rate,
            "lastSource": stats.last_source.value,
        },
    }


def print_json_report(snapshot: SyncSnapshot, stats: RunningStats, use_color: bool = False) -> None:
    print(json.dumps(snapshot_to_dict(snapshot, stats), separators=(",", ":"), sort_keys=True))


def print_text_report(snapshot: SyncSnapshot, stats: RunningStats, use_color: bool = True) -> None:
    local_display = format_number(snapshot.local_height)
    remote_display = format_number(snapshot.remote_height)
    percentage = calculate_percentage(snapshot.local_height, snapshot.remote_height)

    print()
    status("📊 Sync Status:", CYAN, use_color)
    print(f"   🧱 Local block:  {local_display}")
    print(f"   🌐 Remote block: {remote_display} (via {snapshot.remote_source.value})")
    if percentage is not None:
        print(f"   📈 Progress:     {format_percentage(percentage)}%")

    state = snapshot.state
    if state.kind is SyncStateKind.UNKNOWN:
        status("🚫 Cannot determine sync status due to connection errors", RED, use_color)
        status(f"💡 Error count: {stats.error_checks} (out of {stats.total_checks} checks)", YELLOW, use_color)
    elif state.kind is SyncStateKind.SYNCED:
        status("✅ Your node is fully synced!", GREEN, use_color)
    elif state.kind is SyncStateKind.AHEAD:
        status(f"✅ Your node is ahead of the remote! (Local: {local_display}, Remote: {remote_display})", GREEN, use_color)
    elif state.kind is SyncStateKind.SYNCING:
        status(f"⏳ Still syncing... ({local_display} / {remote_display})", YELLOW, use_color)
        if state.milestone == NEAR_COMPLETE:
            status("🎉 Almost there! More than 90% synced!", GREEN, use_color)
        elif state.milestone == GOOD_PROGRESS:
            status("🚀 Good progress! More than 50% synced!", CYAN, use_color)
    else:
        status("❌ Invalid block numbers received", RED, use_color)

    print()
    status("📈 Statistics:", BLUE, use_color)
    print(f"   ✅ Successful checks: {stats.successful_checks}")
    print(f"   ❌ Error count: {stats.error_checks}")
    print(f"   📊 Success rate: {stats.success_rate}%")
    print(f"   🔗 Last remote source: {stats.last_source.value}")
    print()


# ---------- Startup ----------
def port_in_use(port: int, host: str = "localhost", timeout: float = 1.0) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def detect_local_rpc(port: int, prompt: Callable[[str], str] = input, use_color: bool = True) -> str:
    if port_in_use(port):
        status(f"✅ Detected app running on port {port}", GREEN, use_color)
        return f"http://localhost:{port}"
    status(f"⚠️ No app found on port {port}", YELLOW, use_color)
    if not sys.stdin.isatty():
        return f"http://localhost:{port}"
    answer = prompt(f"Please enter your local Aztec RPC port (or press Enter for {port}): ").strip()
    if answer and not answer.isdigit():
        print(f"❌ Invalid port: {answer!r}", file=sys.stderr)
        sys.exit(1)
    return f"http://localhost:{answer or port}"


def validate_args(args: argparse.Namespace) -> None:
    urls = [args.remote_rpc, args.explorer_url]
    if args.local_rpc:
        urls.append(args.local_rpc)
    for url in urls:
        if not url.startswith(("http://", "https://")):
            print(f"❌ URL must start with http:// or https://: {url}", file=sys.stderr)
            sys.exit(1)
    if args.interval <= 0 or args.timeout <= 0:
        print("❌ --interval and --timeout must be > 0", file=sys.stderr)
        sys.exit(1)
    if args.max_retries < 1 or args.window < 1:
        print("❌ --max-retries and --window must be >= 1", file=sys.stderr)
        sys.exit(1)
    if not args.api_key.strip():
        print("❌ AztecScan API key must not be empty", file=sys.stderr)
        sys.exit(1)


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Compare a local Aztec node's proven height with the network's.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument("--local-rpc", default=DEFAULT_LOCAL_RPC, help="Local node RPC URL (default: auto-detect on --port)")
    ap.add_argument("--port", type=int, default=DEFAULT_PORT, help="Local node port to probe")
    ap.add_argument("--remote-rpc", default=DEFAULT_REMOTE_RPC, help="Remote RPC URL (default from REMOTE_RPC env)")
    ap.add_argument("--explorer-url", default=DEFAULT_EXPLORER_URL, help="AztecScan API base URL")
    ap.add_argument("--api-key", default=DEFAULT_API_KEY, help="AztecScan API key")
    ap.add_argument("--interval", type=float, default=DEFAULT_INTERVAL, help="Seconds between checks")
    ap.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Local node attempts per check")
    ap.add_argument("--window", type=int, default=DEFAULT_WINDOW, help="Blocks per AztecScan page when searching")
    ap.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-request timeout in seconds")
    ap.add_argument("--json", action="store_true", help="Print one JSON object per check")
    ap.add_argument("--once", action="store_true", help="Run a single check and exit")
    ap.add_argument("--no-color", action="store_true", help="Disable ANSI color output")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap.parse_args(argv)


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def build_loop(args: argparse.Namespace, local_rpc: str, use_color: bool = True) -> PollLoop:
    report = print_json_report if args.json else print_text_report
    explorer = ExplorerSource(args.explorer_url, args.api_key, timeout=args.timeout)
    remote = RemoteResolver(
        NodeRPCSource(args.remote_rpc, timeout=args.timeout),
        ProvenHeightResolver(explorer, window=args.window),
        verbose=not args.json,
    )
    return PollLoop(
        NodeRPCSource(local_rpc, timeout=args.timeout),
        remote,
        interval=args.interval,
        max_retries=args.max_retries,
        report=functools.partial(report, use_color=use_color),
        use_color=use_color,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    use_color = not args.no_color and sys.stderr.isatty()
    validate_args(args)
    signal.signal(signal.SIGTERM, _raise_interrupt)

    try:
        local_rpc = args.local_rpc or detect_local_rpc(args.port, use_color=use_color)

        status("🚀 Starting Aztec node sync monitor...", CYAN, use_color)
        status(f"📍 Local RPC: {local_rpc}", BLUE, use_color)
        status(f"🌐 Remote RPC: {args.remote_rpc}", BLUE, use_color)
        status("🔗 Fallback API: AztecScan", BLUE, use_color)
        status(f"⏱️ Check interval: {args.interval:g}s", BLUE, use_color)

        build_loop(args, local_rpc, use_color).run(once=args.once)
    except KeyboardInterrupt:
        status("\n🛑 Sync check stopped by user", YELLOW, use_color)
    return 0


if __name__ == "__main__":
    sys.exit(main())
