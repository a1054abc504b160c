#!/usr/bin/env python3
"""Print region ENTER/EXIT transitions and beacon events as they arrive.

Reads ``BLUEPRESENCE_*`` configuration from the environment, subscribes to
the MQTT topic (``BLUEPRESENCE_MQTT_HOST``) or the event stream
(``BLUEPRESENCE_SSE_URL``) and prints every log line the monitor appends.

Use this to check what a positioning backend actually emits before wiring
it into an application.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from bluepresence import BeaconLocation, LogState, PresenceConfig, PresenceMonitor  # noqa: E402
from bluepresence._mqtt import MqttSnapshotSource  # noqa: E402
from bluepresence._sse import SseSnapshotSource  # noqa: E402

_LOG = logging.getLogger("region_watch")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch region transitions and beacon events.",
    )
    parser.add_argument(
        "--transport",
        choices=("mqtt", "sse"),
        default=None,
        help="Snapshot transport (default: mqtt when a broker host is configured, else sse).",
    )
    parser.add_argument(
        "--tag",
        default=None,
        help="Only track this tag id (overrides BLUEPRESENCE_TAG_ID).",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


class _Printer:
    """Print only the lines added since the previous publication."""

    def __init__(self) -> None:
        self._seen = LogState()

    def __call__(self, state: LogState) -> None:
        for label, before, after in (
            ("region", self._seen.region_status, state.region_status),
            ("beacon", self._seen.beacon_status, state.beacon_status),
        ):
            if after.startswith(before):
                for line in after[len(before) :].splitlines():
                    print(f"[{label}] {line}")
        self._seen = state


def _notify(identity: int, beacon: BeaconLocation) -> None:
    print(f"[notify] #{identity} {beacon.headline}: {beacon.message}")


async def _watch(config: PresenceConfig, transport: str, duration: int) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    async with aiohttp.ClientSession() as http_session, PresenceMonitor.from_config(
        config, on_notify=_notify
    ) as monitor:
        monitor.log.subscribe(_Printer())
        if transport == "mqtt":
            monitor.attach(MqttSnapshotSource(config, logger=_LOG))
        else:
            monitor.attach(SseSnapshotSource(config, http_session))
        print(f"[watch] Listening via {transport}. Press Ctrl+C to stop.")

        try:
            await asyncio.wait_for(stop.wait(), timeout=duration or None)
        except TimeoutError:
            print(f"[watch] Reached --duration={duration}s, stopping.")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {"tag_id": args.tag} if args.tag else {}
    config = PresenceConfig.from_env(**overrides)
    transport = args.transport or ("mqtt" if config.mqtt_host else "sse")

    try:
        asyncio.run(_watch(config, transport, args.duration))
    except Exception as exc:  # pragma: no cover - network/system interaction
        print(f"[watch] Failed: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
