#!/usr/bin/env python3
"""Command-line tracker for busbeacon.

Lists the buses in the record store, or broadcasts a position for one of
them from gpsd, a replayed route, or fixed manual coordinates.

Usage
-----
Set environment variables and run::

    export BEACON_PROJECT_ID="my-project"
    export BEACON_AUTH_TOKEN="$(gcloud auth print-access-token)"
    python scripts/beacon.py list
    python scripts/beacon.py track --bus bus-1
    python scripts/beacon.py track --bus bus-1 --manual 52.37 4.89
    python scripts/beacon.py track --bus bus-1 --replay route.json --interval 2

Options::

    --gpsd HOST:PORT     gpsd address (default: BEACON_GPSD_HOST/PORT)
    --replay FILE        Replay a JSON route instead of reading gpsd
    --duration SECONDS   Stop after this long (default: until Ctrl-C)
    --verbose            Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from busbeacon import (  # noqa: E402
    BeaconClient,
    BeaconConfig,
    BeaconError,
    GpsdLocationSource,
    Position,
    ReplayLocationSource,
    TrackerApp,
)
from busbeacon.location import LocationSource  # noqa: E402


def _print_notice(message: str) -> None:
    print(f"! {message}", file=sys.stderr)


def _print_position(position: Position) -> None:
    print(f"  fix lat={position.latitude:.6f} lon={position.longitude:.6f}")


def _build_location(args: argparse.Namespace, config: BeaconConfig) -> LocationSource:
    if args.replay:
        return ReplayLocationSource.load_route(args.replay, interval=args.interval, loop=True)
    if args.gpsd:
        host, _, port = args.gpsd.rpartition(":")
        return GpsdLocationSource(host or config.gpsd_host, int(port) if port else config.gpsd_port)
    return GpsdLocationSource.from_config(config)


async def _cmd_list(client: BeaconClient, json_mode: bool) -> int:
    buses = await client.list_buses()
    if json_mode:
        rows: list[dict[str, Any]] = [bus.model_dump(exclude={"raw"}) for bus in buses]
        print(json.dumps(rows, indent=2, default=str, ensure_ascii=False))
        return 0
    if not buses:
        print("No buses found.")
        return 0
    for bus in buses:
        where = f"{bus.latitude:.6f}, {bus.longitude:.6f}" if bus.has_position else "-"
        updated = bus.updated_at.isoformat() if bus.updated_at else "-"
        print(f"{bus.id:<24} {bus.name:<24} {where:<26} {updated}")
    return 0


async def _cmd_track(client: BeaconClient, args: argparse.Namespace) -> int:
    config = client.config
    location = _build_location(args, config)
    app = TrackerApp(
        client,
        location,
        on_notice=_print_notice,
        on_position=_print_position,
        default_latitude=config.default_latitude,
        default_longitude=config.default_longitude,
    )
    async with app:
        if not app.select_bus(args.bus):
            return 1
        if args.manual:
            app.use_manual_location(True)
            app.set_manual_coordinates(args.manual[0], args.manual[1])
        if not await app.start_tracking():
            return 1
        print(app.status_text)
        if app.use_manual:
            await app.controller.drain()
            return 0 if not app.notices else 1
        try:
            if args.duration:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            app.stop_tracking()
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="Broadcast a bus position to Firestore.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List buses")
    list_parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")

    track_parser = sub.add_parser("track", help="Broadcast a position for one bus")
    track_parser.add_argument("--bus", required=True, help="Bus document id")
    track_parser.add_argument("--manual", nargs=2, metavar=("LAT", "LON"), help="Send fixed coordinates once")
    track_parser.add_argument("--gpsd", metavar="HOST:PORT", help="gpsd address")
    track_parser.add_argument("--replay", metavar="FILE", help="Replay a JSON route")
    track_parser.add_argument("--interval", type=float, default=1.0, help="Seconds between replayed fixes")
    track_parser.add_argument("--duration", type=float, help="Stop after SECONDS")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = BeaconConfig.from_env()
        async with BeaconClient(config) as client:
            if args.command == "list":
                return await _cmd_list(client, args.json_mode)
            return await _cmd_track(client, args)
    except BeaconError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
