"""
CLI client for the realtime vitals subsystem.

Supports:
- Socket.IO live vitals via the facade:   watch --practice-id 7 [--patient-id 42]
- Raw SSE stream (diagnostics):           sse --practice-id 7 [--patient-id 42]

Every event is printed to stdout as one JSON line:
  {"event": "connected", "data": {"socketId": "..."}}
  {"event": "vital-reading-update", "data": {"SYS": 120, "DIA": 80, ...}}
A short human summary of vital updates goes to stderr.

Configuration comes from the environment / .env (API_BASE_URL, SESSION_ID, ...);
--api-base and --session-id override it.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging.config
import sys
from typing import Any, Optional

from vitals_realtime.applib.config import Settings, config
from vitals_realtime.applib.models.vitals import VitalReading
from vitals_realtime.applib.types import RealtimeEvent, TransportKind
from vitals_realtime.realtime import SSETransport, VitalsRealtimeService, WebSocketTransport

PRINTED_EVENTS = (
    RealtimeEvent.CONNECTED,
    RealtimeEvent.DISCONNECTED,
    RealtimeEvent.ERROR,
    RealtimeEvent.VITAL_READING_UPDATE,
    RealtimeEvent.PATIENT_VITAL_UPDATE,
)

SSE_PRINTED_EVENTS = PRINTED_EVENTS + (RealtimeEvent.MESSAGE,)


def _id_arg(s: Optional[str]) -> Optional[int | str]:
    if s is None:
        return None
    return int(s) if s.isdigit() else s


def _settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.api_base:
        overrides["API_BASE_URL"] = args.api_base
    if args.session_id:
        overrides["SESSION_ID"] = args.session_id
    return config.model_copy(update=overrides) if overrides else config


def _printer(event: RealtimeEvent):
    def _print(data: Any) -> None:
        sys.stdout.write(json.dumps({"event": event.value, "data": data}, default=str, ensure_ascii=False) + "\n")
        sys.stdout.flush()
        if event in (RealtimeEvent.VITAL_READING_UPDATE, RealtimeEvent.PATIENT_VITAL_UPDATE):
            reading = VitalReading.from_payload(data)
            if reading is not None:
                sys.stderr.write(f"[{event.value}] {reading.summary()}\n")
                sys.stderr.flush()

    return _print


async def _wait(duration: Optional[float]) -> None:
    if duration is None:
        await asyncio.Event().wait()
    else:
        await asyncio.sleep(duration)


async def watch(args: argparse.Namespace, settings: Settings) -> int:
    service = VitalsRealtimeService(websocket=WebSocketTransport(settings=settings), settings=settings)
    async with service:
        for event in PRINTED_EVENTS:
            service.on(event, _printer(event))
        await service.connect(
            practice_id=_id_arg(args.practice_id),
            patient_id=_id_arg(args.patient_id),
            method=args.method,
        )
        await _wait(args.duration)
        sys.stderr.write(f"{json.dumps(service.get_current_connection().model_dump(mode='json'))}\n")
    return 0


async def sse(args: argparse.Namespace, settings: Settings) -> int:
    transport = SSETransport(settings=settings)
    for event in SSE_PRINTED_EVENTS:
        transport.on(event, _printer(event))
    try:
        await transport.connect(_id_arg(args.practice_id), _id_arg(args.patient_id))
        await _wait(args.duration)
    finally:
        await transport.disconnect()
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="CLI client for realtime patient vitals")
    parser.add_argument("--api-base", help="API base URL, e.g. http://localhost:3007/api (default: API_BASE_URL)")
    parser.add_argument("--session-id", help="Backend session id sent as the session cookie (default: SESSION_ID)")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds (default: run until Ctrl+C)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_watch = sub.add_parser("watch", help="Watch live vitals through the realtime facade")
    p_watch.add_argument("--practice-id", required=True)
    p_watch.add_argument("--patient-id", help="Optional; without it the whole practice room is joined")
    p_watch.add_argument(
        "--method",
        default=TransportKind.WEBSOCKET.value,
        choices=[k.value for k in TransportKind],
        help="Requested transport (sse currently falls back to websocket)",
    )

    p_sse = sub.add_parser("sse", help="Stream the SSE endpoint directly")
    p_sse.add_argument("--practice-id", required=True)
    p_sse.add_argument("--patient-id")

    args = parser.parse_args()
    settings = _settings(args)
    logging.config.dictConfig(settings.logging_config)

    if args.cmd == "watch":
        return await watch(args, settings)
    if args.cmd == "sse":
        return await sse(args, settings)
    return 2


def run() -> None:
    try:
        raise SystemExit(asyncio.run(main()))
    except KeyboardInterrupt:
        raise SystemExit(130)


if __name__ == "__main__":
    run()
