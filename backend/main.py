"""
Terminal driver for a negotiation session.

Reads operator lines from stdin and prints agent replies together with
the latest telemetry. JSONL logs go to stderr.

Commands:
    :scenario <id>   switch scenario (clears dialogue and metrics)
    :scenarios       list the scenario library
    :connect         open the live voice link
    :sever           close the live voice link
    :mute            toggle acoustic capture
    :latency         probe the remote responder
    :analyze         sever and print the post-session report
    :reset           clear dialogue, metrics and report
    :quit            exit
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Sequence

from config import AppConfig
from errors import ConfigurationError, DataCorruptionError, TelemetryEngineError, ValidationError
from observability.logger import configure_logging
from orchestrator.events import LinkAdvisory
from session.bootstrap import build_session
from session.negotiation_session import NegotiationSession


PROMPT = "OPERATOR> "


def _print_advisory(advisory: LinkAdvisory) -> None:
    print(f"[SYSTEM_ADVISORY] {advisory.kind.value}: {advisory.message}")


def _print_telemetry(session: NegotiationSession) -> None:
    metrics = session.metrics()
    if not metrics:
        return
    m = metrics[-1]
    print(
        f"  [telemetry] confidence={m.confidence_score:.2f} velocity={m.verbal_velocity:.0f}wpm "
        f"hesitation={m.hesitation_markers} deviation={m.levenshtein_delta} "
        f"aggression={m.aggression_index:.0f} logic={m.logic_density:.0f} clarity={m.clarity_score:.0f}"
    )


def _print_scenarios(session: NegotiationSession) -> None:
    for scenario in session.registry.library():
        marker = "*" if scenario.id == session.active_scenario.id else " "
        print(f" {marker} {scenario.id}  {scenario.designation}  [{scenario.difficulty_level.value}]")


async def _handle_command(session: NegotiationSession, line: str) -> bool:
    """Run one ':' command; returns False to stop the loop."""
    command, _, arg = line[1:].partition(" ")
    arg = arg.strip()

    if command == "quit":
        return False
    if command == "scenario":
        scenario = session.change_scenario(arg)
        print(f"[SCENARIO_SHIFT] {scenario.id} :: {scenario.designation}")
        print(f"  target: {scenario.target_rhetoric_pattern}")
    elif command == "scenarios":
        _print_scenarios(session)
    elif command == "connect":
        await session.connect()
    elif command == "sever":
        await session.sever()
        print("[LINK] severed")
    elif command == "mute":
        active = session.toggle_capture()
        print(f"[CAPTURE] {'active' if active else 'muted'}")
    elif command == "latency":
        latency = await session.measure_latency()
        print(f"[LATENCY] {latency} ms" if latency >= 0 else "[LATENCY] unavailable")
    elif command == "analyze":
        report = await session.terminate_and_analyze()
        if report is None:
            print("[ANALYSIS] unavailable")
        else:
            print(json.dumps(report, indent=2, ensure_ascii=False))
    elif command == "reset":
        session.reset()
        print("[RESET] dialogue and telemetry cleared")
    else:
        print(f"unknown command :{command}")
    return True


async def run(session: NegotiationSession, *, live: bool) -> None:
    print(f"[SCENARIO] {session.active_scenario.id} :: {session.active_scenario.designation}")

    if live:
        await session.connect()

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, PROMPT)
            except EOFError:
                break

            line = line.strip()
            if not line:
                continue

            try:
                if line.startswith(":"):
                    if not await _handle_command(session, line):
                        break
                    continue

                reply = await session.transmit(line)
            except (ValidationError, DataCorruptionError, ConfigurationError) as e:
                print(f"[ERROR] {e}")
                continue

            if reply is not None:
                print(f"AGENT> {reply.payload}")
            _print_telemetry(session)
    finally:
        await session.sever()


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Real-time negotiation telemetry engine")
    parser.add_argument("--scenario", help="scenario id to start with")
    parser.add_argument("--live", action="store_true", help="open the live voice link at startup")
    args = parser.parse_args(argv)

    try:
        config = AppConfig.load_from_env()
    except ConfigurationError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(level=config.log_level, enabled=config.enable_json_logs, stream=sys.stderr)

    try:
        session = build_session(config, scenario_id=args.scenario, on_advisory=_print_advisory)
        asyncio.run(run(session, live=args.live))
    except TelemetryEngineError as e:
        print(f"fatal: {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
