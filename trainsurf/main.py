"""TrainSurf CLI entry point

Examples:
    trainsurf --train-no 12951 --source NDLS --destination MMCT \
        --date 2026-11-02 --class-type 3A --quota GN

    trainsurf --serve --port 8080
    trainsurf   (interactive mode)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date
from typing import Any

from trainsurf import __version__
from trainsurf.agents.orchestrator import SurfOrchestrator
from trainsurf.models.config import SurfConfig
from trainsurf.models.errors import ConfigError, RouteError, TrainSurfError
from trainsurf.models.query import JourneyRequest, StitchResult
from trainsurf.skills.parser import ParserSkill
from trainsurf.skills.validation import CLASS_TYPES, QUOTAS, ValidationSkill
from trainsurf.utils.logging_config import setup_logging


BANNER = rf"""
  ╔══════════════════════════════════════════════╗
  ║   TrainSurf v{__version__:<32}║
  ║   Confirmed seat stitching for waitlists     ║
  ╚══════════════════════════════════════════════╝
"""

_REQUIRED = ("train_no", "source", "destination", "date", "class_type", "quota")


def parse_date(s: str) -> date:
    try:
        return ParserSkill.parse_date(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Find confirmed seat segments on one train for a waitlisted journey",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  trainsurf -t 12951 -s NDLS -d MMCT --date 2026-11-02 -c 3A -q GN\n"
            "  trainsurf --serve"
        ),
    )
    p.add_argument("-t", "--train-no", help="train number (4-5 digits)")
    p.add_argument("-s", "--source", help="boarding station code")
    p.add_argument("-d", "--destination", help="destination station code")
    p.add_argument("--date", type=parse_date, help="journey date (YYYY-MM-DD)")
    p.add_argument("-c", "--class-type", choices=sorted(CLASS_TYPES), help="travel class")
    p.add_argument("-q", "--quota", default="GN", choices=sorted(QUOTAS), help="quota (default: GN)")
    p.add_argument(
        "--mode",
        default="urgent",
        choices=["normal", "urgent"],
        help="normal = direct check only, urgent = stitch segments (default)",
    )
    p.add_argument("--json", action="store_true", help="print the raw JSON result")
    p.add_argument("--debug", action="store_true", help="print the search trace")
    p.add_argument("--serve", action="store_true", help="run the HTTP service")
    p.add_argument("--host", default=None, help="HTTP bind address")
    p.add_argument("--port", type=int, default=None, help="HTTP port")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    p.add_argument("--log-file", default=None, help="log file path")
    return p


def interactive_input(data: dict[str, Any]) -> dict[str, Any]:
    """Prompt for missing fields until each one validates"""
    validator = ValidationSkill()
    print(BANNER)
    print("  Interactive mode - enter the journey details\n")

    prompts = [
        ("train_no", "  Train number: ", validator.validate_train_no),
        ("source", "  From station code: ", lambda v: validator.validate_station(v, "source")),
        ("destination", "  To station code: ", lambda v: validator.validate_station(v, "destination")),
        ("date", "  Journey date (YYYY-MM-DD): ", validator.validate_date),
        ("class_type", f"  Class ({'/'.join(sorted(CLASS_TYPES))}): ",
         lambda v: validator.validate_choice(v, CLASS_TYPES, "class")),
    ]
    for name, prompt, check in prompts:
        while not data.get(name):
            try:
                data[name] = check(input(prompt).strip())
            except ValueError as e:
                print(f"  [error] {e}\n")
    return data


def print_result(result: StitchResult, as_json: bool, debug: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    print(f"\n  {result.display()}")
    if debug:
        print("\n  Search trace:")
        for line in result.debug_info:
            print(f"    {line}")


async def run(request: JourneyRequest, config: SurfConfig, show_summary: bool = False) -> StitchResult:
    orchestrator = SurfOrchestrator(config)
    try:
        return await orchestrator.search(request)
    finally:
        await orchestrator.close()
        if show_summary:
            print(f"\n{orchestrator.metrics.summary()}")


def cli_entry() -> None:
    """Console script entry point"""
    main()


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        config = SurfConfig.from_env()
        if args.host:
            config.host = args.host
        if args.port:
            config.port = args.port

        if args.serve:
            from trainsurf.server import run_server
            run_server(config)
            return

        config.require_api_key()
        data = ParserSkill.parse_cli(args)
        if not all(data.get(name) for name in _REQUIRED):
            data = interactive_input(data)
        request = ValidationSkill().validate_request(data)
    except ConfigError as e:
        print(f"  [config] {e}", file=sys.stderr)
        sys.exit(2)
    except TrainSurfError as e:
        print(f"  [error] {e}", file=sys.stderr)
        sys.exit(2)

    print(f"\n  Searching: {request.summary()}")
    try:
        result = asyncio.run(run(request, config, show_summary=args.debug))
    except RouteError as e:
        result = StitchResult.failure(str(e), total_stations=e.total_stations, debug_info=e.debug_info)
    except KeyboardInterrupt:
        print("\n  Interrupted")
        sys.exit(130)

    print_result(result, args.json, args.debug)
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
