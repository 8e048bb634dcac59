from __future__ import annotations
import argparse
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from apptrack.io import load_config, build_from_config, save_json
from apptrack.core.crashlog import CrashLogManager, NullBinder
from apptrack.core.event import Occurrence, OccurrenceKind
from apptrack.reporting import format_text_report, build_json_report
from apptrack import __version__


def _parse_date(text: Optional[str]) -> Optional[date]:
    if not text:
        return None
    return datetime.strptime(text, "%d-%m-%Y").date()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="apptrack", description="apptrack CLI")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Show apptrack version and exit")

    p_match = sub.add_parser("match", help="Dry-run a configuration file against one occurrence")
    p_match.add_argument("--config", required=True, help="Path to configuration file (JSON/YAML)")
    p_match.add_argument("--type", default="event", help="Occurrence type: state or event")
    p_match.add_argument("--target", required=False, help="Target identifier (e.g. screen class name)")
    p_match.add_argument("--member", required=False, help="Member identifier (e.g. method or action name)")
    p_match.add_argument("--keyword", required=False, help="App-specific keyword of a manual event")
    p_match.add_argument("--out", required=False, help="Path to write the JSON report")

    p_crash = sub.add_parser("crashlog", help="Show the crash log captured for a day")
    p_crash.add_argument("--dir", required=False, help="Crash log directory (default: ~/.cache/apptrack)")
    p_crash.add_argument("--date", required=False, help="Day as DD-MM-YYYY (default: today)")
    p_crash.add_argument("--rotate", action="store_true", help="Clear the log after reading, as a new launch would")

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    if args.cmd == "version":
        print(__version__)
        return 0

    if args.cmd == "match":
        configuration, _ = build_from_config(load_config(args.config))
        occurrence = Occurrence(
            kind=OccurrenceKind.parse(args.type),
            target=args.target,
            member=args.member,
            keyword=args.keyword,
        )
        if args.out:
            report: Dict[str, Any] = build_json_report(configuration, occurrence)
            save_json(args.out, report)
        else:
            print(format_text_report(configuration, occurrence))
        return 0

    if args.cmd == "crashlog":
        # the CLI process must not take over the fault stream of the file it inspects
        manager = CrashLogManager(directory=args.dir, binder=NullBinder())
        day = _parse_date(args.date)
        text = manager.capture_and_rotate(day) if args.rotate else manager.peek(day)
        print(text, end="" if text.endswith("\n") else "\n")
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
