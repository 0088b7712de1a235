#!/usr/bin/env python3
"""Command-line interface for the quarterly time divider."""

from __future__ import annotations

import argparse
import sys


def _format_price(value: float | None) -> str:
    return "-" if value is None else f"{value:.2f}"


def cmd_scan(args: argparse.Namespace) -> int:
    """Run the divider over a bar file and print markers and session levels."""
    from quarterly.commands.scan import (
        build_divider_config,
        configure_logging,
        load_scan_config,
        parse_session_hours,
    )
    from quarterly.data.sources import resolve_data_source
    from quarterly.divider import QuarterlyTimeDivider, latest_session_levels
    from quarterly.exceptions import ConfigError, DataSourceError, DataValidationError
    from quarterly.types import DividerOutput, ScanConfig

    try:
        if args.config:
            config = load_scan_config(args.config)
        elif args.csv:
            config = ScanConfig(
                data_source="csv",
                source_params={"file_path": args.csv},
            )
        else:
            print("Error: provide a config file or --csv FILE")
            return 1

        overrides = config.divider.model_dump()
        if args.timezone:
            overrides["local_timezone"] = args.timezone
        if args.custom_session:
            overrides.update(parse_session_hours(args.custom_session))
            overrides["use_custom_session"] = True
        divider_config = build_divider_config(overrides)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    configure_logging(args.log_level or config.log_level)

    print("=" * 60)
    print("QUARTERLY SCAN")
    print("=" * 60)
    print(f"Source:      {config.data_source}")
    if config.symbols:
        print(f"Symbols:     {', '.join(str(s) for s in config.symbols)}")
    if config.date_range is not None:
        print(
            f"Date Range:  {config.date_range.start.date()} to {config.date_range.end.date()}"
        )
    if divider_config.use_custom_session:
        print(
            f"Session:     {divider_config.start_hour:02d}:{divider_config.start_minute:02d}"
            f"-{divider_config.end_hour:02d}:{divider_config.end_minute:02d}"
        )
    else:
        print("Session:     full day")
    print(f"Timezone:    {divider_config.local_timezone or 'local'}")

    divider = QuarterlyTimeDivider(divider_config)
    outputs: list[DividerOutput] = []
    markers = 0

    print("\nMarkers:")
    try:
        source = resolve_data_source(config)
        for bar in source.fetch_bars(config.symbols, config.date_range, config.granularity):
            output = divider.process(bar)
            outputs.append(output)
            if output.is_marker:
                markers += 1
                flag = "FIRST" if output.is_first_segment else ""
                print(
                    f"   {output.timestamp.isoformat()}  {output.mode.value:>3}  "
                    f"{output.base:>12.2f}  {flag}"
                )
            elif args.all:
                state = "in" if output.in_session else "out"
                print(f"   {output.timestamp.isoformat()}  ({state})")
    except (DataSourceError, DataValidationError) as e:
        print(f"Failed to read bars: {e}")
        return 1

    if not outputs:
        print("No bars read. Check the source and date range.")
        return 1

    print(f"\n{len(outputs)} bars, {markers} markers, mode {divider.detector.mode.value}")

    levels = latest_session_levels(outputs)
    if levels:
        print("\nSession levels:")
        print(f"   {'Session':<8} {'High':>12} {'Low':>12}  Window (UTC)")
        for name, level in levels.items():
            print(
                f"   {name.value:<8} {_format_price(level.high):>12} "
                f"{_format_price(level.low):>12}  "
                f"{level.start:%Y-%m-%d %H:%M} - {level.end:%Y-%m-%d %H:%M}"
            )

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Quarterly time divider CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scan command
    scan_parser = subparsers.add_parser(
        "scan", help="Print quarter markers and session levels for a bar stream"
    )
    scan_parser.add_argument(
        "config", nargs="?", default=None, help="Path to YAML configuration file"
    )
    scan_parser.add_argument("--csv", help="Read bars from a CSV file instead of a config")
    scan_parser.add_argument(
        "--timezone", help="IANA timezone for the local session calendar"
    )
    scan_parser.add_argument(
        "--custom-session", help="Custom session window, HH:MM-HH:MM (local time)"
    )
    scan_parser.add_argument(
        "--all", action="store_true", help="Print every bar, not only markers"
    )
    scan_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides the config file)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "scan":
        return cmd_scan(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
