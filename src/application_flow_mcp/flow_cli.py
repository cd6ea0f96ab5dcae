from __future__ import annotations

import argparse
import json

from .runtime_config import DEFAULT_LOG_LEVEL, DEFAULT_WINDOW_DAYS, resolve_activity_log_path


def main() -> None:
    parser = argparse.ArgumentParser(description="Build the application status flow graph from an activity log")
    parser.add_argument(
        "--activity-log",
        default=resolve_activity_log_path(),
        help="Activity log path (.csv, .json or .jsonl)",
    )
    parser.add_argument(
        "--source",
        choices=["history", "aggregated"],
        default="history",
        help="history: per-application status changes; aggregated: from_status,to_status,count rows",
    )
    parser.add_argument("--days", type=int, default=DEFAULT_WINDOW_DAYS, help="Time window in days")
    parser.add_argument(
        "--with-conversion-rates",
        action="store_true",
        help="Include per-stage conversion rates (history source only)",
    )
    parser.add_argument("--log-level", default=DEFAULT_LOG_LEVEL)
    args = parser.parse_args()
    if args.with_conversion_rates and args.source != "history":
        parser.error("--with-conversion-rates requires --source history")

    from . import server
    from .observability import setup_logging

    setup_logging(args.log_level)

    payload = server.get_application_flow(
        activity_log_path=args.activity_log,
        days=args.days,
        source=args.source,
    )
    if args.with_conversion_rates:
        payload["conversionRates"] = server.get_conversion_rates(
            activity_log_path=args.activity_log,
            days=args.days,
        )["stages"]

    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
