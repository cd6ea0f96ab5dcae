from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from . import server
from .activity_log import filter_window, load_histories
from .stages import APPLICATION_FLOW_STAGES, ApplicationStatus


def _check(name: str, ok: bool, detail: str) -> dict[str, Any]:
    return {"name": name, "ok": bool(ok), "detail": detail}


def main() -> None:
    parser = argparse.ArgumentParser(description="Health checks for application-flow-mcp")
    parser.add_argument("--activity-log", default=server.DEFAULT_ACTIVITY_LOG_PATH)
    parser.add_argument("--days", type=int, default=server.DEFAULT_WINDOW_DAYS)
    args = parser.parse_args()

    checks: list[dict[str, Any]] = []

    # Ordering is validated on import; a broken table never gets this far.
    checks.append(
        _check(
            "stage_table_complete",
            len(APPLICATION_FLOW_STAGES) == len(ApplicationStatus),
            f"stages={len(APPLICATION_FLOW_STAGES)} statuses={len(ApplicationStatus)}",
        )
    )

    log_path = Path(args.activity_log)
    checks.append(_check("activity_log_exists", log_path.exists(), f"activity_log={log_path}"))

    histories = None
    if log_path.exists():
        try:
            histories = load_histories(str(log_path))
            checks.append(
                _check("activity_log_parseable", True, f"applications={len(histories)}")
            )
        except ValueError as exc:
            checks.append(_check("activity_log_parseable", False, str(exc)))

    if histories is not None:
        windowed = filter_window(histories, args.days)
        checks.append(
            _check(
                "activity_in_window",
                len(windowed) > 0,
                f"days={args.days} applications_in_window={len(windowed)}",
            )
        )

    healthy = all(check["ok"] for check in checks)
    print(
        json.dumps(
            {
                "healthy": healthy,
                "checks": checks,
                "activity_log": str(log_path),
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
