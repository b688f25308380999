"""Append-only JSON history of orchestrator runs."""

from __future__ import annotations

import json
from pathlib import Path

from . import constants
from .models import RunSummary


def summary_to_dict(summary: RunSummary) -> dict:
    return {
        "date": summary.run_date,
        "trigger": summary.trigger,
        "labeled": summary.labeled_count,
        "mailboxes": [
            {
                "address": report.address,
                "status": report.status,
                "error": report.error,
                "messages": [
                    {"subject": p.subject, "category": p.category}
                    for p in report.processed
                ],
            }
            for report in summary.reports.values()
        ],
    }


def load_run_log(path: Path | None = None) -> list[dict]:
    path = Path(path or constants.RUN_LOG_PATH)
    if not path.exists():
        return []
    with open(path) as f:
        try:
            log = json.load(f)
        except json.JSONDecodeError:
            return []
    return log if isinstance(log, list) else []


def append_run_log(summary: RunSummary, path: Path | None = None) -> None:
    """Append one run to the history file."""
    path = Path(path or constants.RUN_LOG_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    log = load_run_log(path)
    log.append(summary_to_dict(summary))

    with open(path, "w") as f:
        json.dump(log, f, indent=2)
