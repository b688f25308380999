"""Periodic trigger - runs the orchestrator on an interval or a cron schedule."""

from __future__ import annotations

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .config import LabelerConfig
from .orchestrator import TenantOrchestrator

logger = logging.getLogger(__name__)


def scheduled_run(orchestrator: TenantOrchestrator) -> None:
    """Job body. Failures are only logged; there is nobody to report them to."""
    try:
        summary = orchestrator.run_all(trigger="scheduled")
    except Exception:  # noqa: BLE001
        logger.exception("Scheduled run failed")
        return
    for report in summary.failed:
        logger.error("Scheduled run: %s %s (%s)", report.address, report.status, report.error)


def build_scheduler(
    orchestrator: TenantOrchestrator,
    config: LabelerConfig,
    scheduler: BlockingScheduler | None = None,
) -> BlockingScheduler:
    """Register the labeler job(s) on a scheduler without starting it.

    A poll interval takes precedence over the cron schedule.
    """
    scheduler = scheduler or BlockingScheduler()
    job_options = {"max_instances": 1, "coalesce": True, "args": [orchestrator]}

    if config.poll_interval_minutes is not None:
        scheduler.add_job(
            scheduled_run,
            IntervalTrigger(minutes=config.poll_interval_minutes),
            id="labeler-poll",
            **job_options,
        )
        logger.info("Polling every %d minutes", config.poll_interval_minutes)
    else:
        for idx, expression in enumerate(config.schedule):
            scheduler.add_job(
                scheduled_run,
                CronTrigger.from_crontab(expression),
                id=f"labeler-cron-{idx}",
                **job_options,
            )
            logger.info("Scheduled run at '%s'", expression)

    return scheduler
