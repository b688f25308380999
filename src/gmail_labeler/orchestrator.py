"""Run the labeling pipeline for every registered mailbox, isolating failures."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable

from google.oauth2.credentials import Credentials

from .auth import TokenStore
from .classifier import BaseClassifier
from .config import LabelerConfig
from .errors import CredentialError
from .gmail_client import GmailClient
from .models import MailboxReport, RunSummary
from .processor import MessageProcessor
from .registry import MailboxRegistry
from .run_log import append_run_log

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Credentials], object]


class TenantOrchestrator:
    """Entry point for manual, polled and scheduled runs.

    ``run_all`` can be called repeatedly. A mailbox that is still being
    processed by an earlier call in this process is reported as "busy" rather
    than processed twice. Mailboxes never share a label cache or client.
    """

    def __init__(
        self,
        config: LabelerConfig,
        token_store: TokenStore,
        registry: MailboxRegistry,
        classifier: BaseClassifier,
        client_factory: ClientFactory | None = None,
        run_log_path: Path | None = None,
        record_history: bool = True,
    ) -> None:
        self.config = config
        self.token_store = token_store
        self.registry = registry
        self.classifier = classifier
        self.client_factory = client_factory or self._gmail_client
        self.processor = MessageProcessor(config)
        self.run_log_path = run_log_path
        self.record_history = record_history
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _gmail_client(self, creds: Credentials) -> GmailClient:
        return GmailClient.from_credentials(
            creds,
            timeout=self.config.request_timeout,
            body_char_limit=self.config.body_char_limit,
        )

    def _lock_for(self, address: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(address.lower(), threading.Lock())

    def run_mailbox(self, address: str) -> MailboxReport:
        """Process one mailbox. Never raises."""
        lock = self._lock_for(address)
        if not lock.acquire(blocking=False):
            logger.warning("%s: a run is already in progress, skipping", address)
            return MailboxReport(address, "busy", error="run already in progress")

        try:
            try:
                creds = self.token_store.load(address)
                logger.info("Processing %s", address)
                client = self.client_factory(creds)
                processed = self.processor.run(client, self.classifier)
            except CredentialError as exc:
                logger.warning("Skipping %s: %s", address, exc.reason)
                return MailboxReport(address, "skipped", error=exc.reason)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Run failed for %s", address)
                return MailboxReport(address, "error", error=str(exc) or type(exc).__name__)

            logger.info("%s: labeled %d messages", address, len(processed))
            return MailboxReport(address, "ok", processed=processed)
        finally:
            lock.release()

    def run_all(self, mailboxes: Iterable[str] | None = None, trigger: str = "manual") -> RunSummary:
        """Process ``mailboxes`` (default: every registered mailbox)."""
        addresses = list(mailboxes) if mailboxes is not None else self.registry.load()

        unique: list[str] = []
        seen: set[str] = set()
        for address in addresses:
            if address.lower() not in seen:
                seen.add(address.lower())
                unique.append(address)

        summary = RunSummary(trigger=trigger)
        if not unique:
            logger.warning("No mailboxes registered, nothing to do")
            return summary

        workers = min(self.config.max_workers, len(unique))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="mailbox") as pool:
                reports = list(pool.map(self.run_mailbox, unique))
        else:
            reports = [self.run_mailbox(address) for address in unique]

        for report in reports:
            summary.reports[report.address] = report

        failed = summary.failed
        logger.info(
            "Run finished: %d mailboxes, %d messages labeled, %d not ok",
            len(reports),
            summary.labeled_count,
            len(failed),
        )

        if self.record_history:
            append_run_log(summary, self.run_log_path)
        return summary
