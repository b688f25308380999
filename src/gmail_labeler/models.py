"""Data models for Gmail Labeler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .constants import USER_LABEL_TYPE


@dataclass(frozen=True)
class Label:
    """A Gmail label as returned by labels.list / labels.create."""

    label_id: str
    name: str
    label_type: str = USER_LABEL_TYPE  # "user" or "system"

    @property
    def is_user(self) -> bool:
        return self.label_type == USER_LABEL_TYPE


@dataclass
class MessageRef:
    """An unread message as listed, before its body is fetched."""

    message_id: str
    label_ids: list[str] = field(default_factory=list)


@dataclass
class Message:
    """Fields of a fetched message that the classifier sees."""

    message_id: str
    sender: str  # Full From header value
    subject: str
    snippet: str = ""
    body: str = ""  # Plain-text excerpt, already truncated
    label_ids: list[str] = field(default_factory=list)
    unread: bool = True


@dataclass
class ProcessedMessage:
    """One summary entry: a message and the category it was labeled with."""

    message_id: str
    subject: str
    category: str
    label_id: str


@dataclass
class MailboxReport:
    """Outcome of one mailbox within a run."""

    address: str
    status: str  # "ok", "skipped", "busy" or "error"
    processed: list[ProcessedMessage] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class RunSummary:
    """Result of one orchestrator pass over all registered mailboxes."""

    reports: dict[str, MailboxReport] = field(default_factory=dict)
    trigger: str = "manual"
    run_date: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def labeled_count(self) -> int:
        return sum(len(r.processed) for r in self.reports.values())

    @property
    def failed(self) -> list[MailboxReport]:
        return [r for r in self.reports.values() if not r.ok]
