"""Shared fixtures for tests."""

from __future__ import annotations

import itertools

import pytest

from gmail_labeler.classifier import BaseClassifier
from gmail_labeler.config import LabelerConfig
from gmail_labeler.errors import LabelConflictError
from gmail_labeler.models import Label, Message, MessageRef


class FakeMailbox:
    """In-memory stand-in for GmailClient that records every call."""

    def __init__(self, labels: list[Label] | None = None) -> None:
        self.labels: list[Label] = list(labels or [])
        self.messages: dict[str, Message] = {}
        self.calls: list[tuple] = []
        self.conflict_names: set[str] = set()  # create_label raises for these
        self.hidden_labels: list[Label] = []  # appear on re-list after a conflict
        self.fail_get: set[str] = set()
        self.fail_create: set[str] = set()
        self._ids = itertools.count(1)

    def add_message(self, message_id: str, subject: str, sender: str = "a@example.com",
                    label_ids: list[str] | None = None, body: str = "") -> Message:
        msg = Message(
            message_id=message_id,
            sender=sender,
            subject=subject,
            snippet=f"snippet of {subject}",
            body=body,
            label_ids=list(label_ids or ["INBOX", "UNREAD"]),
        )
        self.messages[message_id] = msg
        return msg

    def calls_to(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    def list_unread(self, max_results: int) -> list[MessageRef]:
        self.calls.append(("list_unread", max_results))
        refs = [
            MessageRef(m.message_id, list(m.label_ids))
            for m in self.messages.values()
            if "UNREAD" in m.label_ids and "INBOX" in m.label_ids
        ]
        return refs[:max_results]

    def get_message(self, message_id: str) -> Message:
        self.calls.append(("get_message", message_id))
        if message_id in self.fail_get:
            raise RuntimeError(f"cannot fetch {message_id}")
        return self.messages[message_id]

    def list_labels(self) -> list[Label]:
        self.calls.append(("list_labels",))
        return list(self.labels)

    def create_label(self, name: str) -> Label:
        self.calls.append(("create_label", name))
        if name in self.fail_create:
            raise RuntimeError(f"rate limited creating {name}")
        if name in self.conflict_names:
            self.labels.extend(self.hidden_labels)
            self.hidden_labels = []
            raise LabelConflictError(name)
        label = Label(label_id=f"Label_{next(self._ids)}", name=name)
        self.labels.append(label)
        return label

    def add_label(self, message_id: str, label_id: str) -> None:
        self.calls.append(("add_label", message_id, label_id))
        msg = self.messages[message_id]
        if label_id not in msg.label_ids:
            msg.label_ids.append(label_id)

    def label_names(self, message_id: str) -> list[str]:
        by_id = {label.label_id: label.name for label in self.labels}
        return [by_id[i] for i in self.messages[message_id].label_ids if i in by_id]


class ScriptedClassifier(BaseClassifier):
    """Returns answers keyed by subject; records what it was asked."""

    def __init__(self, answers: dict[str, str] | None = None, default: str = "Newsletter") -> None:
        self.answers = answers or {}
        self.default = default
        self.calls: list[dict] = []

    def classify(self, sender: str, subject: str, snippet: str, body: str) -> str:
        self.calls.append({"sender": sender, "subject": subject, "snippet": snippet, "body": body})
        answer = self.answers.get(subject, self.default)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def config() -> LabelerConfig:
    return LabelerConfig(
        categories=("Newsletter", "Urgent"),
        fallback_category="Spam or Ignore",
        batch_size=10,
        body_char_limit=50,
    )


@pytest.fixture
def mailbox() -> FakeMailbox:
    return FakeMailbox(
        labels=[
            Label("INBOX", "INBOX", "system"),
            Label("UNREAD", "UNREAD", "system"),
            Label("IMPORTANT", "IMPORTANT", "system"),
        ]
    )


@pytest.fixture
def classifier() -> ScriptedClassifier:
    return ScriptedClassifier()
