"""Gmail API client - the only module that talks to the Gmail REST surface."""

from __future__ import annotations

import base64
import binascii
import html
import logging
import re

import httplib2
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError

from .constants import HTTP_CONFLICT, INBOX_LABEL_ID, NO_SUBJECT, UNREAD_QUERY
from .errors import LabelConflictError
from .models import Label, Message, MessageRef

logger = logging.getLogger(__name__)

_HIDDEN_HTML_RE = re.compile(r"(?is)<(script|style|head|title)[^>]*>.*?</\1>")
_BREAK_RE = re.compile(r"(?i)<br\s*/?>|</p>")
_TAG_RE = re.compile(r"(?s)<[^>]+>")


def _decode_body_data(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""


def html_to_text(value: str) -> str:
    if not value:
        return ""
    cleaned = _HIDDEN_HTML_RE.sub(" ", value)
    cleaned = _BREAK_RE.sub("\n", cleaned)
    cleaned = _TAG_RE.sub(" ", cleaned)
    return " ".join(html.unescape(cleaned).split())


def _first_part(payload: dict, mime_type: str) -> str | None:
    """Depth-first search for the first part of ``mime_type`` that carries data."""
    stack = [payload]
    while stack:
        part = stack.pop()
        data = part.get("body", {}).get("data")
        if part.get("mimeType", "").startswith(mime_type) and data:
            return _decode_body_data(data)
        # Reversed so children are visited in document order.
        stack.extend(reversed(part.get("parts", []) or []))
    return None


def extract_body_excerpt(payload: dict, limit: int) -> str:
    """Return at most ``limit`` characters of plain text from a message payload.

    The first text/plain part wins; HTML is only used when there is no plain
    text anywhere in the tree.
    """
    if not payload:
        return ""
    text = _first_part(payload, "text/plain")
    if text is None:
        text = html_to_text(_first_part(payload, "text/html") or "")
    return text.strip()[:limit]


def _label_from_resource(resource: dict) -> Label:
    return Label(
        label_id=resource["id"],
        name=resource.get("name", ""),
        label_type=resource.get("type", "user"),
    )


def build_service(credentials: Credentials, timeout: float) -> Resource:
    """Build a Gmail service whose every request is bounded by ``timeout`` seconds."""
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
    return build("gmail", "v1", http=http, cache_discovery=False)


class GmailClient:
    """Mailbox operations the labeling pipeline needs, bound to one mailbox."""

    def __init__(self, service, user_id: str = "me", body_char_limit: int = 2000) -> None:
        self.service = service
        self.user_id = user_id
        self.body_char_limit = body_char_limit

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        timeout: float,
        body_char_limit: int = 2000,
    ) -> GmailClient:
        return cls(build_service(credentials, timeout), body_char_limit=body_char_limit)

    def get_profile_address(self) -> str:
        profile = self.service.users().getProfile(userId=self.user_id).execute()
        return profile["emailAddress"]

    def list_unread(self, max_results: int) -> list[MessageRef]:
        """List up to ``max_results`` unread inbox messages with their current labels.

        messages.list only returns ids, so the label sets are fetched with one
        batched ``format=minimal`` request. Refs whose lookup fails are dropped
        and picked up again on a later run.
        """
        resp = (
            self.service.users()
            .messages()
            .list(
                userId=self.user_id,
                labelIds=[INBOX_LABEL_ID],
                q=UNREAD_QUERY,
                maxResults=max_results,
                fields="messages/id",
            )
            .execute()
        )
        ids = [m["id"] for m in resp.get("messages", [])][:max_results]
        if not ids:
            return []

        label_sets: dict[str, list[str]] = {}
        batch = self.service.new_batch_http_request()

        def _make_callback(msg_id: str):
            def _cb(request_id, response, exception):
                if exception is not None:
                    logger.warning("Could not read labels of message %s: %s", msg_id, exception)
                    return
                label_sets[msg_id] = response.get("labelIds", [])

            return _cb

        for msg_id in ids:
            batch.add(
                self.service.users().messages().get(
                    userId=self.user_id,
                    id=msg_id,
                    format="minimal",
                    fields="id,labelIds",
                ),
                callback=_make_callback(msg_id),
            )
        batch.execute()

        # Batch callbacks arrive in any order; keep the listing order.
        return [MessageRef(message_id=i, label_ids=label_sets[i]) for i in ids if i in label_sets]

    def get_message(self, message_id: str) -> Message:
        resp = (
            self.service.users()
            .messages()
            .get(userId=self.user_id, id=message_id, format="full")
            .execute()
        )
        payload = resp.get("payload", {})
        headers = {}
        for h in payload.get("headers", []):
            # First occurrence wins, matching how mail clients display them.
            headers.setdefault(h["name"].lower(), h["value"])

        label_ids = resp.get("labelIds", [])
        return Message(
            message_id=message_id,
            sender=headers.get("from", ""),
            subject=headers.get("subject", "") or NO_SUBJECT,
            snippet=html.unescape(resp.get("snippet", "")),
            body=extract_body_excerpt(payload, self.body_char_limit),
            label_ids=label_ids,
            unread="UNREAD" in label_ids,
        )

    def list_labels(self) -> list[Label]:
        resp = self.service.users().labels().list(userId=self.user_id).execute()
        return [_label_from_resource(item) for item in resp.get("labels", [])]

    def create_label(self, name: str) -> Label:
        """Create a visible user label. Raises LabelConflictError if the name is taken."""
        body = {
            "name": name,
            "labelListVisibility": "labelShow",
            "messageListVisibility": "show",
        }
        try:
            resp = self.service.users().labels().create(userId=self.user_id, body=body).execute()
        except HttpError as exc:
            if exc.resp.status == HTTP_CONFLICT:
                raise LabelConflictError(name) from exc
            raise
        return _label_from_resource(resp)

    def add_label(self, message_id: str, label_id: str) -> None:
        """Attach ``label_id`` to a message without removing anything."""
        self.service.users().messages().modify(
            userId=self.user_id,
            id=message_id,
            body={"addLabelIds": [label_id], "removeLabelIds": []},
        ).execute()
