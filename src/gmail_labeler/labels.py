"""Category name -> Gmail label id resolution, creating labels on first use."""

from __future__ import annotations

import logging
from typing import Iterable

from .constants import INBOX_LABEL_ID
from .errors import LabelConflictError, LabelerError
from .models import Label

logger = logging.getLogger(__name__)


def normalize_label_name(name: str) -> str:
    return name.strip().casefold()


class LabelCache:
    """Normalized label name -> label id for one mailbox during one run.

    Only user labels are indexed, so a category such as "Important" can never
    resolve to Gmail's IMPORTANT system label.
    """

    def __init__(self, labels: Iterable[Label] = ()) -> None:
        self._ids: dict[str, str] = {}
        self.update(labels)

    def update(self, labels: Iterable[Label]) -> None:
        for label in labels:
            if label.is_user:
                self._ids[normalize_label_name(label.name)] = label.label_id

    def get(self, name: str) -> str | None:
        return self._ids.get(normalize_label_name(name))

    def put(self, name: str, label_id: str) -> None:
        self._ids[normalize_label_name(name)] = label_id

    def __contains__(self, name: str) -> bool:
        return normalize_label_name(name) in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class LabelResolver:
    """Resolve categories to label ids through a per-run LabelCache.

    On a cache miss the label is created with its configured display name. If
    Gmail reports the name as taken, the labels are listed once more and the
    name is resolved again; if it is still missing the message goes to INBOX.
    Any other creation failure is remembered, and later messages in that
    category fail fast until the next run.
    """

    def __init__(self, cache: LabelCache, categories: Iterable[str] = ()) -> None:
        self.cache = cache
        self._display_names = {normalize_label_name(c): c for c in categories}
        self._failed: set[str] = set()

    def resolve(self, client, category: str) -> str:
        label_id = self.cache.get(category)
        if label_id is not None:
            return label_id

        key = normalize_label_name(category)
        display_name = self._display_names.get(key, category.strip())
        if key in self._failed:
            raise LabelerError(f"Label {display_name!r} could not be created earlier in this run")
        try:
            label = client.create_label(display_name)
        except LabelConflictError:
            label_id = self._resolve_after_conflict(client, display_name)
        except Exception:
            self._failed.add(key)
            raise
        else:
            logger.info("Created label %r (%s)", label.name, label.label_id)
            label_id = label.label_id

        self.cache.put(category, label_id)
        return label_id

    def _resolve_after_conflict(self, client, display_name: str) -> str:
        logger.info("Label %r already exists, re-reading labels", display_name)
        self.cache.update(client.list_labels())
        label_id = self.cache.get(display_name)
        if label_id is None:
            logger.warning(
                "Label %r conflicts but is not listed as a user label; using %s",
                display_name,
                INBOX_LABEL_ID,
            )
            return INBOX_LABEL_ID
        return label_id
