"""Duplicate guard - a message carrying any managed label has been processed."""

from __future__ import annotations

from typing import Iterable

from .labels import normalize_label_name
from .models import Label


def managed_label_ids(labels: Iterable[Label], categories: Iterable[str]) -> frozenset[str]:
    """Ids of the user labels whose name matches a configured category."""
    wanted = {normalize_label_name(c) for c in categories}
    return frozenset(
        label.label_id
        for label in labels
        if label.is_user and normalize_label_name(label.name) in wanted
    )


def already_processed(label_ids: Iterable[str], managed_ids: frozenset[str]) -> bool:
    return not managed_ids.isdisjoint(label_ids)
