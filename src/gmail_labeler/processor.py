"""Label one mailbox's unread messages: list, guard, classify, resolve, apply."""

from __future__ import annotations

import logging

from .classifier import BaseClassifier, coerce_category
from .config import LabelerConfig
from .guard import already_processed, managed_label_ids
from .labels import LabelCache, LabelResolver
from .models import ProcessedMessage

logger = logging.getLogger(__name__)


class MessageProcessor:
    """Runs the labeling pipeline against a single mailbox.

    Each call to ``run`` builds its own label cache and managed-label set from
    a fresh label listing, so edits made in Gmail between runs are picked up.
    Messages are handled one at a time so labels created for one message are
    visible to the next.
    """

    def __init__(self, config: LabelerConfig) -> None:
        self.config = config

    def run(self, client, classifier: BaseClassifier) -> list[ProcessedMessage]:
        refs = client.list_unread(self.config.batch_size)
        if not refs:
            logger.info("No unread messages")
            return []

        labels = client.list_labels()
        managed_ids = managed_label_ids(labels, self.config.managed_categories)
        resolver = LabelResolver(LabelCache(labels), self.config.managed_categories)

        processed: list[ProcessedMessage] = []
        skipped = 0
        failed = 0
        for ref in refs:
            if already_processed(ref.label_ids, managed_ids):
                skipped += 1
                continue
            try:
                processed.append(self._process_one(client, classifier, resolver, ref.message_id))
            except Exception:  # noqa: BLE001
                failed += 1
                logger.exception("Failed to label message %s, skipping", ref.message_id)

        logger.info(
            "Labeled %d of %d unread messages (%d already labeled, %d failed)",
            len(processed),
            len(refs),
            skipped,
            failed,
        )
        return processed

    def _process_one(
        self,
        client,
        classifier: BaseClassifier,
        resolver: LabelResolver,
        message_id: str,
    ) -> ProcessedMessage:
        message = client.get_message(message_id)
        raw = classifier.classify(
            sender=message.sender,
            subject=message.subject,
            snippet=message.snippet,
            body=message.body[: self.config.body_char_limit],
        )
        category = coerce_category(raw, self.config)
        label_id = resolver.resolve(client, category)
        client.add_label(message_id, label_id)
        logger.debug("%s: %r -> %s", message_id, message.subject, category)
        return ProcessedMessage(
            message_id=message_id,
            subject=message.subject,
            category=category,
            label_id=label_id,
        )
