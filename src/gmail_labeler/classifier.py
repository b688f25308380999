"""Email classifiers - map a message onto exactly one configured category."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from openai import OpenAI

from .config import LabelerConfig
from .constants import DEFAULT_OPENAI_MODEL, DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an email classifier. Choose exactly one category from the list below "
    "and reply with the category name only, spelled exactly as listed.\n"
    "{categories}"
)

USER_PROMPT = "From: {sender}\nSubject: {subject}\nSnippet: {snippet}\n\n{body}"


class BaseClassifier(ABC):
    """Abstract classifier interface."""

    @abstractmethod
    def classify(self, sender: str, subject: str, snippet: str, body: str) -> str:
        """Return the raw category string for one message.

        The result is not trusted: callers pass it through coerce_category.
        """


def coerce_category(raw: str | None, config: LabelerConfig) -> str:
    """Map classifier output onto the closed vocabulary.

    Only an exact match after trimming surrounding whitespace is accepted;
    anything else becomes the fallback category.
    """
    candidate = (raw or "").strip()
    if candidate in config.managed_categories:
        return candidate
    logger.debug("Classifier returned %r, using fallback %r", raw, config.fallback_category)
    return config.fallback_category


class OpenAIClassifier(BaseClassifier):
    """Chat-completion classifier; one request per message, temperature 0."""

    def __init__(
        self,
        categories: Sequence[str],
        model: str = DEFAULT_OPENAI_MODEL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: OpenAI | None = None,
    ) -> None:
        self.categories = list(categories)
        self.model = model
        # max_retries=0: a failed call skips the message until the next run.
        self.client = client or OpenAI(timeout=timeout, max_retries=0)
        self.system_prompt = SYSTEM_PROMPT.format(categories="\n".join(self.categories))

    @classmethod
    def from_config(cls, config: LabelerConfig) -> OpenAIClassifier:
        return cls(
            config.managed_categories,
            model=config.openai_model,
            timeout=config.request_timeout,
        )

    def classify(self, sender: str, subject: str, snippet: str, body: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": self.system_prompt},
                {
                    "role": "user",
                    "content": USER_PROMPT.format(
                        sender=sender, subject=subject, snippet=snippet, body=body
                    ),
                },
            ],
            temperature=0,
        )
        content = response.choices[0].message.content or ""
        return content.strip()
