"""Registered (subscribed) mailboxes, stored as a JSON list of addresses."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from . import constants

logger = logging.getLogger(__name__)


class MailboxRegistry:
    """Ordered, case-insensitively unique set of mailbox addresses."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or constants.MAILBOXES_PATH)

    def load(self) -> list[str]:
        if not self.path.exists():
            return []
        with open(self.path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                logger.warning("Mailbox registry %s is not valid JSON, treating as empty", self.path)
                return []
        if not isinstance(data, list):
            logger.warning("Mailbox registry %s is not a list, treating as empty", self.path)
            return []
        return [str(a) for a in data]

    def _save(self, addresses: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(addresses, f, indent=2)

    def add(self, address: str) -> bool:
        """Register ``address``. Returns False if it was already registered."""
        address = address.strip()
        addresses = self.load()
        if address.lower() in {a.lower() for a in addresses}:
            return False
        addresses.append(address)
        self._save(addresses)
        return True

    def remove(self, address: str) -> bool:
        """Unregister ``address``. Returns False if it was not registered."""
        addresses = self.load()
        kept = [a for a in addresses if a.lower() != address.strip().lower()]
        if len(kept) == len(addresses):
            return False
        self._save(kept)
        return True

    def __contains__(self, address: str) -> bool:
        return address.strip().lower() in {a.lower() for a in self.load()}
