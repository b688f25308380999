"""Exception types raised by Gmail Labeler."""


class LabelerError(Exception):
    """Base class for all Gmail Labeler errors."""


class ConfigError(LabelerError):
    """Invalid configuration. Fatal at startup."""


class CredentialError(LabelerError):
    """A mailbox has no usable OAuth token."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"{address}: {reason}")
        self.address = address
        self.reason = reason


class LabelConflictError(LabelerError):
    """Gmail refused to create a label because the name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Label already exists: {name!r}")
        self.name = name
