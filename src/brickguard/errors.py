from __future__ import annotations


class BrickguardError(Exception):
    """Base class for every error raised by brickguard."""


class ConfigError(BrickguardError):
    """Startup configuration is missing or invalid. Fatal."""


class HostError(BrickguardError):
    """The plugin host transport failed or answered with an error."""


class PassAborted(BrickguardError):
    """An enforcement pass stopped before completion.

    Raised before any enforcement action where possible; callers log it and
    keep serving events.
    """


class SnapshotError(PassAborted):
    """The snapshot could not be opened, decoded or written."""


class SnapshotBoundsError(SnapshotError):
    """A brick references an asset or owner index outside its dictionary."""

    def __init__(self, kind: str, index: int, size: int) -> None:
        super().__init__(f"{kind} index {index} out of range for dictionary of {size}")
        self.kind = kind
        self.index = index
        self.size = size


class LedgerError(PassAborted):
    """A ledger read or write failed."""


class LedgerCorruptError(LedgerError):
    """A stored ledger value could not be interpreted."""

    def __init__(self, key: str, value: object) -> None:
        super().__init__(f"unreadable ledger value for {key!r}: {value!r}")
        self.key = key
        self.value = value
