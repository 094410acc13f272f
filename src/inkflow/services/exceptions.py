"""Custom exceptions for inkflow services."""


class InkflowError(Exception):
    """Base class for inkflow errors."""


class StorageCorruptError(InkflowError):
    """Raised when a saved manuscript cannot be parsed.

    The file is left untouched so the user can recover it by hand.

    Attributes:
        path: Path to the unreadable file
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str = "Saved manuscript is corrupt"):
        """Initialize StorageCorruptError.

        Args:
            path: Path to the unreadable file
            message: Human-readable error message
        """
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")
