"""Exceptions raised by quasiseed."""


class QuasiseedError(Exception):
    """Base class for quasiseed errors."""


class InvalidInputError(QuasiseedError, ValueError):
    """Input that cannot be processed: mismatched lengths, empty collections, bad files."""


class ResourceCreationError(QuasiseedError, OSError):
    """An output directory or file could not be created."""

    def __init__(self, path: str, message: str = "Cannot create file"):
        super().__init__(f"{message}: {path}")
        self.path = path
