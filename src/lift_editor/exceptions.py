"""Custom exception hierarchy for lift-editor."""


class LiftEditorError(Exception):
    """Base exception for all lift-editor errors."""


class UnreadableError(LiftEditorError):
    """Source is not a well-formed LIFT document."""


class CorruptEntryError(LiftEditorError):
    """An entry carries a required attribute that cannot be parsed."""

    def __init__(self, message: str, entry_id: str | None = None) -> None:
        self.entry_id = entry_id
        super().__init__(message)


class EntityNotFoundError(LiftEditorError):
    """Entry doesn't exist in the repository."""


class DuplicateEntityError(LiftEditorError):
    """Entry or sense with same ID already exists."""


class InvalidPathError(LiftEditorError):
    """Malformed path expression or unknown namespace prefix."""


class PathNotFoundError(LiftEditorError):
    """Path resolved to nothing where a container element was required."""


class StorageError(LiftEditorError):
    """Reading or flushing the backing file failed."""


class RepositoryClosedError(LiftEditorError):
    """Operation attempted on a closed repository."""
