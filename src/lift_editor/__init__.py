__version__ = "0.1.0"

from .repository import (
    LiftRepository as LiftRepository,
)

from .models import (
    LexEntry as LexEntry,
    MultiText as MultiText,
    Sense as Sense,
    Trait as Trait,
)

from .exceptions import (
    LiftEditorError as LiftEditorError,
    UnreadableError as UnreadableError,
    CorruptEntryError as CorruptEntryError,
    EntityNotFoundError as EntityNotFoundError,
    DuplicateEntityError as DuplicateEntityError,
    InvalidPathError as InvalidPathError,
    PathNotFoundError as PathNotFoundError,
    StorageError as StorageError,
    RepositoryClosedError as RepositoryClosedError,
)

from .dates import (
    EPOCH as EPOCH,
)

from .lift_schema import (
    LIFT_VERSION as LIFT_VERSION,
    DEFAULT_PRODUCER as DEFAULT_PRODUCER,
)

__all__ = [
    # Repository
    "LiftRepository",
    # Model
    "LexEntry",
    "MultiText",
    "Sense",
    "Trait",
    # Exceptions
    "LiftEditorError",
    "UnreadableError",
    "CorruptEntryError",
    "EntityNotFoundError",
    "DuplicateEntityError",
    "InvalidPathError",
    "PathNotFoundError",
    "StorageError",
    "RepositoryClosedError",
    # Constants
    "EPOCH",
    "LIFT_VERSION",
    "DEFAULT_PRODUCER",
]
