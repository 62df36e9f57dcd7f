"""
Data classes and constants for the batch change request system.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


# =============================================================================
# Operation Types
# =============================================================================

class OperationType(str, Enum):
    """Supported batch operations."""
    CREATE_ENTRY = "create_entry"
    DELETE_ENTRY = "delete_entry"
    SET_FORM = "set_form"
    REMOVE_FORM = "remove_form"
    ADD_SENSE = "add_sense"
    REMOVE_SENSE = "remove_sense"
    SET_DEFINITION = "set_definition"
    ADD_TRAIT = "add_trait"
    SET_TRAIT = "set_trait"
    REMOVE_TRAIT = "remove_trait"


# =============================================================================
# Field Requirements
# =============================================================================

# Required fields for each operation
REQUIRED_FIELDS: Dict[str, List[str]] = {
    OperationType.CREATE_ENTRY.value: [],
    OperationType.DELETE_ENTRY.value: ["entry"],
    OperationType.SET_FORM.value: ["entry", "lang", "text"],
    OperationType.REMOVE_FORM.value: ["entry", "lang"],
    OperationType.ADD_SENSE.value: ["entry"],
    OperationType.REMOVE_SENSE.value: ["entry", "sense"],
    OperationType.SET_DEFINITION.value: ["entry", "sense", "lang", "text"],
    OperationType.ADD_TRAIT.value: ["entry", "name", "value"],
    OperationType.SET_TRAIT.value: ["entry", "name", "value"],
    OperationType.REMOVE_TRAIT.value: ["entry", "name"],
}

# Optional fields for each operation
OPTIONAL_FIELDS: Dict[str, List[str]] = {
    OperationType.CREATE_ENTRY.value: ["id", "guid", "forms", "senses", "traits"],
    OperationType.DELETE_ENTRY.value: [],
    OperationType.SET_FORM.value: [],
    OperationType.REMOVE_FORM.value: [],
    OperationType.ADD_SENSE.value: ["id", "definition", "traits"],
    OperationType.REMOVE_SENSE.value: [],
    OperationType.SET_DEFINITION.value: [],
    OperationType.ADD_TRAIT.value: ["sense"],
    OperationType.SET_TRAIT.value: ["sense"],
    OperationType.REMOVE_TRAIT.value: ["sense"],
}

# Fields holding plain strings, checked by the validator
STRING_FIELDS = ("entry", "sense", "lang", "text", "name", "value", "id", "guid")


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Change:
    """Single change operation."""
    operation: str
    params: Dict[str, Any]
    line_number: Optional[int] = None

    @property
    def entry(self) -> Optional[str]:
        """Get the target entry ID if present in params."""
        return self.params.get("entry")

    @property
    def sense(self) -> Optional[str]:
        """Get the target sense ID if present in params."""
        return self.params.get("sense")


@dataclass
class ChangeRequest:
    """Parsed change request from YAML."""
    changes: List[Change]
    lift_file: Optional[Path] = None
    description: Optional[str] = None
    source_file: Optional[Path] = None


@dataclass
class ValidationError:
    """Validation error for a specific change."""
    index: int
    operation: str
    field: str
    message: str
    line_number: Optional[int] = None


@dataclass
class ValidationWarning:
    """Validation warning for a specific change."""
    index: int
    operation: str
    message: str
    line_number: Optional[int] = None


@dataclass
class ValidationResult:
    """Result of validating a change request."""
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


@dataclass
class ChangeResult:
    """Result of executing a single change."""
    index: int
    operation: str
    success: bool
    message: str
    target: Optional[str] = None
    created_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Result of executing a batch change request."""
    total_count: int
    success_count: int
    failure_count: int
    changes: List[ChangeResult]
    saved_count: int
    duration_seconds: float

    @property
    def skipped_count(self) -> int:
        return self.total_count - self.success_count - self.failure_count
