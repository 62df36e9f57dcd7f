"""
Validation for batch change requests.

Provides both schema validation (required fields, types) and
referential validation (entry and sense IDs exist in the repository).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from .schema import (
    STRING_FIELDS,
    Change,
    ChangeRequest,
    OperationType,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)

logger = logging.getLogger(__name__)


def validate_change_request(
    request: ChangeRequest,
    repository: Any = None,
) -> ValidationResult:
    """Validate a change request.

    Args:
        request: The change request to validate
        repository: If given (a LiftRepository), verify that referenced
            entries and senses exist, following creations and deletions
            made earlier in the same request

    Returns:
        ValidationResult with errors and warnings
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    known: Optional[Dict[str, Set[str]]] = None
    if repository is not None:
        known = {
            entry.id: {sense.id for sense in entry.senses}
            for entry in repository.get_all()
        }

    for i, change in enumerate(request.changes):
        change_errors, change_warnings = _validate_change(change, i, known)
        errors.extend(change_errors)
        warnings.extend(change_warnings)

    logger.debug(
        "Validated %d changes: %d error(s), %d warning(s)",
        len(request.changes), len(errors), len(warnings),
    )
    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_change(
    change: Change,
    index: int,
    known: Optional[Dict[str, Set[str]]],
) -> Tuple[List[ValidationError], List[ValidationWarning]]:
    """Validate a single change operation.

    Returns:
        Tuple of (errors, warnings)
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    def error(field: str, message: str) -> None:
        errors.append(
            ValidationError(
                index=index,
                operation=change.operation,
                field=field,
                message=message,
                line_number=change.line_number,
            )
        )

    # Validate operation type
    valid_operations = {op.value for op in OperationType}
    if change.operation not in valid_operations:
        error(
            "operation",
            f"Unknown operation '{change.operation}'. "
            f"Valid: {', '.join(sorted(valid_operations))}",
        )
        return errors, warnings

    # Validate required fields
    for field in REQUIRED_FIELDS[change.operation]:
        if change.params.get(field) is None:
            error(field, f"Missing required field '{field}'")

    allowed = set(REQUIRED_FIELDS[change.operation]) | set(OPTIONAL_FIELDS[change.operation])
    for field in change.params:
        if field not in allowed:
            warnings.append(
                ValidationWarning(
                    index=index,
                    operation=change.operation,
                    message=f"Unknown field '{field}' will be ignored",
                    line_number=change.line_number,
                )
            )

    for field in STRING_FIELDS:
        value = change.params.get(field)
        if value is not None and field in allowed and not isinstance(value, str):
            error(field, f"Field '{field}' must be a string")

    for field in ("forms", "definition"):
        value = change.params.get(field)
        if value is not None and field in allowed and not _is_text_mapping(value):
            error(field, f"Field '{field}' must map language tags to text")

    if "traits" in allowed and change.params.get("traits") is not None:
        if not _is_trait_mapping(change.params["traits"]):
            error("traits", "Field 'traits' must map names to a value or list of values")

    senses = change.params.get("senses")
    if senses is not None and change.operation == OperationType.CREATE_ENTRY.value:
        errors.extend(_validate_sense_specs(change, index, senses))

    if errors or known is None:
        return errors, warnings

    _check_references(change, known, error)
    return errors, warnings


def _validate_sense_specs(
    change: Change, index: int, senses: Any
) -> List[ValidationError]:
    """Validate the 'senses' list of a create_entry operation."""
    errors: List[ValidationError] = []

    def error(message: str) -> None:
        errors.append(
            ValidationError(
                index=index,
                operation=change.operation,
                field="senses",
                message=message,
                line_number=change.line_number,
            )
        )

    if not isinstance(senses, list):
        error("Field 'senses' must be a list")
        return errors

    seen: Set[str] = set()
    for i, spec in enumerate(senses):
        if not isinstance(spec, dict):
            error(f"Sense #{i + 1} must be a mapping")
            continue
        if spec.get("id") is not None and not isinstance(spec["id"], str):
            error(f"Sense #{i + 1}: 'id' must be a string")
        elif spec.get("id") in seen:
            error(f"Sense #{i + 1}: duplicate id '{spec['id']}'")
        elif spec.get("id") is not None:
            seen.add(spec["id"])
        if spec.get("definition") is not None and not _is_text_mapping(spec["definition"]):
            error(f"Sense #{i + 1}: 'definition' must map language tags to text")
        if spec.get("traits") is not None and not _is_trait_mapping(spec["traits"]):
            error(f"Sense #{i + 1}: 'traits' must map names to values")
    return errors


def _check_references(
    change: Change,
    known: Dict[str, Set[str]],
    error: Any,
) -> None:
    """Check entry/sense references and record what this change creates."""
    op = change.operation
    params = change.params

    if op == OperationType.CREATE_ENTRY.value:
        entry_id = params.get("id")
        if entry_id is None:
            return
        if entry_id in known:
            error("id", f"Entry '{entry_id}' already exists")
            return
        known[entry_id] = {
            spec["id"] for spec in params.get("senses") or [] if spec.get("id")
        }
        return

    entry_id = change.entry
    if entry_id not in known:
        error("entry", f"Entry '{entry_id}' not found")
        return

    if op == OperationType.DELETE_ENTRY.value:
        del known[entry_id]

    elif op == OperationType.ADD_SENSE.value:
        sense_id = params.get("id")
        if sense_id is not None:
            if sense_id in known[entry_id]:
                error("id", f"Sense '{sense_id}' already exists in entry '{entry_id}'")
            else:
                known[entry_id].add(sense_id)

    elif change.sense is not None:
        if change.sense not in known[entry_id]:
            error("sense", f"Sense '{change.sense}' not found in entry '{entry_id}'")
        elif op == OperationType.REMOVE_SENSE.value:
            known[entry_id].discard(change.sense)


def _is_text_mapping(value: Any) -> bool:
    return isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    )


def _is_trait_mapping(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    for name, values in value.items():
        if not isinstance(name, str):
            return False
        if isinstance(values, list):
            if not all(isinstance(v, str) for v in values):
                return False
        elif not isinstance(values, str):
            return False
    return True
