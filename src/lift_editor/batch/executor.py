"""
Executor for batch change requests.

Applies changes to the entries of a LiftRepository in memory, then persists
every touched entry with a single save.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from ..exceptions import DuplicateEntityError, LiftEditorError
from ..models import LexEntry, Sense, Trait, _TraitBearer
from ..repository import LiftRepository
from .schema import (
    BatchResult,
    Change,
    ChangeRequest,
    ChangeResult,
    OperationType,
)

logger = logging.getLogger(__name__)


def execute_change_request(
    request: ChangeRequest,
    repository: LiftRepository,
    dry_run: bool = False,
) -> BatchResult:
    """Execute a batch change request.

    Args:
        request: The change request to execute
        repository: The repository the changes apply to
        dry_run: If True, only simulate execution without making changes

    Returns:
        BatchResult with details of each change
    """
    start_time = time.time()
    results: List[ChangeResult] = []
    touched: Dict[str, LexEntry] = {}

    for i, change in enumerate(request.changes):
        if dry_run:
            result = _dry_run_change(change, i)
        else:
            result = _execute_change(change, i, repository, touched)
        results.append(result)

    # Entries deleted later in the batch are gone from the repository
    to_save = [e for e in touched.values() if e.id in repository]
    if to_save:
        repository.save_items(to_save)

    success_count = sum(1 for r in results if r.success)
    failure_count = sum(1 for r in results if not r.success)
    duration = time.time() - start_time

    logger.info(
        "Applied %d/%d changes, saved %d entries",
        success_count, len(results), len(to_save),
    )
    return BatchResult(
        total_count=len(results),
        success_count=success_count,
        failure_count=failure_count,
        changes=results,
        saved_count=len(to_save),
        duration_seconds=duration,
    )


def _execute_change(
    change: Change,
    index: int,
    repository: LiftRepository,
    touched: Dict[str, LexEntry],
) -> ChangeResult:
    """Execute a single change operation.

    Returns:
        ChangeResult with success/failure status
    """
    op = change.operation
    handler = _HANDLERS.get(op)
    if handler is None:
        return ChangeResult(
            index=index,
            operation=op,
            success=False,
            message=f"Unknown operation: {op}",
            error=f"Unknown operation: {op}",
        )

    try:
        return handler(change, index, repository, touched)
    except LiftEditorError as e:
        logger.warning("Change #%d (%s) failed: %s", index + 1, op, e)
        return ChangeResult(
            index=index,
            operation=op,
            success=False,
            message=f"Error: {e}",
            target=change.entry,
            error=str(e),
        )


def _dry_run_change(change: Change, index: int) -> ChangeResult:
    """Simulate a change without actually executing it."""
    op = change.operation
    target = change.entry or change.params.get("id") or "new entry"

    return ChangeResult(
        index=index,
        operation=op,
        success=True,
        message=f"Would execute {op}",
        target=target,
    )


def _ok(change: Change, index: int, message: str, target: Optional[str]) -> ChangeResult:
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=message,
        target=target,
    )


def _traits_from_spec(spec: Optional[Dict[str, Any]]) -> List[Trait]:
    traits = []
    for name, values in (spec or {}).items():
        if not isinstance(values, list):
            values = [values]
        traits.extend(Trait(name, value) for value in values)
    return traits


def _trait_owner(change: Change, entry: LexEntry) -> _TraitBearer:
    if change.sense is not None:
        return entry.get_sense(change.sense)
    return entry


def _exec_create_entry(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute create_entry operation."""
    params = change.params
    entry_id = params.get("id")
    if entry_id is not None and entry_id in repository:
        raise DuplicateEntityError(f"Entry already exists: {entry_id!r}")

    # Registered only once fully built
    entry = LexEntry(entry_id, params.get("guid"))
    for lang, text in (params.get("forms") or {}).items():
        entry.lexical_form.set(lang, text)
    for spec in params.get("senses") or []:
        entry.add_sense(
            Sense(
                spec.get("id"),
                definition=spec.get("definition"),
                traits=_traits_from_spec(spec.get("traits")),
            )
        )
    for trait in _traits_from_spec(params.get("traits")):
        entry.add_trait(trait.name, trait.value)

    repository.add_entry(entry)
    touched[entry.id] = entry
    result = _ok(change, index, f"Created entry {entry.id}", entry.id)
    result.created_id = entry.id
    return result


def _exec_delete_entry(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute delete_entry operation."""
    repository.delete(change.entry)
    touched.pop(change.entry, None)
    return _ok(change, index, f"Deleted entry {change.entry}", change.entry)


def _exec_set_form(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute set_form operation."""
    entry = repository.get(change.entry)
    lang = change.params["lang"]
    changed = entry.lexical_form.set(lang, change.params["text"])
    touched[entry.id] = entry
    message = f"Set form '{lang}'" if changed else f"Form '{lang}' unchanged"
    return _ok(change, index, message, entry.id)


def _exec_remove_form(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute remove_form operation."""
    entry = repository.get(change.entry)
    lang = change.params["lang"]
    changed = entry.lexical_form.remove(lang)
    touched[entry.id] = entry
    message = f"Removed form '{lang}'" if changed else f"No form '{lang}' to remove"
    return _ok(change, index, message, entry.id)


def _exec_add_sense(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute add_sense operation."""
    entry = repository.get(change.entry)
    sense = entry.add_sense(
        Sense(
            change.params.get("id"),
            definition=change.params.get("definition"),
            traits=_traits_from_spec(change.params.get("traits")),
        )
    )
    touched[entry.id] = entry
    result = _ok(change, index, f"Added sense {sense.id}", entry.id)
    result.created_id = sense.id
    return result


def _exec_remove_sense(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute remove_sense operation."""
    entry = repository.get(change.entry)
    entry.get_sense(change.sense)
    entry.remove_sense(change.sense)
    touched[entry.id] = entry
    return _ok(change, index, f"Removed sense {change.sense}", entry.id)


def _exec_set_definition(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute set_definition operation."""
    entry = repository.get(change.entry)
    sense = entry.get_sense(change.sense)
    lang = change.params["lang"]
    changed = sense.definition.set(lang, change.params["text"])
    touched[entry.id] = entry
    message = f"Set definition '{lang}'" if changed else f"Definition '{lang}' unchanged"
    return _ok(change, index, message, entry.id)


def _exec_add_trait(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute add_trait operation."""
    entry = repository.get(change.entry)
    name = change.params["name"]
    _trait_owner(change, entry).add_trait(name, change.params["value"])
    touched[entry.id] = entry
    return _ok(change, index, f"Added trait '{name}'", entry.id)


def _exec_set_trait(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute set_trait operation."""
    entry = repository.get(change.entry)
    name = change.params["name"]
    changed = _trait_owner(change, entry).set_trait(name, change.params["value"])
    touched[entry.id] = entry
    message = f"Set trait '{name}'" if changed else f"Trait '{name}' unchanged"
    return _ok(change, index, message, entry.id)


def _exec_remove_trait(
    change: Change, index: int, repository: LiftRepository, touched: Dict[str, LexEntry]
) -> ChangeResult:
    """Execute remove_trait operation."""
    entry = repository.get(change.entry)
    name = change.params["name"]
    changed = _trait_owner(change, entry).remove_traits(name)
    touched[entry.id] = entry
    message = f"Removed trait '{name}'" if changed else f"No trait '{name}' to remove"
    return _ok(change, index, message, entry.id)


_HANDLERS = {
    OperationType.CREATE_ENTRY.value: _exec_create_entry,
    OperationType.DELETE_ENTRY.value: _exec_delete_entry,
    OperationType.SET_FORM.value: _exec_set_form,
    OperationType.REMOVE_FORM.value: _exec_remove_form,
    OperationType.ADD_SENSE.value: _exec_add_sense,
    OperationType.REMOVE_SENSE.value: _exec_remove_sense,
    OperationType.SET_DEFINITION.value: _exec_set_definition,
    OperationType.ADD_TRAIT.value: _exec_add_trait,
    OperationType.SET_TRAIT.value: _exec_set_trait,
    OperationType.REMOVE_TRAIT.value: _exec_remove_trait,
}
