"""
YAML parser for batch change requests.

Requests read from YAML remember the source line of each change, so
validation messages can point back into the file.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .schema import Change, ChangeRequest


class ParseError(Exception):
    """Error parsing a change request file."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message)


def load_change_request(
    source: Union[str, Path, Dict[str, Any]],
) -> ChangeRequest:
    """Load a change request from a YAML file, YAML string or dictionary.

    A relative ``lift`` path in a request file is resolved against the
    directory holding that file.

    Raises:
        ParseError: If the YAML is malformed or the request is invalid
        FileNotFoundError: If a request file does not exist
    """
    if isinstance(source, dict):
        return _parse_change_request(source, [], None)

    source_path: Optional[Path] = None
    if isinstance(source, Path) or _looks_like_path(source):
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"File not found: {source_path}")
        text = source_path.read_text(encoding="utf-8")
    else:
        text = source

    data, lines = _load_yaml(text)
    return _parse_change_request(data, lines, source_path)


def load_yaml_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load the raw mapping of a request file without interpreting it."""
    data, _ = _load_yaml(Path(path).read_text(encoding="utf-8"))
    return data


def _looks_like_path(s: str) -> bool:
    if "\n" in s:
        return False
    return "/" in s or "\\" in s or s.endswith((".yaml", ".yml"))


def _load_yaml(text: str) -> Tuple[Dict[str, Any], List[int]]:
    """Parse *text*, returning the mapping and the line of each change."""
    loader = yaml.SafeLoader(text)
    try:
        node = loader.get_single_node()
        data = loader.construct_document(node) if node is not None else None
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ParseError(
            f"Invalid YAML: {e}", line=mark.line + 1 if mark else None
        ) from e
    finally:
        loader.dispose()

    if data is None:
        raise ParseError("Empty YAML content")
    if not isinstance(data, dict):
        raise ParseError("YAML root must be a mapping (dictionary)")
    return data, _change_lines(node)


def _change_lines(root: yaml.Node) -> List[int]:
    for key, value in root.value:
        if key.value == "changes" and isinstance(value, yaml.SequenceNode):
            return [item.start_mark.line + 1 for item in value.value]
    return []


def _parse_change_request(
    data: Dict[str, Any],
    lines: List[int],
    source_path: Optional[Path],
) -> ChangeRequest:
    lift = data.get("lift")
    if lift is not None and not isinstance(lift, str):
        raise ParseError("Field 'lift' must be a string")
    lift_path = Path(lift) if lift else None
    if lift_path is not None and source_path is not None and not lift_path.is_absolute():
        lift_path = source_path.parent / lift_path

    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise ParseError("Field 'description' must be a string")

    raw_changes = data.get("changes")
    if raw_changes is None:
        raise ParseError("Missing required field: 'changes'")
    if not isinstance(raw_changes, list):
        raise ParseError("Field 'changes' must be a list")
    if not raw_changes:
        raise ParseError("Field 'changes' cannot be empty")

    changes = []
    for i, raw in enumerate(raw_changes):
        line = lines[i] if i < len(lines) else None
        changes.append(_parse_change(raw, i, line))

    return ChangeRequest(
        changes=changes,
        lift_file=lift_path,
        description=description,
        source_file=source_path,
    )


def _parse_change(raw: Any, index: int, line: Optional[int]) -> Change:
    if not isinstance(raw, dict):
        raise ParseError(f"Change #{index + 1} must be a mapping", line=line)

    operation = raw.get("operation")
    if not operation:
        raise ParseError(
            f"Change #{index + 1}: Missing required field 'operation'", line=line
        )
    if not isinstance(operation, str):
        raise ParseError(
            f"Change #{index + 1}: Field 'operation' must be a string", line=line
        )

    params = {k: v for k, v in raw.items() if k != "operation"}
    return Change(operation=operation, params=params, line_number=line)
