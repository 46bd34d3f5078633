"""Helpers that turn host-supplied parameter values into clean request fragments."""

import copy
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from explorium_node.core.errors import EmptyInput, InvalidInput, ValidationError

logger = logging.getLogger(__name__)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def exclude_empty_values(obj: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is missing, blank or an empty container."""
    return {key: value for key, value in obj.items() if not is_blank(value)}


def clean_strings(values: Iterable[Any]) -> List[str]:
    """Strip every entry and drop the blank ones, keeping order."""
    cleaned: List[str] = []
    for value in values or []:
        if is_blank(value):
            continue
        cleaned.append(str(value).strip())
    return cleaned


def collection_entries(value: Any, name: str) -> List[Any]:
    """Unwrap the host's fixed-collection shape ``{name: [...]}`` into a plain list."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        inner = value.get(name)
        if inner is None:
            return []
        value = inner
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def collection_values(value: Any, name: str, subkey: str) -> List[str]:
    """Read a list of scalar values out of a collection parameter.

    Accepts ``["a", "b"]``, ``[{"code": "a"}]`` or ``{"country_code": [{"code": "a"}]}``.
    """
    values = []
    for entry in collection_entries(value, name):
        if isinstance(entry, Mapping):
            entry = entry.get(subkey)
        values.append(entry)
    return clean_strings(values)


def parse_json_field(raw: Any, field_name: str = "json_input") -> Any:
    """Parse a JSON string coming from a raw-input field; mappings pass through untouched."""
    if raw is None:
        return {}
    if not isinstance(raw, (str, bytes)):
        return copy.deepcopy(raw)
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"{field_name} is not valid JSON: {exc.msg} (line {exc.lineno})") from exc


def parse_json_object(raw: Any, field_name: str = "json_input") -> Dict[str, Any]:
    parsed = parse_json_field(raw, field_name)
    if not isinstance(parsed, dict):
        raise InvalidInput(f"{field_name} must be a JSON object")
    return parsed


def deep_merge(target: Dict[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``source`` into ``target`` in place and return it.

    Nested objects merge recursively. When the existing value is a list, incoming
    lists extend it and incoming scalars are appended; anything else overwrites.
    """
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            deep_merge(existing, value)
        elif isinstance(existing, list):
            if isinstance(value, list):
                existing.extend(copy.deepcopy(value))
            else:
                existing.append(copy.deepcopy(value))
        else:
            target[key] = copy.deepcopy(value)
    return target


def merge_json_inputs(raw_values: Iterable[Any], field_name: str = "json_input") -> Dict[str, Any]:
    """Deep-merge JSON objects supplied across several input items."""
    merged: Dict[str, Any] = {}
    count = 0
    for raw in raw_values:
        deep_merge(merged, parse_json_object(raw, field_name))
        count += 1
    if not merged:
        raise EmptyInput(f"{field_name} is empty after merging {count} input item(s)")
    logger.debug("Merged %d JSON input items into keys=%s", count, sorted(merged))
    return merged


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def as_int(value: Any, field_name: str, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field_name} must be an integer, got {value!r}") from exc


def optional_str(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    return str(value).strip()
