"""Helpers for addressing JSON trees with dot-delimited paths."""
from typing import Any, Dict, List, Optional

_MISSING = object()


def split_path(path: str) -> List[str]:
    """Split a dot-delimited path, ignoring empty segments."""
    return [part for part in str(path).split(".") if part]


def leaf_name(path: str) -> str:
    """Return the last segment of a path."""
    parts = split_path(path)
    return parts[-1] if parts else str(path)


def extract_field_paths(tree: Any, prefix: str = "") -> List[str]:
    """
    List the leaf paths of a JSON tree in document order.

    Objects are descended into; primitives and arrays are leaves. Empty
    objects contribute nothing.
    """
    paths: List[str] = []

    def traverse(node: Any, current: str) -> None:
        if not isinstance(node, dict):
            if current:
                paths.append(current)
            return

        for key, value in node.items():
            traverse(value, f"{current}.{key}" if current else str(key))

    traverse(tree, prefix)
    return paths


def count_fields(tree: Any, depth: int = 0, max_depth: int = 10) -> int:
    """Count leaf fields, stopping at max_depth."""
    if depth > max_depth or not isinstance(tree, dict):
        return 0

    count = 0
    for value in tree.values():
        if isinstance(value, dict):
            count += count_fields(value, depth + 1, max_depth)
        else:
            count += 1
    return count


def get_value_by_path(tree: Any, path: str, default: Any = None) -> Any:
    """Read the value at path, or default when any segment is missing."""
    current = tree
    for part in split_path(path):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return default
    return current


def set_value_by_path(tree: Dict[str, Any], path: str, value: Any) -> None:
    """
    Write value at path, creating intermediate objects as needed.

    A non-object intermediate is replaced by an object.
    """
    parts = split_path(path)
    if not parts:
        raise ValueError(f"Empty path: {path!r}")

    current = tree
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def create_field_batch(tree: Dict[str, Any], field_paths: List[str]) -> Dict[str, Any]:
    """Build a sub-tree containing only the given leaf paths."""
    batch: Dict[str, Any] = {}
    for path in field_paths:
        value = get_value_by_path(tree, path, _MISSING)
        if value is not _MISSING:
            set_value_by_path(batch, path, value)
    return batch


def max_depth(tree: Any, depth: int = 0, limit: Optional[int] = None) -> int:
    """Deepest object nesting level below tree."""
    if not isinstance(tree, (dict, list)):
        return depth
    if limit is not None and depth > limit:
        return depth

    values = tree.values() if isinstance(tree, dict) else tree
    deepest = depth
    for value in values:
        if isinstance(value, (dict, list)):
            deepest = max(deepest, max_depth(value, depth + 1, limit))
    return deepest


def has_concrete_values(tree: Any) -> bool:
    """
    Tell a sample payload from a schema.

    Schemas carry type names ("string", "number", ...) as leaf values,
    payloads carry real data.
    """
    type_names = {"string", "number", "boolean", "object", "array", "integer"}

    if not isinstance(tree, dict):
        return isinstance(tree, str) and tree not in type_names

    for value in tree.values():
        if isinstance(value, str) and value not in type_names:
            return True
        if isinstance(value, dict) and has_concrete_values(value):
            return True
    return False
