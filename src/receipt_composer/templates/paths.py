"""Dotted-path lookup into nested receipt data."""

from typing import Any, Mapping


class _Missing:
    """Marker for a path that does not resolve (distinct from a stored None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def resolve_path(data: Any, path: str) -> Any:
    """
    Walk a dotted path such as ``customer.address.city`` through nested mappings.

    Lists are not traversable by path; only the iterator row walks lists.

    Args:
        data: Data context (usually a dict decoded from JSON)
        path: Dotted field path

    Returns:
        The stored value (which may be None), or MISSING if any segment
        cannot be followed
    """
    current = data
    for segment in path.split('.'):
        if not isinstance(current, Mapping) or segment not in current:
            return MISSING
        current = current[segment]
    return current


class UnresolvedPath(str):
    """Placeholder value for a path that did not resolve; renders as the path itself."""

    __slots__ = ()
