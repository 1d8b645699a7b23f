"""Read-only view over a merged configuration tree.

Values are plain YAML-shaped Python data: ``None``, ``bool``, ``int``/``float``,
``str``, ``list`` and ``dict``. Accessors never raise on a type mismatch, they
return ``None`` instead so callers can fall back to defaults.
"""

import copy
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple


def _normalize(value: Any) -> Any:
    """Copy ``value`` with every mapping key coerced to ``str``."""
    if isinstance(value, dict):
        return {("" if k is None else str(k)): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


class ConfigTree:
    """Immutable nested key/value tree built for one (source, profile) pair"""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = _normalize(data or {})

    def __bool__(self) -> bool:
        return bool(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, dotted_key: str) -> bool:
        return self.get(dotted_key) is not None

    def __repr__(self) -> str:
        return f"ConfigTree({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigTree):
            return NotImplemented
        return self._data == other._data

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the underlying mapping"""
        return copy.deepcopy(self._data)

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Look up ``a.b.c`` by walking nested mappings."""
        if not dotted_key:
            return default
        current: Any = self._data
        for segment in dotted_key.split("."):
            if not isinstance(current, dict) or segment not in current:
                return default
            current = current[segment]
        if current is None:
            return default
        return copy.deepcopy(current)

    def get_str(self, dotted_key: str) -> Optional[str]:
        value = self.get(dotted_key)
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (str, int, float)):
            return str(value)
        return None

    def get_bool(self, dotted_key: str) -> Optional[bool]:
        """Return a boolean, accepting ``"true"``/``"false"`` from flat sources."""
        value = self.get(dotted_key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
        return None

    def get_list(self, dotted_key: str) -> Optional[List[Any]]:
        value = self.get(dotted_key)
        return value if isinstance(value, list) else None

    def get_str_list(self, dotted_key: str) -> Optional[List[str]]:
        """Return a list of strings; a comma-separated string is split."""
        value = self.get(dotted_key)
        if isinstance(value, list):
            return [str(item) for item in value if item is not None]
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return None

    def get_mapping(self, dotted_key: str) -> Optional[Dict[str, Any]]:
        value = self.get(dotted_key)
        return value if isinstance(value, dict) else None

    def get_mapping_list(self, dotted_key: str) -> List[Dict[str, Any]]:
        """Return only the mapping entries of a declaration list."""
        items = self.get_list(dotted_key) or []
        return [item for item in items if isinstance(item, dict)]

    def iter_leaves(self, skip: Optional[Callable[[str], bool]] = None) -> Iterator[Tuple[str, Any]]:
        """Yield ``(dotted_key, value)`` for every non-null leaf in document order.

        Sequence items get an ``[i]`` suffix on their key. Subtrees whose key
        satisfies ``skip`` are not entered.
        """
        yield from self._walk(self._data, "", skip)

    def _walk(self, mapping: Dict[str, Any], prefix: str,
              skip: Optional[Callable[[str], bool]]) -> Iterator[Tuple[str, Any]]:
        for key, value in mapping.items():
            dotted = f"{prefix}.{key}" if prefix else key
            if skip and skip(dotted):
                continue
            if isinstance(value, dict):
                yield from self._walk(value, dotted, skip)
            elif isinstance(value, list):
                for index, item in enumerate(value):
                    item_key = f"{dotted}[{index}]"
                    if isinstance(item, dict):
                        yield from self._walk(item, item_key, skip)
                    elif item is not None:
                        yield item_key, item
            elif value is not None:
                yield dotted, value
