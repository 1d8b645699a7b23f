"""``${key}`` / ``${key:default}`` reference resolution against a ConfigTree."""

import re
from typing import Any, Optional

from .config_tree import ConfigTree

VARIABLE_PATTERN = re.compile(r"\$\{([^}]+)\}")
UNRESOLVED_MARKER = "${"


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve(value: Optional[str], tree: ConfigTree) -> Optional[str]:
    """Substitute every ``${...}`` span of ``value`` in a single left-to-right pass.

    The span body is split on the first ``:`` into a dotted key and an
    optional default. A key found in ``tree`` wins, then the default; with
    neither, the span is left untouched. Substituted text is not re-scanned.
    """
    if value is None or UNRESOLVED_MARKER not in value:
        return value

    def _replace(match: "re.Match[str]") -> str:
        key, sep, default = match.group(1).partition(":")
        found = tree.get(key)
        if found is not None:
            return _to_text(found)
        if sep:
            return default
        return match.group(0)

    return VARIABLE_PATTERN.sub(_replace, value)


def is_unresolved(value: Optional[str]) -> bool:
    """True when a resolved value still carries a ``${`` reference"""
    return value is not None and UNRESOLVED_MARKER in value
