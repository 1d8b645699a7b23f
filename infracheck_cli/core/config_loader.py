"""Layered configuration loading.

Loads a Spring-style ``application.yaml`` / ``application.yml`` /
``application.properties`` source and merges the profile-less base layer
with the overlay selected by a profile name.
"""

import copy
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .config_tree import ConfigTree

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("application.yaml", "application.yml", "application.properties")
RESOURCES_SUBDIR = Path("src") / "main" / "resources"

_INDEXED_SEGMENT = re.compile(r"^(.*?)((?:\[\d+\])*)$")
_INDEX = re.compile(r"\[(\d+)\]")
_PROPERTY_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``source`` into ``target`` in place and return ``target``.

    Mappings present on both sides are merged key by key. Any other value,
    sequences included, is overwritten by the ``source`` side.
    """
    for key, source_value in source.items():
        target_value = target.get(key)
        if isinstance(source_value, dict) and isinstance(target_value, dict):
            deep_merge(target_value, source_value)
        else:
            target[key] = copy.deepcopy(source_value)
    return target


def _tokenize_key(dotted_key: str) -> List[Union[str, int]]:
    tokens: List[Union[str, int]] = []
    for part in dotted_key.split("."):
        match = _INDEXED_SEGMENT.match(part)
        name, indexes = match.group(1), match.group(2)
        if name:
            tokens.append(name)
        tokens.extend(int(index) for index in _INDEX.findall(indexes))
    return tokens


def _finalize(value: Any) -> Any:
    """Turn index-keyed placeholder mappings into lists ordered by index."""
    if not isinstance(value, dict):
        return value
    converted = {key: _finalize(item) for key, item in value.items()}
    if converted and all(isinstance(key, int) for key in converted):
        return [converted[key] for key in sorted(converted)]
    return converted


def explode_flat(flat: Dict[str, Any]) -> Any:
    """Expand ``{"a.b.c": "x"}`` into ``{"a": {"b": {"c": "x"}}}``.

    ``name[i]`` segments become sequence positions. When a key addresses a
    level that already holds a scalar, the scalar is replaced by a mapping.
    """
    root: Dict[Any, Any] = {}
    for dotted_key, value in flat.items():
        tokens = _tokenize_key(dotted_key)
        if not tokens:
            continue
        current = root
        for token in tokens[:-1]:
            nested = current.get(token)
            if not isinstance(nested, dict):
                nested = {}
                current[token] = nested
            current = nested
        current[tokens[-1]] = value
    return _finalize(root)


def _unescape_property(text: str) -> str:
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u" and i + 6 <= len(text):
            try:
                out.append(chr(int(text[i + 2:i + 6], 16)))
                i += 6
                continue
            except ValueError:
                pass
        out.append(_PROPERTY_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _logical_lines(text: str) -> List[str]:
    lines: List[str] = []
    pending = ""
    for raw in text.splitlines():
        line = raw.lstrip() if pending else raw.strip()
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        lines.append(pending + line)
        pending = ""
    if pending:
        lines.append(pending)
    return lines


def parse_properties(text: str) -> Dict[str, str]:
    """Parse ``.properties`` text into an ordered flat ``{key: value}`` mapping"""
    result: Dict[str, str] = {}
    for line in _logical_lines(text):
        key_end = len(line)
        i = 0
        while i < len(line):
            ch = line[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "=: \t":
                key_end = i
                break
            i += 1
        key = line[:key_end]
        rest = line[key_end:].lstrip(" \t")
        if rest[:1] in ("=", ":"):
            rest = rest[1:].lstrip(" \t")
        result[_unescape_property(key)] = _unescape_property(rest)
    return result


def _as_profiles(marker: Any) -> Optional[List[str]]:
    if marker is None:
        return None
    if isinstance(marker, list):
        return [str(item) for item in marker if item is not None]
    return [str(marker)]


def extract_profile(document: Dict[str, Any]) -> Optional[List[str]]:
    """Return the profile names a YAML document activates on, or ``None`` for base documents."""
    spring = document.get("spring")
    if not isinstance(spring, dict):
        return None
    config = spring.get("config")
    if isinstance(config, dict):
        activate = config.get("activate")
        if isinstance(activate, dict) and activate.get("on-profile") is not None:
            return _as_profiles(activate.get("on-profile"))
    return _as_profiles(spring.get("profiles"))


def merge_yaml_text(text: str, profile: Optional[str]) -> Dict[str, Any]:
    """Merge the documents of a multi-document YAML source for ``profile``.

    Raises ``yaml.YAMLError`` on malformed input.
    """
    base: Dict[str, Any] = {}
    overlay: Dict[str, Any] = {}
    for document in yaml.safe_load_all(text):
        if not isinstance(document, dict):
            continue
        profiles = extract_profile(document)
        if profiles is None:
            deep_merge(base, document)
        elif profile is not None and profile in profiles:
            deep_merge(overlay, document)
    return deep_merge(base, overlay)


def merge(source: Union[str, Path], profile: Optional[str] = None) -> ConfigTree:
    """Build the merged :class:`ConfigTree` for ``source`` and ``profile``.

    Never raises: an unreadable or unparsable source yields an empty tree
    and a logged warning.
    """
    path = Path(source)
    if path.suffix == ".properties":
        return ConfigTree(_merge_properties(path, profile))
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read config source {path}: {e}")
        return ConfigTree()
    try:
        return ConfigTree(merge_yaml_text(text, profile))
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse config source {path}: {e}")
        return ConfigTree()
    except RecursionError:
        logger.warning(f"Ignoring config source {path}: self-referencing anchors or nesting too deep")
        return ConfigTree()


def _load_properties_file(path: Path) -> Optional[Dict[str, Any]]:
    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.warning(f"Failed to read properties file {path}: {e}")
        return None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        # .properties files are traditionally ISO-8859-1
        text = raw.decode("latin-1")
    tree = explode_flat(parse_properties(text))
    if not isinstance(tree, dict):
        # only bare "[i]" keys; there is no named root to attach them to
        logger.warning(f"Ignoring properties file {path}: keys do not form a mapping")
        return None
    return tree


def _merge_properties(path: Path, profile: Optional[str]) -> Dict[str, Any]:
    merged = _load_properties_file(path) or {}
    if profile:
        sibling = path.with_name(f"{path.stem}-{profile}{path.suffix}")
        if sibling.exists():
            overlay = _load_properties_file(sibling)
            if overlay:
                deep_merge(merged, overlay)
    return merged


class ConfigLoader:
    """Locates the configuration source of a project and merges it per profile"""

    def __init__(self, config_dir: Union[str, Path] = "."):
        self.config_dir = Path(config_dir)

    def find_source(self) -> Optional[Path]:
        """Return the first existing config file, preferring YAML over properties"""
        for base in (self.config_dir / RESOURCES_SUBDIR, self.config_dir):
            for filename in CONFIG_FILENAMES:
                candidate = base / filename
                if candidate.is_file():
                    return candidate
        return None

    def load(self, profile: Optional[str] = None) -> ConfigTree:
        source = self.find_source()
        if source is None:
            logger.warning(
                f"No application.yaml, application.yml or application.properties under {self.config_dir}"
            )
            return ConfigTree()
        tree = merge(source, profile)
        logger.debug(f"Loaded {source.name} for profile {profile!r}: {len(tree)} top-level keys")
        return tree
