"""
Pattern predicates that classify configuration and source-code string values.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Tuple

from .types import LocationClass


@dataclass(frozen=True)
class PatternSet:
    """Immutable pattern tables consumed by :class:`PatternClassifier`"""

    # Credential/key material recognised anywhere under an absolute path
    credential_extensions: Tuple[str, ...] = (
        "der", "pem", "p8", "p12", "cer", "crt", "key",
        "jks", "keystore", "pfx", "truststore",
    )
    # Top-level directories that hold service data (regex alternatives)
    storage_roots: Tuple[str, ...] = ("nas[0-9]*", "mnt", "home", "var", "opt", "data")
    # Checked longest prefix first
    location_prefixes: Tuple[Tuple[str, LocationClass], ...] = (
        ("/mnt/nas", LocationClass.SHARED_STORAGE),
        ("/nas", LocationClass.SHARED_STORAGE),
        ("/mnt", LocationClass.MOUNT),
        ("/home", LocationClass.LOCAL),
        ("/opt", LocationClass.LOCAL),
        ("/var", LocationClass.VAR),
    )
    default_excludes: Tuple[str, ...] = (
        "localhost", "127.0.0.1", "0.0.0.0", "host.docker.internal",
    )
    # Source literals also count config/descriptor files
    source_extensions: Tuple[str, ...] = (
        "der", "pem", "p8", "p12", "cer", "crt", "key", "json",
        "jks", "keystore", "properties", "xml", "yml", "yaml",
    )
    # Matched case-insensitively as substrings of source literals
    source_excludes: Tuple[str, ...] = (
        "localhost", "127.0.0.1", "0.0.0.0",
        "classpath:", "file://", "./", "../",
        "build/", "target/", ".gradle/",
        "example.com", "test.com", "mock",
    )


DEFAULT_PATTERNS = PatternSet()

_DOMAIN_LABEL = r"[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?"


def glob_to_regex(pattern: str) -> Pattern:
    """Compile a user exclude pattern where ``*`` matches anything"""
    return re.compile(re.escape(pattern).replace(r"\*", ".*"))


class PatternClassifier:
    """Pure classification functions over an injected :class:`PatternSet`"""

    def __init__(self, patterns: PatternSet = DEFAULT_PATTERNS):
        self.patterns = patterns
        roots = "|".join(patterns.storage_roots)
        self._file_extension = re.compile(
            rf"/[a-zA-Z0-9/_.-]+\.(?:{'|'.join(patterns.credential_extensions)})"
        )
        self._file_path = re.compile(rf"/(?:{roots})/[a-zA-Z0-9/_.-]+")
        self._url = re.compile(r"https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?")
        self._domain = re.compile(rf"{_DOMAIN_LABEL}(?:\.{_DOMAIN_LABEL})+")
        self._source_file = re.compile(
            rf"/[a-zA-Z0-9/_.-]+\.(?:{'|'.join(patterns.source_extensions)})"
        )
        self._source_dir = re.compile(rf"/(?:{roots})/[a-zA-Z0-9/_-]+")
        self._source_url = re.compile(r"https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/\S*)?")
        self._prefixes = sorted(patterns.location_prefixes, key=lambda item: len(item[0]), reverse=True)

    # ---- configuration values ----

    def is_file_path(self, value: Optional[str]) -> bool:
        if not value:
            return False
        return bool(self._file_extension.fullmatch(value) or self._file_path.fullmatch(value))

    def location_class(self, path: Optional[str]) -> LocationClass:
        if path is None:
            return LocationClass.UNKNOWN
        for prefix, location in self._prefixes:
            if path.startswith(prefix):
                return location
        return LocationClass.UNKNOWN

    def is_url(self, value: Optional[str]) -> bool:
        if not value:
            return False
        return bool(self._url.fullmatch(value))

    def is_bare_domain(self, value: Optional[str]) -> bool:
        """True for ``api.example.co.kr``; false for anything with a scheme, slash or whitespace"""
        if not value:
            return False
        if value.startswith(("http://", "https://")):
            return False
        if "/" in value or "$" in value or any(ch.isspace() for ch in value):
            return False
        return bool(self._domain.fullmatch(value))

    def should_exclude(self, value: Optional[str], user_patterns: Iterable[str] = ()) -> bool:
        if value is None:
            return True
        if any(exclude in value for exclude in self.patterns.default_excludes):
            return True
        for pattern in user_patterns or ():
            if pattern and glob_to_regex(pattern).search(value):
                return True
        return False

    # ---- source-code literals ----

    def is_valid_file_path(self, value: str) -> bool:
        return bool(self._source_file.fullmatch(value) or self._source_dir.fullmatch(value))

    def is_valid_url(self, value: str) -> bool:
        return bool(self._source_url.fullmatch(value))

    def is_source_excluded(self, value: str) -> bool:
        lowered = value.lower()
        return any(exclude in lowered for exclude in self.patterns.source_excludes)
