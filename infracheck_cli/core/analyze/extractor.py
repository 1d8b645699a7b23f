"""
Hybrid extraction of infrastructure findings from a merged configuration tree
and a static source scan.

Each category is extracted by an ordered list of tiers:

1. explicit declarations under ``infrastructure.validation.<category>``
2. config-derived values found by walking every leaf of the tree, only when
   no explicit declaration list exists for the category
3. source-derived literals from :class:`SourceScanner`, unless disabled

Tier outputs are concatenated in that order and deduplicated by value, so the
first tier to name a path or URL decides its criticality and description.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..config_tree import ConfigTree
from ..resolver import is_unresolved, resolve
from .config import VALIDATION_NAMESPACE, ValidationSettings
from .pattern_classifier import PatternClassifier
from .source_scanner import ScanResult, SourceScanner
from .types import (
    ApiFinding,
    DirectoryFinding,
    ExtractionDiagnostics,
    FileFinding,
    Finding,
    Origin,
)

logger = logging.getLogger(__name__)

FILES = "files"
APIS = "apis"
DIRECTORIES = "directories"

DEFAULT_API_METHOD = "HEAD"
DEFAULT_PERMISSIONS = "rwx"
SOURCE_DESCRIPTION = "detected in source code"
COMPANY_DOMAIN_NOTE = "(company domain)"
EXTERNAL_NOTE = "(external - warning only)"

Tier = Callable[[], List[Finding]]


def deduplicate(findings: Iterable[Finding]) -> List[Finding]:
    """Keep the first finding per distinct value, preserving order"""
    unique: Dict[str, Finding] = {}
    for finding in findings:
        if finding.value not in unique:
            unique[finding.value] = finding
    return list(unique.values())


def merge_tiers(tier_results: Iterable[Iterable[Finding]]) -> List[Finding]:
    """Concatenate tier outputs in priority order, then deduplicate once"""
    accumulated: List[Finding] = []
    for findings in tier_results:
        accumulated.extend(findings)
    return deduplicate(accumulated)


def run_tiers(tiers: Iterable[Tier]) -> List[Finding]:
    return merge_tiers(tier() for tier in tiers)


def parse_critical(item: Dict[str, Any]) -> bool:
    value = item.get("critical", True)
    if isinstance(value, str) and value.strip().lower() == "false":
        # flat sources carry every value as a string
        return False
    return value if isinstance(value, bool) else True


def _description(item: Dict[str, Any], fallback: str) -> str:
    value = item.get("description")
    return fallback if value is None else str(value)


def _expected_status(item: Dict[str, Any]) -> Optional[Tuple[int, ...]]:
    raw = item.get("expected-status", item.get("expectedStatus"))
    if raw is None:
        return None
    if not isinstance(raw, list):
        raw = [raw]
    codes = []
    for code in raw:
        try:
            codes.append(int(code))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric expected status {code!r}")
    return tuple(codes) or None


def _permissions(raw: Any) -> str:
    if not isinstance(raw, str):
        return DEFAULT_PERMISSIONS
    flags = "".join(flag for flag in "rwx" if flag in raw.lower())
    if not flags:
        logger.warning(f"Permissions {raw!r} contain none of r, w, x; using {DEFAULT_PERMISSIONS}")
        return DEFAULT_PERMISSIONS
    return flags


def _in_validation_namespace(key: str) -> bool:
    return key.startswith(VALIDATION_NAMESPACE)


class InfrastructureExtractor:
    """Extracts file, API and directory findings for one profile"""

    def __init__(self,
                 tree: ConfigTree,
                 scanner: Optional[SourceScanner] = None,
                 classifier: Optional[PatternClassifier] = None):
        self.tree = tree
        self.scanner = scanner
        self.classifier = classifier or (scanner.classifier if scanner else PatternClassifier())
        self.settings = ValidationSettings.from_tree(tree)
        self.diagnostics = ExtractionDiagnostics()

    @property
    def company_domain(self) -> str:
        return self.settings.company_domain

    # ========== files ==========

    def file_tiers(self) -> List[Tier]:
        return [self._explicit_files, self._config_files, self._source_files]

    def extract_files(self) -> List[FileFinding]:
        files = run_tiers(self.file_tiers())
        logger.debug(f"Extracted {len(files)} file findings")
        return files

    def _explicit_files(self) -> List[FileFinding]:
        files = []
        for item in self._declarations(FILES):
            path = self._resolved_value(FILES, item, "path")
            if path is None:
                continue
            files.append(FileFinding(
                path=path,
                location=self.classifier.location_class(path),
                critical=parse_critical(item),
                description=_description(item, path),
                origin=Origin.EXPLICIT,
            ))
        return files

    def _config_files(self) -> List[FileFinding]:
        if self._has_declarations(FILES):
            return []
        files = []
        seen = set()
        for key, value in self._candidate_leaves():
            if value in seen or not self.classifier.is_file_path(value):
                continue
            seen.add(value)
            files.append(FileFinding(
                path=value,
                location=self.classifier.location_class(value),
                critical=True,
                description=key,
                origin=Origin.CONFIG_DERIVED,
            ))
        return files

    def _source_files(self) -> List[FileFinding]:
        scan = self._scan()
        if scan is None:
            return []
        return [
            FileFinding(
                path=path,
                location=self.classifier.location_class(path),
                critical=True,
                description=SOURCE_DESCRIPTION,
                origin=Origin.SOURCE_DERIVED,
            )
            for path in sorted(scan.paths)
            if not self.classifier.should_exclude(path, self.settings.exclude_patterns)
        ]

    # ========== external APIs ==========

    def api_tiers(self) -> List[Tier]:
        return [self._explicit_apis, self._config_apis, self._source_apis]

    def extract_apis(self) -> List[ApiFinding]:
        apis = run_tiers(self.api_tiers())
        logger.debug(f"Extracted {len(apis)} API findings")
        return apis

    def is_company_url(self, url: str) -> bool:
        return self.company_domain in url

    def _explicit_apis(self) -> List[ApiFinding]:
        apis = []
        for item in self._declarations(APIS):
            url = self._resolved_value(APIS, item, "url")
            if url is None:
                continue
            method = item.get("method")
            apis.append(ApiFinding(
                url=url,
                method=str(method).upper() if method else DEFAULT_API_METHOD,
                critical=parse_critical(item),
                description=_description(item, url),
                origin=Origin.EXPLICIT,
                expected_status=_expected_status(item),
            ))
        return apis

    def _config_apis(self) -> List[ApiFinding]:
        if self._has_declarations(APIS):
            return []
        apis = []
        seen = set()
        for key, value in self._candidate_leaves():
            if self.classifier.is_url(value):
                url = value
            elif self.classifier.is_bare_domain(value) and self.is_company_url(value):
                url = f"https://{value}"
            else:
                continue
            if url in seen:
                continue
            seen.add(url)
            company = self.is_company_url(url)
            apis.append(ApiFinding(
                url=url,
                method=DEFAULT_API_METHOD,
                critical=company,
                description=f"{key} {COMPANY_DOMAIN_NOTE if company else EXTERNAL_NOTE}",
                origin=Origin.CONFIG_DERIVED,
            ))
        return apis

    def _source_apis(self) -> List[ApiFinding]:
        scan = self._scan()
        if scan is None:
            return []
        apis = []
        for url in sorted(scan.urls):
            if self.classifier.should_exclude(url, self.settings.exclude_patterns):
                continue
            company = self.is_company_url(url)
            apis.append(ApiFinding(
                url=url,
                method=DEFAULT_API_METHOD,
                critical=company,
                description=f"{SOURCE_DESCRIPTION} {COMPANY_DOMAIN_NOTE if company else EXTERNAL_NOTE}",
                origin=Origin.SOURCE_DERIVED,
            ))
        return apis

    # ========== directories (explicit only) ==========

    def extract_directories(self) -> List[DirectoryFinding]:
        directories = []
        for item in self._declarations(DIRECTORIES):
            path = self._resolved_value(DIRECTORIES, item, "path")
            if path is None:
                continue
            directories.append(DirectoryFinding(
                path=path,
                permissions=_permissions(item.get("permissions", DEFAULT_PERMISSIONS)),
                critical=parse_critical(item),
                description=_description(item, ""),
                origin=Origin.EXPLICIT,
            ))
        return deduplicate(directories)

    # ========== helpers ==========

    def _declarations(self, category: str) -> List[Dict[str, Any]]:
        return self.tree.get_mapping_list(f"{VALIDATION_NAMESPACE}.{category}")

    def _has_declarations(self, category: str) -> bool:
        return bool(self.tree.get_list(f"{VALIDATION_NAMESPACE}.{category}"))

    def _resolved_value(self, category: str, item: Dict[str, Any], field_name: str) -> Optional[str]:
        """Resolve a declaration's value, recording why it was dropped when it cannot be used"""
        raw = item.get(field_name)
        if not isinstance(raw, str) or not raw.strip():
            logger.warning(f"Skipping {category} declaration without a '{field_name}': {item}")
            self.diagnostics.record_invalid(category)
            return None
        value = resolve(raw, self.tree)
        if is_unresolved(value):
            logger.warning(f"Skipping {category} declaration with unresolved reference: {value}")
            self.diagnostics.record_unresolved(category, value)
            return None
        if self.classifier.should_exclude(value):
            logger.debug(f"Skipping excluded {category} declaration: {value}")
            return None
        return value

    def _candidate_leaves(self) -> Iterable[Tuple[str, str]]:
        for key, value in self.tree.iter_leaves(skip=_in_validation_namespace):
            if not isinstance(value, str):
                continue
            if self.classifier.should_exclude(value, self.settings.exclude_patterns):
                continue
            yield key, value

    def _scan(self) -> Optional[ScanResult]:
        if not self.settings.source_code_analysis or self.scanner is None:
            return None
        return self.scanner.scan()
