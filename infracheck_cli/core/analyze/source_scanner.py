"""
Static scan of a Java source tree for hard-coded file paths and URLs.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterator, List, Optional, Set, Union

import javalang

from .pattern_classifier import PatternClassifier

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".java"
TEST_DIR_NAMES = frozenset({"test", "tests"})

_JAVA_ESCAPE = re.compile(r"\\(u+[0-9a-fA-F]{4}|[0-7]{1,3}|.)")
_SIMPLE_ESCAPES = {"b": "\b", "t": "\t", "n": "\n", "f": "\f", "r": "\r", "s": " "}


def unquote_java_string(token: str) -> str:
    """Turn a raw ``"..."`` literal token into its runtime value"""
    body = token[1:-1]

    def _replace(match: "re.Match[str]") -> str:
        escape = match.group(1)
        if escape[0] == "u":
            return chr(int(escape.lstrip("u"), 16))
        if escape[0] in "01234567":
            return chr(int(escape, 8))
        return _SIMPLE_ESCAPES.get(escape, escape)

    value = _JAVA_ESCAPE.sub(_replace, body)
    if not has_surrogates(value):
        return value
    # \uXXXX escapes are UTF-16 code units; join surrogate pairs
    try:
        return value.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeDecodeError:
        return value


def has_surrogates(value: str) -> bool:
    return any("\ud800" <= ch <= "\udfff" for ch in value)


def _is_string_literal(node: javalang.tree.Literal) -> bool:
    value = node.value
    return isinstance(value, str) and len(value) >= 2 and value.startswith('"') and value.endswith('"')


class JavaLiteralCollector:
    """Collects candidate string literals from one compilation unit.

    Literals inside annotation arguments are documentation (``@Schema(example = ...)``)
    rather than runtime values; their node identities are gathered first and
    subtracted from the general literal population.
    """

    def __init__(self, compilation_unit: javalang.tree.CompilationUnit):
        self.compilation_unit = compilation_unit

    def annotation_literal_ids(self) -> Set[int]:
        ids: Set[int] = set()
        for _, annotation in self.compilation_unit.filter(javalang.tree.Annotation):
            for _, literal in annotation.filter(javalang.tree.Literal):
                ids.add(id(literal))
        return ids

    def string_literals(self) -> List[str]:
        excluded = self.annotation_literal_ids()
        values = []
        for _, literal in self.compilation_unit.filter(javalang.tree.Literal):
            if id(literal) in excluded or not _is_string_literal(literal):
                continue
            values.append(unquote_java_string(literal.value))
        return values

    def constant_initializers(self) -> List[str]:
        """Initializer literals of ``static final`` fields"""
        values = []
        for _, declaration in self.compilation_unit.filter(javalang.tree.FieldDeclaration):
            modifiers = declaration.modifiers or set()
            if "static" not in modifiers or "final" not in modifiers:
                continue
            for declarator in declaration.declarators:
                initializer = declarator.initializer
                if isinstance(initializer, javalang.tree.Literal) and _is_string_literal(initializer):
                    values.append(unquote_java_string(initializer.value))
        return values

    def candidates(self) -> List[str]:
        return self.string_literals() + self.constant_initializers()


@dataclass(frozen=True)
class ScanResult:
    """Profile-independent outcome of one source-tree scan"""
    paths: FrozenSet[str] = field(default_factory=frozenset)
    urls: FrozenSet[str] = field(default_factory=frozenset)
    files_scanned: int = 0
    files_skipped: int = 0


class SourceScanner:
    """Walks ``source_root`` once and caches the accepted literal sets"""

    def __init__(self, source_root: Union[str, Path], classifier: Optional[PatternClassifier] = None):
        self.source_root = Path(source_root)
        self.classifier = classifier or PatternClassifier()
        self._result: Optional[ScanResult] = None

    def scan_paths(self) -> FrozenSet[str]:
        return self.scan().paths

    def scan_urls(self) -> FrozenSet[str]:
        return self.scan().urls

    def scan(self) -> ScanResult:
        if self._result is None:
            self._result = self._scan()
        return self._result

    def iter_source_files(self) -> Iterator[Path]:
        """Yield ``.java`` files below the root, pruning test directories"""
        for root, dirs, files in os.walk(self.source_root):
            dirs[:] = sorted(d for d in dirs if d.lower() not in TEST_DIR_NAMES)
            for name in sorted(files):
                if name.endswith(SOURCE_SUFFIX):
                    yield Path(root) / name

    def _scan(self) -> ScanResult:
        if not self.source_root.is_dir():
            logger.info(f"Source directory {self.source_root} not found; skipping source analysis")
            return ScanResult()

        paths: Set[str] = set()
        urls: Set[str] = set()
        scanned = skipped = 0
        for file_path in self.iter_source_files():
            candidates = self._parse_candidates(file_path)
            if candidates is None:
                skipped += 1
                continue
            scanned += 1
            for value in candidates:
                if has_surrogates(value):
                    logger.debug(f"Skipping literal with unpaired surrogates in {file_path}")
                    continue
                if self.classifier.is_source_excluded(value):
                    continue
                if self.classifier.is_valid_file_path(value):
                    paths.add(value)
                if self.classifier.is_valid_url(value):
                    urls.add(value)

        logger.info(
            f"Source analysis complete: {scanned} files scanned, {skipped} skipped, "
            f"{len(paths)} paths and {len(urls)} URLs found"
        )
        return ScanResult(frozenset(paths), frozenset(urls), scanned, skipped)

    def _parse_candidates(self, file_path: Path) -> Optional[List[str]]:
        try:
            content = file_path.read_text(encoding="utf-8", errors="replace")
            compilation_unit = javalang.parse.parse(content)
        except Exception as e:
            # JavaSyntaxError/LexerError, plus bare errors javalang raises on newer syntax
            logger.debug(f"Failed to parse {file_path}: {e!r}")
            return None
        return JavaLiteralCollector(compilation_unit).candidates()
