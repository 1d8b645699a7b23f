"""Classification, extraction and assembly of infrastructure findings."""

from .assembler import RequirementsAssembler, determine_namespace
from .extractor import InfrastructureExtractor, deduplicate, merge_tiers
from .pattern_classifier import DEFAULT_PATTERNS, PatternClassifier, PatternSet
from .source_scanner import ScanResult, SourceScanner
from .types import (
    ApiFinding,
    DirectoryFinding,
    FileFinding,
    LocationClass,
    Origin,
    Platform,
    PlatformResource,
    RequirementsDocument,
    ResourceKind,
)

__all__ = [
    'RequirementsAssembler',
    'determine_namespace',
    'InfrastructureExtractor',
    'deduplicate',
    'merge_tiers',
    'DEFAULT_PATTERNS',
    'PatternClassifier',
    'PatternSet',
    'ScanResult',
    'SourceScanner',
    'ApiFinding',
    'DirectoryFinding',
    'FileFinding',
    'LocationClass',
    'Origin',
    'Platform',
    'PlatformResource',
    'RequirementsDocument',
    'ResourceKind',
]
