"""Per-profile analysis pipeline: merge config, extract, assemble, write."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..config_loader import ConfigLoader
from ..errors import DocumentWriteError
from ..writer import write_document
from .assembler import RequirementsAssembler
from .config import AnalyzerConfig
from .deployment_detector import detect_platform
from .extractor import InfrastructureExtractor
from .pattern_classifier import PatternClassifier
from .source_scanner import SourceScanner
from .types import ExtractionDiagnostics, Platform, RequirementsDocument

logger = logging.getLogger(__name__)


@dataclass
class ProfileResult:
    """Outcome for one profile"""
    profile: str
    document: RequirementsDocument
    diagnostics: ExtractionDiagnostics = field(default_factory=ExtractionDiagnostics)
    output_path: Optional[Path] = None
    error: Optional[str] = None


@dataclass
class AnalysisReport:
    platform: Platform
    config_source: Optional[Path]
    results: List[ProfileResult] = field(default_factory=list)

    @property
    def failures(self) -> List[ProfileResult]:
        return [result for result in self.results if result.error is not None]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def dropped_unresolved(self) -> Dict[str, int]:
        return {result.profile: result.diagnostics.unresolved_count for result in self.results}


class InfrastructureAnalyzer:
    """Runs the extraction pipeline over every configured profile.

    The source scan does not depend on the profile, so one scanner (and its
    cached result) is shared by all profiles of a run.
    """

    def __init__(self, config: AnalyzerConfig, classifier: Optional[PatternClassifier] = None):
        self.config = config
        self.classifier = classifier or PatternClassifier()
        self.loader = ConfigLoader(config.config_path)
        self.scanner = SourceScanner(config.source_path, self.classifier)
        self._platform: Optional[Platform] = None

    @property
    def platform(self) -> Platform:
        if self._platform is None:
            if self.config.platform == "auto":
                self._platform = detect_platform(
                    self.config.project_path, self.config.plugin_ids, self.config.config_path
                )
            else:
                self._platform = Platform(self.config.platform)
            logger.info(f"Deployment platform: {self._platform.value}")
        return self._platform

    def analyze_profile(self, profile: str) -> Tuple[RequirementsDocument, ExtractionDiagnostics]:
        tree = self.loader.load(profile)
        extractor = InfrastructureExtractor(tree, self.scanner, self.classifier)
        assembler = RequirementsAssembler(self.config.project_name, self.platform)
        document = assembler.assemble(profile, extractor)
        if extractor.diagnostics.unresolved_count:
            logger.warning(
                f"[{profile}] dropped {extractor.diagnostics.unresolved_count} "
                f"declaration(s) with unresolved references"
            )
        return document, extractor.diagnostics

    def analyze(self) -> List[RequirementsDocument]:
        """Build every profile's document without touching the output directory"""
        return [self.analyze_profile(profile)[0] for profile in self.config.profiles]

    def run(self, write: bool = True) -> AnalysisReport:
        report = AnalysisReport(platform=self.platform, config_source=self.loader.find_source())
        output_dir = self.config.output_path

        for profile in self.config.profiles:
            document, diagnostics = self.analyze_profile(profile)
            result = ProfileResult(profile=profile, document=document, diagnostics=diagnostics)
            if write:
                try:
                    result.output_path = write_document(document, output_dir)
                except DocumentWriteError as e:
                    logger.error(str(e))
                    result.error = str(e)
            report.results.append(result)

        return report
