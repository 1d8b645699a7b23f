"""
infracheck: derive machine-checkable infrastructure requirements for a
service from its Spring-style configuration and Java source tree.

Usage:
    from infracheck_cli import AnalyzerConfig, InfrastructureAnalyzer

    report = InfrastructureAnalyzer(AnalyzerConfig(project_dir="my-service")).run()
"""

from .core.analyze.config import AnalyzerConfig
from .core.analyze.infrastructure_analyzer import AnalysisReport, InfrastructureAnalyzer
from .core.analyze.types import Platform, RequirementsDocument

__version__ = "1.0.0"

__all__ = [
    "AnalyzerConfig",
    "AnalysisReport",
    "InfrastructureAnalyzer",
    "Platform",
    "RequirementsDocument",
]
