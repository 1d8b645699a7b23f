"""
Run configuration for the infrastructure analyzer.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..config_tree import ConfigTree

VALIDATION_NAMESPACE = "infrastructure.validation"
DEFAULT_COMPANY_DOMAIN = "company.com"
DEFAULT_PROFILES = ["dev", "stage", "prod"]
PLATFORM_CHOICES = ("auto", "vm", "kubernetes")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AnalyzerConfig:
    """Settings for one analyzer run over a project"""

    project_dir: str = "."
    project_name: Optional[str] = None
    profiles: List[str] = field(default_factory=lambda: list(DEFAULT_PROFILES))

    # Where application.yaml/.yml/.properties lives (defaults to project_dir)
    config_dir: Optional[str] = None
    source_dir: str = "src/main/java"
    output_dir: str = "build/infrastructure"

    # Platform detection
    platform: str = "auto"
    plugin_ids: List[str] = field(default_factory=list)

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.profiles:
            raise ValueError("profiles must contain at least one profile name")
        if self.platform not in PLATFORM_CHOICES:
            raise ValueError(f"platform must be one of {', '.join(PLATFORM_CHOICES)}")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.project_name is None:
            self.project_name = Path(self.project_dir).resolve().name

    @property
    def project_path(self) -> Path:
        return Path(self.project_dir)

    @property
    def config_path(self) -> Path:
        return Path(self.config_dir) if self.config_dir else self.project_path

    @property
    def source_path(self) -> Path:
        return self.project_path / self.source_dir

    @property
    def output_path(self) -> Path:
        return self.project_path / self.output_dir

    def to_dict(self) -> Dict[str, Any]:
        return {field.name: getattr(self, field.name) for field in self.__dataclass_fields__.values()}

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'AnalyzerConfig':
        return cls(**config_dict)

    @classmethod
    def create_single_profile_config(cls, project_dir: str, profile: str, **overrides: Any) -> 'AnalyzerConfig':
        """Configuration that analyzes one profile, e.g. for a deployment pipeline stage"""
        return cls(project_dir=project_dir, profiles=[profile], **overrides)


@dataclass(frozen=True)
class ValidationSettings:
    """Keys read from the ``infrastructure.validation`` namespace of a merged tree"""

    company_domain: str = DEFAULT_COMPANY_DOMAIN
    exclude_patterns: Tuple[str, ...] = ()
    source_code_analysis: bool = True

    @classmethod
    def from_tree(cls, tree: ConfigTree) -> 'ValidationSettings':
        domain = tree.get_str(f"{VALIDATION_NAMESPACE}.company-domain")
        patterns = tree.get_str_list(f"{VALIDATION_NAMESPACE}.exclude-patterns") or []
        enabled = tree.get_bool(f"{VALIDATION_NAMESPACE}.source-code-analysis.enabled")
        return cls(
            company_domain=domain or DEFAULT_COMPANY_DOMAIN,
            exclude_patterns=tuple(patterns),
            source_code_analysis=True if enabled is None else enabled,
        )
