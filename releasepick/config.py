"""
config.py - Configuration model for releasepick
"""

from pathlib import Path
from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator
from rich.console import Console
import sys

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

from releasepick.quality.types import QUALITIES, SOURCES, QualityProfile, QualityProfileItem

console = Console()


class MatchingConfig(BaseModel):
    """Thresholds for relevance scoring and classification."""

    threshold: float = Field(
        default=0.7, ge=0.0, le=1.0,
        description="Minimum relevance (0-1) for find_best_match to accept a candidate"
    )
    matched_threshold: float = Field(default=0.65, ge=0.0, le=1.0)
    unknown_threshold: float = Field(default=0.35, ge=0.0, le=1.0)
    batch_pair_limit: int = Field(
        default=5000, ge=1,
        description="Maximum query x candidate pairs sent to the scorer in one call"
    )
    load_timeout_seconds: float = Field(default=600.0, gt=0)
    use_semantic_scorer: bool = True
    fallback_to_string_similarity: bool = True


class HardFilterConfig(BaseModel):
    min_match_score: int = Field(default=60, ge=0, le=100)
    min_size_mb: float = 100
    max_size_gb: float = 50


class CircuitBreakerConfig(BaseModel):
    failure_threshold: int = Field(default=3, ge=1)
    cooldown_seconds: float = Field(default=3600.0, gt=0)


class QualityProfileItemConfig(BaseModel):
    quality: str = "any"
    source: str = "any"
    min_seeders: Union[int, Literal["any"]] = "any"
    max_size: float = Field(default=0, description="Maximum size in GB; 0 disables the check")

    @field_validator("quality")
    @classmethod
    def _known_quality(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in QUALITIES:
            raise ValueError(f"unknown quality '{value}' (expected one of {', '.join(QUALITIES)})")
        return value

    @field_validator("source")
    @classmethod
    def _known_source(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in SOURCES:
            raise ValueError(f"unknown source '{value}' (expected one of {', '.join(SOURCES)})")
        return value


class QualityProfileConfig(BaseModel):
    name: str
    items: List[QualityProfileItemConfig] = Field(default_factory=list)

    def to_profile(self, profile_id: str) -> QualityProfile:
        return QualityProfile(
            id=profile_id,
            name=self.name,
            items=tuple(
                QualityProfileItem(
                    quality=item.quality,
                    source=item.source,
                    min_seeders=item.min_seeders,
                    max_size=item.max_size,
                )
                for item in self.items
            ),
        )


class ReleasePickConfig(BaseModel):
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    hard_filters: HardFilterConfig = Field(default_factory=HardFilterConfig)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    quality_profiles: Dict[str, QualityProfileConfig] = Field(default_factory=dict)
    config_path: Optional[Path] = None

    def profiles(self) -> Dict[str, QualityProfile]:
        return {key: profile.to_profile(key) for key, profile in self.quality_profiles.items()}


def load_config(config_path: Path) -> ReleasePickConfig:
    """Load configuration from TOML file"""

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        console.print("Please create config.toml with your quality profiles")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)

        return ReleasePickConfig(
            matching=MatchingConfig(**config_data.get("matching", {})),
            hard_filters=HardFilterConfig(**config_data.get("hard_filters", {})),
            circuit_breaker=CircuitBreakerConfig(**config_data.get("circuit_breaker", {})),
            quality_profiles={
                key: QualityProfileConfig(**profile_data)
                for key, profile_data in config_data.get("quality_profiles", {}).items()
            },
            config_path=config_path,
        )

    except Exception as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
