"""Quality parsing, profile filtering and release selection."""

from .filters import SceneGroup, group_by_scene
from .parser import parse_quality, parse_torrent, strip_performer
from .selector import ProfileNotFoundError, QualitySelector, rank
from .types import ParsedTorrent, QualityProfile, QualityProfileItem

__all__ = [
    "ParsedTorrent",
    "ProfileNotFoundError",
    "QualityProfile",
    "QualityProfileItem",
    "QualitySelector",
    "SceneGroup",
    "group_by_scene",
    "parse_quality",
    "parse_torrent",
    "rank",
    "strip_performer",
]
