"""Rank quality-filtered torrents and pick the single best release."""

from typing import Iterable, List, Mapping, Optional, Sequence

from releasepick.quality.filters import filter_by_profile, governing_item
from releasepick.quality.types import ParsedTorrent, QualityProfile, QualityProfileItem


class ProfileNotFoundError(LookupError):
    """Raised when a selection names a quality profile that is not configured."""

    def __init__(self, profile_id: str):
        super().__init__(f"Quality profile not found: {profile_id}")
        self.profile_id = profile_id


def profile_priority(torrent: ParsedTorrent, items: Sequence[QualityProfileItem]) -> int:
    """Index of the first matching item; unmatched torrents sort after every item."""
    index = governing_item(torrent, items)
    return len(items) if index is None else index


def rank(torrents: Iterable[ParsedTorrent], items: Sequence[QualityProfileItem]) -> List[ParsedTorrent]:
    """Best first: profile priority, then seeders, match score, indexer count."""
    return sorted(
        torrents,
        key=lambda t: (profile_priority(t, items), -t.seeders, -t.match_score, -t.indexer_count),
    )


class QualitySelector:
    """Applies a named quality profile to a set of parsed torrents."""

    def __init__(self, profiles: Mapping[str, QualityProfile]):
        self._profiles = dict(profiles)

    @property
    def profile_ids(self) -> List[str]:
        return list(self._profiles)

    def get_profile(self, profile_id: str) -> QualityProfile:
        try:
            return self._profiles[profile_id]
        except KeyError:
            raise ProfileNotFoundError(profile_id) from None

    def rank(self, torrents: Iterable[ParsedTorrent], profile_id: str) -> List[ParsedTorrent]:
        """Profile-admitted torrents, best first."""
        items = self.get_profile(profile_id).items
        return rank(filter_by_profile(torrents, items), items)

    def select_best(self, torrents: Iterable[ParsedTorrent], profile_id: str) -> Optional[ParsedTorrent]:
        ranked = self.rank(torrents, profile_id)
        return ranked[0] if ranked else None
