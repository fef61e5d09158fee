"""Parse quality, source and other release tags out of torrent titles."""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Tuple

from releasepick.providers.types import RawResult
from releasepick.quality.types import ParsedTorrent

# Checked in order; the first pattern found wins.
_QUALITY_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("2160p", re.compile(r"2160p|4k|uhd")),
    ("1080p", re.compile(r"1080p")),
    ("720p", re.compile(r"720p")),
    ("480p", re.compile(r"480p")),
]

_SOURCE_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("bluray", re.compile(r"bluray|blu-ray|bdrip|brrip")),
    ("webdl", re.compile(r"web-?dl")),
    ("webrip", re.compile(r"web-?rip")),
    ("hdtv", re.compile(r"hdtv")),
    ("dvd", re.compile(r"dvd")),
]

_CODEC_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("h264", re.compile(r"h\.?264|avc|x264")),
    ("h265", re.compile(r"h\.?265|hevc|x265")),
]

_AUDIO_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("aac", re.compile(r"aac")),
    ("dts", re.compile(r"dts")),
    ("dd", re.compile(r"ddp?|dolby.?digital")),
    ("atmos", re.compile(r"atmos")),
]

_SIZE_TEXT = re.compile(r"^([\d.]+)\s*(gb|mb|kb)?$")
_SIZE_MULTIPLIERS = {"gb": 1024 ** 3, "mb": 1024 ** 2, "kb": 1024, None: 1}
_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


@dataclass(frozen=True)
class ReleaseTags:
    """Tags read from a title. Codec and audio are informational only."""

    quality: str = "any"
    source: str = "any"
    codec: Optional[str] = None
    audio: Optional[str] = None


def _first_match(text: str, patterns: List[Tuple[str, Pattern[str]]]) -> Optional[str]:
    for label, pattern in patterns:
        if pattern.search(text):
            return label
    return None


def parse_quality(title: str) -> Tuple[str, str]:
    """Return (quality, source), each falling back to "any"."""
    lowered = title.lower()
    quality = _first_match(lowered, _QUALITY_PATTERNS) or "any"
    source = _first_match(lowered, _SOURCE_PATTERNS) or "any"
    return quality, source


def parse_extended(title: str) -> ReleaseTags:
    quality, source = parse_quality(title)
    lowered = title.lower()
    return ReleaseTags(
        quality=quality,
        source=source,
        codec=_first_match(lowered, _CODEC_PATTERNS),
        audio=_first_match(lowered, _AUDIO_PATTERNS),
    )


def detect_quality(title: str) -> str:
    """Display label for the resolution, or "Unknown"."""
    lowered = title.lower()
    if "2160p" in lowered or "4k" in lowered:
        return "2160p"
    for label in ("1080p", "720p", "480p"):
        if label in lowered:
            return label
    return "Unknown"


def detect_source(title: str) -> str:
    """Display label for the source, or "Unknown"."""
    lowered = title.lower()
    if "web-dl" in lowered or "webdl" in lowered:
        return "WEB-DL"
    if "webrip" in lowered:
        return "WEBRip"
    if "bluray" in lowered or "blu-ray" in lowered:
        return "BluRay"
    if "hdtv" in lowered:
        return "HDTV"
    return "Unknown"


def parse_size(text: str) -> int:
    """Parse "1.5 GB" style sizes to bytes (binary multiples); 0 if unparseable."""
    match = _SIZE_TEXT.match(text.strip().lower())
    if not match:
        return 0
    try:
        value = float(match.group(1))
    except ValueError:
        return 0
    return int(value * _SIZE_MULTIPLIERS[match.group(2)])


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_BYTE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {_BYTE_UNITS[unit]}"


_SCENE_TITLE_CLEANUP: List[Tuple[Pattern[str], str]] = [
    # Trailing spam
    (re.compile(r"\s+(want more|watch and download|get of accounts|backup/latest|to watch video|#hd|#in).*", re.I), ""),
    # Links
    (re.compile(r"t\.me/\S+", re.I), ""),
    (re.compile(r"https?://\S+", re.I), ""),
    (re.compile(r"ftp://\S+", re.I), ""),
    (re.compile(r"www\.\S+", re.I), ""),
    (re.compile(r"[a-z0-9-]+\.(com|net|org|io|to|cc|tv|xxx|html)\S*", re.I), ""),
    (re.compile(r"\b(savefiles|lulustream|doodstream|streamtape|bigwarp)\.[\w/]+", re.I), ""),
    (re.compile(r"[-=]>|<[-=]"), " "),
    (re.compile(r"\\r\\n|\\n"), " "),
    # Platform prefixes
    (
        re.compile(
            r"\b(onlyfans|manyvids|fansly|patreon|fancentro|pornhub|xvideos|chaturbate|cam4|"
            r"myfreecams|mfc|streamate|mrluckyraw|tagteampov|baddiesonlypov)[-.\s]*",
            re.I,
        ),
        "",
    ),
    (re.compile(r"\b(new|full|xxx|nsfw|leaked|exclusive|premium|vip|hot|sexy|latest|hd|rq)\b", re.I), ""),
    # Dates
    (re.compile(r"\b\d{2}\s+\d{2}\s+\d{2}\b"), ""),
    (re.compile(r"\b\d{4}\s+\d{2}\s+\d{2}\b"), ""),
    (re.compile(r"\b(19|20)\d{2}[-_.]\d{2}[-_.]\d{2}\b"), ""),
    (re.compile(r"\b(19|20)\d{2}\b"), ""),
    # Quality, source, codec, audio, container
    (re.compile(r"\b(2160p|1080p|720p|480p|4k|uhd|hd|sd)\b", re.I), ""),
    (re.compile(r"\b(web-?dl|webrip|bluray|blu-ray|hdtv|dvdrip|bdrip|brrip)\b", re.I), ""),
    (re.compile(r"\b(h\.?264|h\.?265|x264|x265|hevc|avc|mpeg|divx|xvid)\b", re.I), ""),
    (re.compile(r"\b(aac|ac3|dts|flac|mp3|dd5\.1|dd2\.0|atmos)\b", re.I), ""),
    (re.compile(r"\b(mp4|mkv|avi|wmv|mov|flv|m4v|ts|mpg|mpeg)\b", re.I), ""),
    # Release groups
    (re.compile(r"\[.*?\]"), ""),
    (re.compile(r"\(.*?\)"), ""),
    (re.compile(r"\b\d+(\.\d+)?\s?(gb|mb|gib|mib)\b", re.I), ""),
    (re.compile(r"\b(s\d{2}e\d{2}|e\d{2,3})\b", re.I), ""),
    (
        re.compile(
            r"\b(repack|proper|real|retail|extended|unrated|directors?\.cut|remastered|xleech|p2p|xc)\b",
            re.I,
        ),
        "",
    ),
    (re.compile(r'\\"'), '"'),
    (re.compile(r"[-_.]{2,}"), " "),
]

_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = re.compile(r'^[-_.",]+|[-_.",]+$')


def extract_scene_title(title: str) -> str:
    """Strip release metadata from a torrent title, leaving the scene name."""
    cleaned = title
    for pattern, replacement in _SCENE_TITLE_CLEANUP:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    cleaned = _EDGE_PUNCTUATION.sub("", cleaned)
    return cleaned or title


_AKA = r"(?:aka|a\.k\.a\.|also known as)"
_NAME_SEPARATOR = r"[\s._-]+"
_NAME_EDGE = r"[-–—:,]?"
_MIN_STRIPPED_LENGTH = 5
_LEFTOVER_EDGE = re.compile(r"^[-–—:,.\s]+|[-–—:,.\s]+$")
_STRIPPED_TRAILERS = (
    re.compile(r"\.(mp4|mkv|avi|mov|wmv|flv|webm)$", re.I),
    re.compile(r"\s+[-–—:,]?\s*(xxx|1080p|720p|480p|2160p|4k|p2p|xc|leech)?\s*$", re.I),
)


def _name_regex(name: str) -> str:
    # Dotted and dashed release spellings ("Jade.Harper") match too.
    return _NAME_SEPARATOR.join(re.escape(word) for word in name.split())


def strip_performer(title: str, performer: Optional[str], aliases: Iterable[str] = ()) -> str:
    """
    Remove a performer's name, and any aliases, from a title.

    "A aka B" credits are removed first, then each name with the dash, colon
    or comma next to it. If fewer than five characters remain the title is
    returned unchanged.
    """
    if not performer or not performer.strip():
        return title
    names = [performer, *(alias for alias in aliases if alias and alias.strip())]
    main = _name_regex(performer)

    cleaned = title
    for name in names:
        other = _name_regex(name)
        cleaned = re.sub(rf"\b{main}\s+{_AKA}\s+{other}\b|\b{other}\s+{_AKA}\s+{main}\b", " ", cleaned, flags=re.I)
    for name in names:
        cleaned = re.sub(rf"{_NAME_EDGE}\s*\b{_name_regex(name)}\b\s*{_NAME_EDGE}", " ", cleaned, flags=re.I)
    cleaned = re.sub(rf"\s+{_AKA}\s+", " ", cleaned, flags=re.I)
    cleaned = _LEFTOVER_EDGE.sub("", _WHITESPACE.sub(" ", cleaned))

    if len(cleaned) < _MIN_STRIPPED_LENGTH:
        return title
    for pattern in _STRIPPED_TRAILERS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


def parse_torrent(raw: RawResult, match_score: int = 0) -> ParsedTorrent:
    """Annotate an indexer result with parsed quality/source and its match score."""
    quality, source = parse_quality(raw.title)
    return ParsedTorrent(
        title=raw.title,
        size=raw.size,
        seeders=raw.seeders,
        leechers=raw.leechers,
        indexer_id=raw.indexer_id,
        indexer_name=raw.indexer_name,
        quality=quality,
        source=source,
        match_score=match_score,
        download_url=raw.download_url,
        info_hash=raw.info_hash,
        category=raw.category,
        publish_date=raw.publish_date,
        indexer_count=raw.indexer_count,
    )
