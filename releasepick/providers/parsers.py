from __future__ import annotations

from releasepick.providers.types import RawResult


def as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        if cleaned.isdigit():
            return int(cleaned)
    return None


def _first(entry: dict, *keys: str) -> object:
    for key in keys:
        value = entry.get(key)
        if value not in (None, ""):
            return value
    return None


def raw_result_from_dict(entry: dict) -> RawResult:
    """Map one indexer JSON row (snake_case or camelCase keys) to a RawResult."""
    title = _first(entry, "title", "name") or ""
    indexer_name = str(_first(entry, "indexer_name", "indexerName", "indexer") or "")
    info_hash = _first(entry, "info_hash", "infoHash")
    category = _first(entry, "category")
    publish_date = _first(entry, "publish_date", "publishDate")
    known = {
        "title", "name", "size", "seeders", "leechers", "indexer_id", "indexerId",
        "indexer_name", "indexerName", "indexer", "download_url", "downloadUrl",
        "magnet_url", "magnetUrl", "info_hash", "infoHash", "category",
        "publish_date", "publishDate",
    }
    return RawResult(
        title=str(title),
        size=as_int(entry.get("size")) or 0,
        seeders=as_int(entry.get("seeders")) or 0,
        leechers=as_int(entry.get("leechers")) or 0,
        indexer_id=str(_first(entry, "indexer_id", "indexerId") or indexer_name),
        indexer_name=indexer_name,
        download_url=str(_first(entry, "download_url", "downloadUrl", "magnet_url", "magnetUrl") or ""),
        info_hash=str(info_hash).lower() if info_hash else None,
        category=str(category) if category is not None else None,
        publish_date=str(publish_date) if publish_date is not None else None,
        metadata={k: v for k, v in entry.items() if k not in known},
    )


def _result_rows(payload: object, context: str) -> list[dict]:
    if not isinstance(payload, list):
        raise ValueError(f"{context} must be a list of result objects, got '{type(payload).__name__}'")
    for idx, row in enumerate(payload):
        if not isinstance(row, dict):
            raise ValueError(f"{context}[{idx}] is '{type(row).__name__}', not a result object")
    return payload


def raw_results_from_payload(payload: object, context: str = "results") -> list[RawResult]:
    """Read a saved indexer response: a JSON array of result rows."""
    return [raw_result_from_dict(entry) for entry in _result_rows(payload, context)]
