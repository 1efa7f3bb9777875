"""
Conversion of loosely-typed daemon payloads into canonical records.

Search plugins are third-party scripts, so their results arrive with fields
missing, numbers encoded as text, or -1 for "unknown". Each field is decoded
on its own; an entry is dropped only when a required field is unusable, and
one bad entry never fails the rest of the batch.
"""

import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .models import SearchPluginDescriptor, SearchResultRecord


def decode_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None


def decode_int(value: Any) -> Optional[int]:
    """Decode an integer that may be encoded as a float or numeric text."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None
    return None


def decode_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes"):
            return True
        if text in ("false", "0", "no"):
            return False
    return None


def decode_str_list(value: Any) -> Optional[List[str]]:
    """
    Decode a list of strings.

    Newer daemons report plugin categories as objects with an "id" key
    instead of bare strings; both forms are accepted.
    """
    if not isinstance(value, (list, tuple)):
        return None
    items = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("id")
        text = decode_str(item)
        if text:
            items.append(text)
    return items


def _count(value: Any) -> int:
    number = decode_int(value)
    if number is None or number < 0:
        return 0
    return number


def normalize_entry(raw: Any) -> Optional[SearchResultRecord]:
    """Normalize one raw result entry, or return None if it must be dropped."""
    if not isinstance(raw, Mapping):
        return None

    title = decode_str(raw.get("fileName"))
    download_uri = decode_str(raw.get("fileUrl"))
    if not title or not download_uri:
        return None

    return SearchResultRecord(
        title=title,
        download_uri=download_uri,
        size_bytes=_count(raw.get("fileSize")),
        seeder_count=_count(raw.get("nbSeeders")),
        leecher_count=_count(raw.get("nbLeechers")),
        source_site_uri=decode_str(raw.get("siteUrl")) or "",
        description_uri=decode_str(raw.get("descrLink")) or "",
    )


def normalize(raw_entries: Iterable[Any]) -> List[SearchResultRecord]:
    """
    Normalize a batch of raw result entries.

    Output keeps input order; entries missing a title or download URI are
    left out.
    """
    records = []
    for raw in raw_entries:
        record = normalize_entry(raw)
        if record is not None:
            records.append(record)
    return records


def normalize_plugin(raw: Any) -> Optional[SearchPluginDescriptor]:
    if not isinstance(raw, Mapping):
        return None

    name = decode_str(raw.get("name"))
    if not name:
        return None

    return SearchPluginDescriptor(
        id=name,
        display_name=decode_str(raw.get("fullName")) or name,
        version=decode_str(raw.get("version")) or "",
        enabled=bool(decode_bool(raw.get("enabled"))),
        supported_categories=frozenset(decode_str_list(raw.get("supportedCategories")) or []),
        url=decode_str(raw.get("url")) or "",
    )


def normalize_plugins(raw_entries: Iterable[Any]) -> List[SearchPluginDescriptor]:
    plugins = []
    for raw in raw_entries:
        plugin = normalize_plugin(raw)
        if plugin is not None:
            plugins.append(plugin)
    return plugins


def supported_categories(plugins: Sequence[SearchPluginDescriptor]) -> List[str]:
    """Return "all" followed by every category an enabled plugin supports."""
    categories = set()
    for plugin in plugins:
        if plugin.enabled:
            categories.update(plugin.supported_categories)
    categories.discard("all")
    return ["all"] + sorted(categories)
