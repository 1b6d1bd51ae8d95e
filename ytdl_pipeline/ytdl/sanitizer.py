"""
Playlist metadata sanitation

Extractors return playlists with holes: deleted or private videos come back
as null entries or entries without a title, and the same title can appear
several times. Downloads are named after titles, so both are cleaned up
before the metadata is cached or indexed.
"""

from typing import Any, Dict, List, Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)


def is_playlist(info_dict: Optional[Dict[str, Any]]) -> bool:
    """True when the metadata record is a playlist"""
    return bool(info_dict) and info_dict.get('_type') == 'playlist'


def sanitize_info_dict(info_dict: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Remove unusable playlist entries and make entry titles unique

    Non-playlist records are returned unchanged. For playlists a new record
    is returned; the input is left untouched. Applying the function twice
    gives the same result as applying it once.

    Args:
        info_dict: Metadata record as decoded from the extractor

    Returns:
        Sanitized record
    """
    if not is_playlist(info_dict):
        return info_dict

    entries = []
    for position, entry in enumerate(info_dict.get('entries') or []):
        if not isinstance(entry, dict) or not entry.get('title'):
            logger.debug(f"remove null entry: {position}")
            continue
        entries.append(entry)

    sanitized = dict(info_dict)
    sanitized['entries'] = _unique_titles(entries)
    return sanitized


def _unique_titles(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Rename repeated titles to "<title> (<n>)"

    The first occurrence keeps its title; n starts at 2 and is bumped until
    the new title is not taken yet.
    """
    taken = set()
    occurrences: Dict[str, int] = {}
    result = []

    for entry in entries:
        title = entry['title']
        if title not in taken:
            taken.add(title)
            occurrences[title] = 1
            result.append(entry)
            continue

        count = occurrences.get(title, 1)
        while True:
            count += 1
            candidate = f"{title} ({count})"
            if candidate not in taken:
                break
        occurrences[title] = count
        taken.add(candidate)
        logger.debug(f"duplicate title renamed: {title!r} -> {candidate!r}")
        result.append({**entry, 'title': candidate})

    return result
