"""
Input validation utilities
"""
import re
from pathlib import Path
from urllib.parse import urlparse
from typing import Optional, Tuple

_ITEM_TOKEN = re.compile(r'^\s*\d+\s*(-\s*\d+\s*)?$')


def validate_url(url: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a media link

    Args:
        url: URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url:
        return False, "URL cannot be empty"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Error parsing URL: {e}"

    if result.scheme not in ('http', 'https'):
        return False, "URL must start with http:// or https://"

    if not result.netloc:
        return False, "URL has no host"

    return True, None


def validate_playlist_items(items: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a --playlist-items value such as "1,3-5,20"

    Args:
        items: Comma separated item numbers and ranges

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not items or not items.strip():
        return False, "Playlist items cannot be empty"

    for token in items.split(','):
        if not token.strip():
            continue
        if not _ITEM_TOKEN.match(token):
            return False, f"Invalid playlist item: '{token.strip()}'"

    return True, None


def validate_output_directory(path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate output directory path

    The directory does not need to exist yet, but must not be a file.

    Args:
        path: Directory path to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not path:
        return False, "Output directory cannot be empty"

    path_obj = Path(path).expanduser()
    if path_obj.exists() and not path_obj.is_dir():
        return False, f"Not a directory: {path_obj}"

    return True, None
