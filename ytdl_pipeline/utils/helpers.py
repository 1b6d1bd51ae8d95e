"""
Utility functions and helpers for ytdl-pipeline
Common functions for file naming and path handling
"""

import re
import unicodedata
from pathlib import Path
from typing import Union


def slugify(text: str, max_length: int = 200) -> str:
    """
    Turn an arbitrary title into a filesystem-safe slug

    Accents are folded to ASCII, everything that is not a letter or a digit
    becomes a single hyphen, and the result is lowercased.

    Args:
        text: Original text, usually a media title
        max_length: Maximum slug length

    Returns:
        Slug such as "rick-astley-never-gonna-give-you-up", or "unknown"
        when nothing usable is left
    """
    if not text:
        return "unknown"

    # Normalize unicode characters and drop what has no ASCII form
    text = unicodedata.normalize('NFKD', str(text))
    text = text.encode('ascii', 'ignore').decode('ascii')

    text = re.sub(r'[^A-Za-z0-9]+', '-', text).strip('-').lower()

    if len(text) > max_length:
        text = text[:max_length].rstrip('-')

    return text or "unknown"


def normalize_data_folder(data_folder: str) -> str:
    """
    Normalize a download folder into an output template prefix

    "" stays "" (current directory), "/" becomes "./", any other path
    loses its trailing separators and gains a single "/".

    Args:
        data_folder: Folder given by the caller

    Returns:
        Prefix to put in front of a file name
    """
    if not data_folder:
        return ""
    if data_folder == "/":
        return "./"
    return data_folder.rstrip("/\\") + "/"


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure directory exists, create if necessary

    Args:
        path: Directory path

    Returns:
        Path object
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
