"""
Extractor orchestration package

Components, from the bottom up:

- process.py: runs the extractor executable with a time limit
- cache.py: on-disk metadata cache keyed by link, with time-to-live
- sanitizer.py: removes unusable playlist entries, deduplicates titles
- indexes.py: resolves --playlist-* flags into entry indexes
- extractor.py: metadata dump of a link
- downloader.py: per-entry download from already extracted metadata
- orchestrator.py: the Ytdl class tying everything together

Usage:

    from ytdl_pipeline.ytdl import Ytdl

    ytdl = Ytdl()
    result = ytdl.extract_infos('https://www.youtube.com/watch?v=...')
"""

from .orchestrator import Ytdl, OperationResult
from .cache import MetadataCache, cache_key
from .process import ProcessRunner, ProcessResult, find_executable
from .sanitizer import is_playlist, sanitize_info_dict
from .indexes import PlaylistSelection, parse_playlist_items, resolve_playlist_indexes

__all__ = [
    'Ytdl',
    'OperationResult',
    'MetadataCache',
    'cache_key',
    'ProcessRunner',
    'ProcessResult',
    'find_executable',
    'is_playlist',
    'sanitize_info_dict',
    'PlaylistSelection',
    'parse_playlist_items',
    'resolve_playlist_indexes',
]
