"""
ytdl-pipeline: metadata extraction and download around yt-dlp / youtube-dl

The package drives an external media extractor as a black box: it asks it
for the JSON metadata of a link, keeps that metadata in an on-disk cache,
cleans up playlists (missing entries, repeated titles), works out which
playlist entries to act on from the usual --playlist-* flags, and downloads
every selected entry from the metadata already extracted.

## Architecture

**Configuration (`ytdl_pipeline/config/`)**
- YAML settings with environment variable overrides
- Extractor option store rendering command-line arguments

**Extraction pipeline (`ytdl_pipeline/ytdl/`)**
- Process runner with time limit and live stderr forwarding
- Metadata cache, sanitizer, playlist index resolver
- Per-entry download executor isolating failures
- `Ytdl` orchestrator returning per-call results and diagnostics

**Utilities (`ytdl_pipeline/utils/`)**
- Colored console and rotating file logging with progress bars
- Slug and path helpers, command-line input validation

## Usage

    from ytdl_pipeline import Ytdl, Options

    ytdl = Ytdl(Options({'--playlist-items': '1-3'}))
    result = ytdl.download('https://www.youtube.com/playlist?list=...', data_folder='downloads')
    print(result.downloaded_files(), result.errors)

Command line:

    ytdl-pipeline extract https://www.youtube.com/watch?v=...
    ytdl-pipeline download https://www.youtube.com/playlist?list=... -o downloads --items 1-3
"""

__version__ = "0.3.0"
__title__ = "ytdl-pipeline"
__description__ = "Cached metadata extraction and playlist download around yt-dlp"

from .config import Options, get_settings, reload_settings
from .exceptions import (
    YtdlPipelineError,
    ConfigError,
    ExtractorNotFoundError,
    ExtractorProcessError,
    ExtractorTimeoutError,
    PlaylistSelectionError,
)
from .ytdl import Ytdl, OperationResult

__all__ = [
    '__version__',
    'Ytdl',
    'OperationResult',
    'Options',
    'get_settings',
    'reload_settings',
    'YtdlPipelineError',
    'ConfigError',
    'ExtractorNotFoundError',
    'ExtractorProcessError',
    'ExtractorTimeoutError',
    'PlaylistSelectionError',
]
