"""
Configuration package for ytdl-pipeline

Two components:

1. Settings management (settings.py):
   - Application configuration from YAML files and environment variables
   - Settings validation
   - Singleton access through get_settings() / reload_settings()

2. Extractor options (options.py):
   - Flag/value store rendered as an extractor argument list
   - parse_flag() for "--flag=value" strings from the command line

Usage:

    from ytdl_pipeline.config import get_settings, Options

    settings = get_settings()
    options = Options(settings.extractor.options)
"""

from .settings import get_settings, reload_settings, Settings
from .options import Options, parse_flag

__all__ = [
    'get_settings',
    'reload_settings',
    'Settings',
    'Options',
    'parse_flag',
]
