"""
Utilities package
Common helpers, logging, and input validation
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    OperationLogger,
    create_operation_logger,
    log_performance,
)
from .helpers import (
    slugify,
    normalize_data_folder,
    ensure_directory,
)
from .validation import (
    validate_url,
    validate_playlist_items,
    validate_output_directory,
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'OperationLogger',
    'create_operation_logger',
    'log_performance',

    # Helper exports
    'slugify',
    'normalize_data_folder',
    'ensure_directory',

    # Validation exports
    'validate_url',
    'validate_playlist_items',
    'validate_output_directory',
]
