"""
Exception classes for ytdl-pipeline.

Exception Hierarchy:
    YtdlPipelineError (base)
        ConfigError - Invalid configuration values
        ExtractorNotFoundError - No extractor executable on the host
        ExtractorProcessError - Extractor could not run or produced unusable output
            ExtractorTimeoutError - Extractor exceeded the time limit
        PlaylistSelectionError - Malformed playlist selection (--playlist-items)

Per-entry download failures, stderr warnings and cache write failures are
not raised: they are recorded in OperationResult.errors and logged, so a
single failing entry never aborts a playlist batch.
"""


class YtdlPipelineError(Exception):
    """
    Base exception for all ytdl-pipeline errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (link, command, ...).

    Example:
        try:
            result = ytdl.extract_infos(link)
        except YtdlPipelineError as e:
            logger.error(f"Extraction failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description shown to the user.
            details: Optional dictionary containing additional context.
                     Common keys include:
                     - 'link': the source link being processed
                     - 'command': the extractor command line
                     - 'original_error': the underlying exception as string
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(YtdlPipelineError):
    """
    Raised when a configuration value is invalid.

    This is a CRITICAL error that should stop program execution.

    Example:
        raise ConfigError(
            "'cache.duration' must be a non-negative integer",
            details={'field': 'cache.duration', 'value': -1}
        )
    """
    pass


class ExtractorNotFoundError(YtdlPipelineError):
    """
    Raised when the extractor executable (yt-dlp / youtube-dl) cannot be found.

    This is a CRITICAL error: nothing can be extracted or downloaded.
    """
    pass


class ExtractorProcessError(YtdlPipelineError):
    """
    Raised when the extractor process fails during a primary extraction.

    CRITICAL for extract_infos() and run(). Never raised out of a
    per-entry download, where the failure is recorded instead.

    Common causes:
        - Executable missing or not runnable
        - Non-zero exit status on the run() path
        - Output on stdout that is not a JSON object

    Attributes:
        returncode: Exit status of the process, None if it never ran.
        stderr: Captured standard error output.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        returncode: int | None = None,
        stderr: str = ""
    ) -> None:
        super().__init__(message, details)
        self.returncode = returncode
        self.stderr = stderr


class ExtractorTimeoutError(ExtractorProcessError):
    """Raised when the extractor process exceeds the configured time limit."""
    pass


class PlaylistSelectionError(YtdlPipelineError, ValueError):
    """
    Raised when a playlist selection cannot be parsed.

    Example:
        raise PlaylistSelectionError(
            "Invalid playlist item token: 'abc'",
            details={'items': '1,abc', 'token': 'abc'}
        )
    """
    pass
