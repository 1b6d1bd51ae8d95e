"""
Extraction, cache and download orchestration

Ytdl is the entry point of the package. It keeps the metadata of the last
extracted link in memory and drives three steps:

    extract_infos(link)
        metadata cache -> (miss) extractor dump -> sanitation -> cache write

    download(link, info_dict=None, data_folder='')
        metadata from the caller, from memory or from extract_infos(link)
        -> playlist index resolution -> one extractor run per selected entry

    run(*arguments)
        plain extractor launch with the current options

Every top-level call returns an OperationResult holding the metadata and
the diagnostics collected during that call only. A non-empty result can
still carry errors (a playlist where some entries failed); callers check
both.

Example:

    ytdl = Ytdl(Options({'-f': '18/best', '--playlist-items': '1-3'}))
    result = ytdl.download('https://www.youtube.com/playlist?list=...', data_folder='tmp/')
    for path in result.downloaded_files():
        print(path)
    for error in result.errors:
        print(error)
"""

import json
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union
from pathlib import Path

from ..config.options import Options
from ..config.settings import Settings, get_settings
from ..utils.helpers import normalize_data_folder, slugify
from ..utils.logger import get_logger, create_operation_logger, log_performance
from .cache import MetadataCache
from .downloader import DownloadExecutor, FILENAME_FIELDS
from .extractor import ExtractorClient
from .indexes import (
    PLAYLIST_SELECTION_FLAGS,
    PlaylistSelection,
    resolve_playlist_indexes,
)
from .process import ProcessRunner, find_executable
from .sanitizer import is_playlist, sanitize_info_dict
from ..exceptions import ExtractorProcessError

FORMAT_FLAGS = ('-f', '--format')


def local_filename(info_dict: Optional[Dict[str, Any]]) -> Optional[str]:
    """Downloaded file of a record, None if it has none"""
    if not info_dict:
        return None
    for key in FILENAME_FIELDS:
        if info_dict.get(key):
            return info_dict[key]
    return None


@dataclass
class OperationResult:
    """
    Outcome of one top-level Ytdl operation

    Attributes:
        data: Metadata record. For extract_infos an empty dict means nothing
              was found; for download None means there was no metadata to
              download from.
        errors: Diagnostics collected during this call, in order
    """
    data: Optional[Dict[str, Any]] = None
    errors: List[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.data)

    @property
    def ok(self) -> bool:
        """True when the call produced no diagnostics"""
        return not self.errors

    def downloaded_files(self) -> List[str]:
        """Local filenames present in the result, in entry order"""
        if not self.data:
            return []
        if is_playlist(self.data):
            records = self.data.get('entries') or []
        else:
            records = [self.data]
        return [name for name in (local_filename(record) for record in records) if name]


class Ytdl:
    """
    Wrapper around the yt-dlp / youtube-dl executable

    Attributes:
        options: Extractor option store shared with the caller
        settings: Application settings
        cache: Metadata cache
        executable: Extractor executable path
        runner: Process runner used for every extractor call
    """

    def __init__(
        self,
        options: Optional[Options] = None,
        executable: Optional[str] = None,
        runner: Optional[ProcessRunner] = None,
        settings: Optional[Settings] = None,
        slugify: Callable[[str], str] = slugify,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the wrapper

        Args:
            options: Extractor options; defaults to the configured default flags
            executable: Extractor path; looked up on PATH from the settings if None
            runner: Process runner; a real ProcessRunner if None
            settings: Settings; the global settings if None
            slugify: Title to file name transform for default output paths
            rng: Random source for --playlist-random

        Raises:
            ExtractorNotFoundError: If no executable is given and none is found
        """
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        self.options = options if options is not None else Options(self.settings.extractor.options)
        # A format must be set for info_dict['url'] to exist, which a
        # download from cached metadata relies on
        if not self.options.has_any(*FORMAT_FLAGS):
            self.options.set_option('-f', self.settings.extractor.default_format)

        self.runner = runner or ProcessRunner()
        self.timeout = self.settings.extractor.timeout
        self.slugify = slugify
        self.rng = rng

        self.cache = MetadataCache(
            self.settings.cache.directory,
            duration=self.settings.cache.duration,
            enabled=self.settings.cache.enabled,
        )

        self.set_executable(executable or find_executable(self.settings.extractor.executable))
        self._info_dict: Dict[str, Any] = {}

    def set_executable(self, executable: str) -> None:
        """Override the extractor executable path"""
        self.executable = executable
        self._extractor = ExtractorClient(executable, self.runner, self.timeout)
        self._executor = DownloadExecutor(executable, self.runner, self.timeout, self.slugify)

    def set_cache(
        self,
        directory: Optional[Union[str, Path]] = None,
        duration: Optional[int] = None,
        enabled: Optional[bool] = None
    ) -> None:
        """
        Override the cache settings; arguments left as None keep their value

        Args:
            directory: Cache directory
            duration: Time-to-live in seconds
            enabled: False disables the cache
        """
        self.cache = MetadataCache(
            directory if directory is not None else self.cache.directory,
            duration=duration if duration is not None else self.cache.duration,
            enabled=enabled if enabled is not None else self.cache.enabled,
        )

    @property
    def info_dict(self) -> Dict[str, Any]:
        """Metadata held in memory, empty before any extraction"""
        return self._info_dict

    def reset(self) -> None:
        """Forget the metadata held in memory"""
        self._info_dict = {}

    @staticmethod
    def is_playlist(info_dict: Optional[Dict[str, Any]]) -> bool:
        return is_playlist(info_dict)

    def run(self, *arguments: str) -> str:
        """
        Launch the extractor with the current options

        Args:
            arguments: Extra arguments appended after the options (links, ...)

        Returns:
            The extractor's standard output, stripped

        Raises:
            ExtractorProcessError: If the extractor cannot run or exits non-zero
        """
        command = [self.executable, *self.options.get_options(), *arguments]
        result = self.runner.run(command, timeout=self.timeout)

        if not result.success:
            stderr = result.stderr.strip()
            message = f"run ExitCode: {result.returncode} -- {stderr}"
            self.logger.error(message)
            raise ExtractorProcessError(
                message,
                details={'command': command},
                returncode=result.returncode,
                stderr=stderr
            )

        return result.stdout.strip()

    @log_performance
    def extract_infos(self, link: str) -> OperationResult:
        """
        Extract the metadata of a link, through the cache

        A playlist is always extracted whole and in its natural order: the
        playlist selection flags are left out of the extractor call and
        applied at download time, so the cached metadata does not depend on
        them.

        Args:
            link: Media or playlist link (webpage_url)

        Returns:
            OperationResult whose data is the sanitized metadata, or an
            empty dict when nothing was found

        Raises:
            ExtractorProcessError: If the extractor cannot run or its output
                                   is unusable
        """
        errors: List[str] = []
        self._info_dict = {}

        cached = self._load_cached(link)
        if cached is not None:
            self.logger.debug(f"load from cache url: {link} ; from cache file: {self.cache.path_for(link)}")
            self._info_dict = cached
            return OperationResult(self._info_dict, errors)

        arguments = self.options.get_options(exclude=PLAYLIST_SELECTION_FLAGS)
        outcome = self._extractor.extract(link, arguments)
        errors.extend(outcome.diagnostics)
        if outcome.returncode != 0:
            message = f"extract_infos exit code {outcome.returncode}"
            self.logger.error(message)
            errors.append(message)

        if outcome.metadata:
            self._info_dict = sanitize_info_dict(outcome.metadata)
            if self.cache.write(link, json.dumps(self._info_dict)):
                self.logger.debug(f"write {self.cache.path_for(link)} to cache for url: {link}")

        return OperationResult(self._info_dict, errors)

    def _load_cached(self, link: str) -> Optional[Dict[str, Any]]:
        blob = self.cache.load(link)
        if not blob:
            return None
        try:
            info_dict = json.loads(blob)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Ignoring unreadable cache entry for {link}: {e}")
            return None
        return info_dict if isinstance(info_dict, dict) and info_dict else None

    def playlist_indexes(self, info_dict: Optional[Dict[str, Any]] = None) -> List[int]:
        """
        Zero-based indexes of the playlist entries selected by the options

        Args:
            info_dict: Playlist record; the in-memory metadata if None

        Returns:
            Entry indexes in download order
        """
        info_dict = info_dict if info_dict is not None else self._info_dict
        count = len(info_dict.get('entries') or [])
        selection = PlaylistSelection.from_options(self.options)
        return resolve_playlist_indexes(count, selection, self.rng)

    @log_performance
    def download(
        self,
        link: str,
        info_dict: Optional[Dict[str, Any]] = None,
        data_folder: str = ''
    ) -> OperationResult:
        """
        Download the media of a link

        Metadata comes from, in order of priority: `info_dict`, the metadata
        held in memory, a fresh extract_infos(link).

        For a playlist, every selected entry is downloaded in turn and the
        playlist entries are replaced by the downloaded records. A failed
        entry is recorded in the errors and has no local filename; the
        other entries are still downloaded.

        Args:
            link: Media or playlist link (webpage_url)
            info_dict: Previously extracted metadata
            data_folder: Download directory; ignored when the options carry -o/--output

        Returns:
            OperationResult with the post-download metadata, or with data
            None when there is nothing to download

        Raises:
            ExtractorProcessError: If a needed extraction cannot run
            PlaylistSelectionError: If the playlist flags are malformed
        """
        errors: List[str] = []
        data_folder = normalize_data_folder(data_folder)

        if info_dict:
            self._info_dict = sanitize_info_dict(info_dict)
        elif not self._info_dict:
            errors.extend(self.extract_infos(link).errors)

        if not self._info_dict:
            return OperationResult(None, errors)

        arguments = self.options.get_options(exclude=PLAYLIST_SELECTION_FLAGS)

        if self.is_playlist(self._info_dict):
            self._info_dict = self._download_playlist(self._info_dict, arguments, data_folder, errors)
        else:
            self._info_dict = self._executor.download_one(self._info_dict, arguments, data_folder, errors)

        return OperationResult(self._info_dict, errors)

    def _download_playlist(
        self,
        info_dict: Dict[str, Any],
        arguments: List[str],
        data_folder: str,
        errors: List[str]
    ) -> Dict[str, Any]:
        entries = info_dict.get('entries') or []
        indexes = self.playlist_indexes(info_dict)

        operation = create_operation_logger(__name__, f"download playlist: {info_dict.get('title', '')}")
        operation.start()

        downloaded = []
        try:
            for position, index in enumerate(indexes, 1):
                entry = entries[index]
                downloaded.append(self._executor.download_one(entry, arguments, data_folder, errors))
                operation.progress(entry.get('title', ''), position, len(indexes))
        finally:
            operation.close()

        completed = sum(1 for record in downloaded if local_filename(record))
        operation.complete(f"{completed} of {len(indexes)} entries downloaded")

        return {**info_dict, 'entries': downloaded}
