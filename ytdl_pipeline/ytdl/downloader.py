"""
Per-entry media download

Each entry is downloaded by a separate extractor run that reloads the
already extracted metadata from a temporary JSON file (no second round of
extraction) and echoes the post-download metadata on stdout. The echoed
record is authoritative: it carries the local filename and the final
extension.

A failed entry never raises. The failure is appended to the caller's error
list and the returned record has no local filename, so a failed attempt
cannot be mistaken for a completed download. Sibling entries of a playlist
are unaffected.
"""

import contextlib
import json
import os
import subprocess
import tempfile
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..exceptions import ExtractorProcessError
from ..utils.helpers import slugify
from ..utils.logger import get_logger
from .process import ProcessRunner

LOAD_INFO_JSON = '--load-info-json'
ECHO_JSON = ('--dump-json', '--no-simulate')
OUTPUT_FLAGS = ('-o', '--output')
OUTPUT_EXT_TEMPLATE = '.%(ext)s'

# Fields naming the downloaded file in the extractor's metadata
FILENAME_FIELDS = ('_filename', 'filename')


def strip_filename(info_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a record without its local filename fields"""
    return {key: value for key, value in info_dict.items() if key not in FILENAME_FIELDS}


class DownloadExecutor:
    """
    Downloads single entries from existing metadata

    Attributes:
        executable: Extractor executable path
        runner: Process runner
        timeout: Time limit per entry, in seconds
        slugify: Title to file name transform for the default output path
    """

    def __init__(
        self,
        executable: str,
        runner: ProcessRunner,
        timeout: float,
        slugify: Callable[[str], str] = slugify
    ):
        self.executable = executable
        self.runner = runner
        self.timeout = timeout
        self.slugify = slugify
        self.logger = get_logger(__name__)

    def build_command(self, entry: Dict[str, Any], arguments: Sequence[str], info_file: str, data_folder: str) -> List[str]:
        """
        Command line downloading one entry from its metadata file

        An explicit -o/--output in `arguments` wins over `data_folder`.
        """
        command = [self.executable, *arguments, LOAD_INFO_JSON, info_file, *ECHO_JSON]
        if not any(flag in arguments for flag in OUTPUT_FLAGS):
            command += ['-o', data_folder + self.slugify(entry.get('title', '')) + OUTPUT_EXT_TEMPLATE]
        return command

    def download_one(
        self,
        entry: Dict[str, Any],
        arguments: Sequence[str],
        data_folder: str,
        errors: List[str]
    ) -> Dict[str, Any]:
        """
        Download the media of one metadata record

        Args:
            entry: Metadata record of a single item
            arguments: Extractor options
            data_folder: Output template prefix ("" or ending with "/")
            errors: Error list the failure diagnostic is appended to

        Returns:
            The extractor's post-download record on success; on failure a
            record without local filename (the original entry when the
            metadata file could not even be written)
        """
        title = entry.get('title', '')
        info_file = None

        try:
            with tempfile.NamedTemporaryFile(
                mode='w', prefix='ytdl', suffix='.json', encoding='utf-8', delete=False
            ) as handle:
                info_file = handle.name
                json.dump(entry, handle)
        except (OSError, TypeError, ValueError) as e:
            if info_file is not None:
                with contextlib.suppress(OSError):
                    os.unlink(info_file)
            self._record(errors, f"download_one {title}: no write of info_dict in tmp file: {e}")
            return entry

        try:
            command = self.build_command(entry, arguments, info_file, data_folder)
            self.logger.debug(f"download_one cmdline: {subprocess.list2cmdline(command)}")
            try:
                result = self.runner.run(command, timeout=self.timeout)
            except ExtractorProcessError as e:
                self._record(errors, f"download_one {title}: {e.message}")
                return strip_filename(entry)
        finally:
            with contextlib.suppress(OSError):
                os.unlink(info_file)

        info_dict = _parse_record(result.stdout)

        if not result.success:
            stderr = result.stderr.strip()
            message = f"download_one {title}: exit code {result.returncode}"
            self._record(errors, f"{message} -- {stderr}" if stderr else message)
            return strip_filename(info_dict if info_dict is not None else entry)

        if info_dict is None:
            self._record(errors, f"download_one {title}: no metadata echoed by the extractor")
            return strip_filename(entry)

        self.logger.info(f"Downloaded: {title} -> {info_dict.get('_filename') or info_dict.get('filename')}")
        return info_dict

    def _record(self, errors: List[str], message: str) -> None:
        self.logger.error(message)
        errors.append(message)


def _parse_record(output: str) -> Optional[Dict[str, Any]]:
    """
    Last JSON object printed on stdout, None if there is none

    The extractor prints one JSON document per line.
    """
    for line in reversed(output.strip().splitlines()):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(record, dict):
            return record
    return None
