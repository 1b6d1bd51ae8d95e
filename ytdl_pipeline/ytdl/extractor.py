"""
Metadata extraction through the extractor process

Asks the extractor for a single consolidated JSON document describing the
link (one item, or a playlist with all its entries) without downloading any
media.
"""

import json
import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import ExtractorProcessError
from ..utils.logger import get_logger
from .process import ProcessRunner

DUMP_SINGLE_JSON = '--dump-single-json'


@dataclass
class ExtractionOutcome:
    """
    Result of one metadata extraction

    Attributes:
        metadata: Raw, unsanitized metadata record; None when the extractor
                  printed nothing (or "null")
        diagnostics: Lines the extractor wrote on stderr, prefixed with
                     the operation name
        returncode: Exit status of the extractor
    """
    metadata: Optional[Dict[str, Any]] = None
    diagnostics: List[str] = field(default_factory=list)
    returncode: int = 0


class ExtractorClient:
    """
    Runs the extractor in metadata dump mode

    stderr output is advisory: it is reported in the outcome diagnostics,
    and the extraction succeeds as long as stdout holds a JSON object.
    """

    def __init__(self, executable: str, runner: ProcessRunner, timeout: float):
        self.executable = executable
        self.runner = runner
        self.timeout = timeout
        self.logger = get_logger(__name__)

    def extract(self, link: str, arguments: Sequence[str]) -> ExtractionOutcome:
        """
        Extract metadata for a link

        Args:
            link: Media or playlist link
            arguments: Extractor options; playlist selection flags must already
                       be left out so the dump covers the whole playlist

        Returns:
            ExtractionOutcome with the raw metadata and stderr diagnostics

        Raises:
            ExtractorProcessError: If the extractor cannot run, times out,
                                   or prints something that is not a JSON object
        """
        command = [self.executable, *arguments, DUMP_SINGLE_JSON, link]
        self.logger.debug(f"extract_infos {subprocess.list2cmdline(command)}")

        diagnostics: List[str] = []

        def on_stderr(line: str) -> None:
            diagnostics.append(f"extract_infos {line}")
            self.logger.warning(f"extract_infos {line}")

        result = self.runner.run(command, timeout=self.timeout, on_stderr=on_stderr)

        output = result.stdout.strip()
        if not output or output == 'null':
            self.logger.info(f"No metadata for {link} (exit code {result.returncode})")
            return ExtractionOutcome(None, diagnostics, result.returncode)

        try:
            metadata = json.loads(output)
        except json.JSONDecodeError as e:
            raise ExtractorProcessError(
                f"Extractor output for {link} is not valid JSON: {e}",
                details={'link': link, 'command': command},
                returncode=result.returncode,
                stderr=result.stderr.strip()
            ) from e

        if not isinstance(metadata, dict):
            raise ExtractorProcessError(
                f"Extractor output for {link} is not a metadata record",
                details={'link': link, 'command': command},
                returncode=result.returncode,
                stderr=result.stderr.strip()
            )

        return ExtractionOutcome(metadata, diagnostics, result.returncode)
