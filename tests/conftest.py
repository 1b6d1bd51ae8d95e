"""Test configuration and fixtures"""

import json
import pytest
import tempfile
from pathlib import Path

from ytdl_pipeline.config.settings import Settings
from ytdl_pipeline.ytdl.orchestrator import Ytdl
from ytdl_pipeline.ytdl.process import ProcessResult

EXECUTABLE = "/usr/bin/yt-dlp"

ENV_VARIABLES = (
    'YTDL_EXECUTABLE',
    'YTDL_TIMEOUT',
    'YTDL_CACHE_DIR',
    'YTDL_CACHE_DURATION',
    'YTDL_CACHE_ENABLED',
    'YTDL_OUTPUT_DIR',
)


class FakeRunner:
    """
    Stand-in for ProcessRunner

    Replies are consumed in order; once the queue is empty, a download
    command (--load-info-json) succeeds by echoing the metadata it was given
    plus a _filename built from the -o template, and any other command
    succeeds with empty output. Titles listed in `fail_titles` make their
    download fail.
    """

    def __init__(self):
        self.calls = []
        self.timeouts = []
        self.info_files = []
        self.replies = []
        self.fail_titles = set()

    def queue(self, stdout="", stderr="", returncode=0):
        self.replies.append(ProcessResult([], returncode, stdout, stderr))

    def queue_json(self, data, stderr="", returncode=0):
        self.queue(json.dumps(data), stderr, returncode)

    def queue_error(self, exception):
        self.replies.append(exception)

    def run(self, command, timeout, on_stderr=None):
        command = list(command)
        self.calls.append(command)
        self.timeouts.append(timeout)

        info_dict = None
        if '--load-info-json' in command:
            path = command[command.index('--load-info-json') + 1]
            with open(path, encoding='utf-8') as f:
                info_dict = json.load(f)
            self.info_files.append(info_dict)

        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, BaseException):
                raise reply
        elif info_dict is not None:
            reply = self._echo_download(command, info_dict)
        else:
            reply = ProcessResult([], 0)

        if on_stderr:
            for line in reply.stderr.splitlines():
                if line.strip():
                    on_stderr(line)

        return ProcessResult(command, reply.returncode, reply.stdout, reply.stderr)

    def _echo_download(self, command, info_dict):
        if info_dict.get('title') in self.fail_titles:
            return ProcessResult([], 1, "", "ERROR: Video unavailable")

        template = command[command.index('-o') + 1] if '-o' in command else '%(title)s.%(ext)s'
        record = dict(info_dict)
        record['_filename'] = template.replace('%(ext)s', info_dict.get('ext', 'mp4'))
        return ProcessResult([], 0, json.dumps(record) + "\n", "")

    @property
    def download_calls(self):
        return [call for call in self.calls if '--load-info-json' in call]


def make_entry(video_id, title):
    return {
        'id': video_id,
        'title': title,
        'webpage_url': f'https://www.youtube.com/watch?v={video_id}',
        'url': f'https://cdn.example.com/{video_id}.mp4',
        'ext': 'mp4',
        'format': '18 - 640x360 (360p)',
    }


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def settings(temp_dir, monkeypatch):
    """Settings isolated from the environment and the user's config files"""
    for variable in ENV_VARIABLES:
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.chdir(temp_dir)
    monkeypatch.setattr(Path, 'home', lambda: temp_dir / 'home')

    settings = Settings()
    settings.extractor.executable = EXECUTABLE
    settings.extractor.timeout = 120
    settings.extractor.options = {}
    settings.cache.directory = str(temp_dir / 'cache')
    return settings


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def ytdl(settings, fake_runner):
    """Ytdl wired to a fake runner and a temporary cache"""
    return Ytdl(executable=EXECUTABLE, runner=fake_runner, settings=settings)


@pytest.fixture
def single_video():
    """Metadata of a single video"""
    record = make_entry('dQw4w9WgXcQ', 'Never Gonna Give You Up')
    record['duration'] = 213
    return record


@pytest.fixture
def raw_playlist():
    """Playlist as the extractor returns it: holes and a repeated title"""
    return {
        '_type': 'playlist',
        'id': 'PL123',
        'title': 'Test Playlist',
        'webpage_url': 'https://www.youtube.com/playlist?list=PL123',
        'entries': [
            make_entry('a1', 'Alpha'),
            None,
            make_entry('b2', 'Beta'),
            {'id': 'x9', 'title': ''},
            make_entry('a3', 'Alpha'),
            make_entry('c4', 'Gamma'),
        ],
    }


@pytest.fixture
def three_entry_playlist():
    return {
        '_type': 'playlist',
        'id': 'PL3',
        'title': 'Three',
        'webpage_url': 'https://www.youtube.com/playlist?list=PL3',
        'entries': [
            make_entry('e1', 'First'),
            make_entry('e2', 'Second'),
            make_entry('e3', 'Third'),
        ],
    }
