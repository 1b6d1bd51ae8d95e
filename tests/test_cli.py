"""Test the command-line interface with a fake extractor"""

import json

import pytest
import yaml
from click.testing import CliRunner

from ytdl_pipeline import __version__
from ytdl_pipeline.config import settings as settings_module
from ytdl_pipeline.main import cli
from ytdl_pipeline.ytdl import orchestrator
from ytdl_pipeline.ytdl.cache import MetadataCache

EXECUTABLE = "/usr/bin/yt-dlp"
LINK = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
PLAYLIST_LINK = "https://www.youtube.com/playlist?list=PL3"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def extractor(settings, fake_runner, monkeypatch):
    """Route every Ytdl built by the CLI to the fake runner"""
    monkeypatch.setattr(settings_module, '_settings', settings)
    monkeypatch.setattr(orchestrator, 'find_executable', lambda name: EXECUTABLE)
    monkeypatch.setattr(orchestrator, 'ProcessRunner', lambda: fake_runner)
    return fake_runner


class TestCliGroup:
    """Test global options"""

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_help_without_command(self, runner):
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        assert "Usage" in result.output
        assert "download" in result.output

    def test_config_file(self, runner, extractor, temp_dir):
        config = temp_dir / 'custom.yaml'
        config.write_text(yaml.safe_dump({'extractor': {'default_format': 'worst'}}), encoding='utf-8')

        result = runner.invoke(cli, ['--config', str(config), 'run', '--get-title', LINK])

        assert result.exit_code == 0
        assert extractor.calls[0][:3] == [EXECUTABLE, '-f', 'worst']

    def test_missing_config_file(self, runner, temp_dir):
        result = runner.invoke(cli, ['--config', str(temp_dir / 'missing.yaml'), 'clear-cache'])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output


class TestExtractCommand:
    """Test metadata extraction from the command line"""

    def test_summary(self, runner, extractor, raw_playlist):
        extractor.queue_json(raw_playlist)

        result = runner.invoke(cli, ['extract', PLAYLIST_LINK])

        assert result.exit_code == 0
        assert "Title: Test Playlist" in result.output
        assert "Playlist: 4 entries" in result.output
        assert "3. Alpha (2)" in result.output

    def test_json(self, runner, extractor, single_video):
        extractor.queue_json(single_video)

        result = runner.invoke(cli, ['extract', '--json', LINK])

        assert result.exit_code == 0
        assert json.loads(result.output) == single_video

    def test_extractor_options(self, runner, extractor, single_video):
        extractor.queue_json(single_video)

        runner.invoke(cli, ['extract', '-x', '--cookies=cookies.txt', '-x', 'no-check-certificates', LINK])

        command = extractor.calls[0]
        assert command[command.index('--cookies') + 1] == 'cookies.txt'
        assert '--no-check-certificates' in command

    def test_no_cache(self, runner, extractor, settings, single_video):
        extractor.queue_json(single_video)

        result = runner.invoke(cli, ['extract', '--no-cache', LINK])

        assert result.exit_code == 0
        assert MetadataCache(settings.cache.directory).load(LINK) is None

    def test_invalid_url(self, runner, extractor):
        result = runner.invoke(cli, ['extract', 'not-a-url'])

        assert result.exit_code == 1
        assert "Invalid URL" in result.output
        assert extractor.calls == []

    def test_no_metadata(self, runner, extractor):
        extractor.queue("", stderr="ERROR: Unsupported URL\n", returncode=1)

        result = runner.invoke(cli, ['extract', LINK])

        assert result.exit_code == 1
        assert "No metadata found" in result.output
        assert "Unsupported URL" in result.output

    def test_unusable_output(self, runner, extractor):
        extractor.queue("<html>", returncode=1)

        result = runner.invoke(cli, ['extract', LINK])

        assert result.exit_code == 1
        assert "Error:" in result.output


class TestDownloadCommand:
    """Test downloads from the command line"""

    def test_playlist_items(self, runner, extractor, three_entry_playlist):
        extractor.queue_json(three_entry_playlist)

        result = runner.invoke(cli, ['download', PLAYLIST_LINK, '-o', 'out', '--items', '1,3'])

        assert result.exit_code == 0
        assert "out/first.mp4" in result.output
        assert "out/third.mp4" in result.output
        assert "out/second.mp4" not in result.output
        assert len(extractor.download_calls) == 2

    def test_reverse_and_range(self, runner, extractor, three_entry_playlist):
        extractor.queue_json(three_entry_playlist)

        result = runner.invoke(cli, ['download', PLAYLIST_LINK, '--start', '2', '--reverse'])

        assert result.exit_code == 0
        assert [info['title'] for info in extractor.info_files] == ['Third', 'Second']

    def test_format(self, runner, extractor, single_video):
        extractor.queue_json(single_video)

        runner.invoke(cli, ['download', LINK, '-f', 'bestaudio'])

        for command in extractor.calls:
            assert command[1:3] == ['-f', 'bestaudio']

    def test_output_directory_from_settings(self, runner, extractor, settings, single_video):
        settings.download.output_directory = 'library'
        extractor.queue_json(single_video)

        result = runner.invoke(cli, ['download', LINK])

        assert "library/never-gonna-give-you-up.mp4" in result.output

    def test_partial_failure(self, runner, extractor, three_entry_playlist):
        extractor.queue_json(three_entry_playlist)
        extractor.fail_titles = {'Second'}

        result = runner.invoke(cli, ['download', PLAYLIST_LINK])

        assert result.exit_code == 0
        assert "1 issue(s)" in result.output
        assert "download_one Second" in result.output
        assert "first.mp4" in result.output

    def test_total_failure(self, runner, extractor, single_video):
        extractor.queue_json(single_video)
        extractor.fail_titles = {single_video['title']}

        result = runner.invoke(cli, ['download', LINK])

        assert result.exit_code == 1
        assert "Video unavailable" in result.output

    def test_nothing_to_download(self, runner, extractor):
        extractor.queue("")

        result = runner.invoke(cli, ['download', LINK])

        assert result.exit_code == 1
        assert "Nothing to download" in result.output

    def test_invalid_items(self, runner, extractor):
        result = runner.invoke(cli, ['download', PLAYLIST_LINK, '--items', '1,x'])

        assert result.exit_code == 1
        assert "Invalid playlist items" in result.output
        assert extractor.calls == []

    def test_output_is_a_file(self, runner, extractor, temp_dir):
        blocker = temp_dir / 'file.txt'
        blocker.write_text('x')

        result = runner.invoke(cli, ['download', LINK, '-o', str(blocker)])

        assert result.exit_code == 1
        assert "Invalid output directory" in result.output


class TestRunCommand:
    """Test the raw extractor launcher"""

    def test_output(self, runner, extractor):
        extractor.queue("Never Gonna Give You Up\n")

        result = runner.invoke(cli, ['run', '--get-title', LINK])

        assert result.exit_code == 0
        assert result.output.strip() == "Never Gonna Give You Up"
        assert extractor.calls == [[EXECUTABLE, '-f', 'best', '--get-title', LINK]]

    def test_failure(self, runner, extractor):
        extractor.queue("", stderr="ERROR: Unsupported URL\n", returncode=1)

        result = runner.invoke(cli, ['run', LINK])

        assert result.exit_code == 1
        assert "run ExitCode: 1" in result.output


class TestClearCacheCommand:
    """Test cache maintenance"""

    def test_clear(self, runner, extractor, settings):
        cache = MetadataCache(settings.cache.directory)
        cache.write(LINK, '{}')
        cache.write(PLAYLIST_LINK, '{}')

        result = runner.invoke(cli, ['clear-cache'])

        assert result.exit_code == 0
        assert "Removed 2 cached file(s)" in result.output
        assert cache.load(LINK) is None

    def test_no_directory(self, runner, extractor, settings):
        settings.cache.directory = ''

        result = runner.invoke(cli, ['clear-cache'])

        assert result.exit_code == 0
        assert "No cache directory configured" in result.output
