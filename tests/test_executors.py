import shutil
import pytest
from pathlib import Path
from unittest.mock import MagicMock

from core_rootfs.executors.archive import TarExtractor, install_archive
from core_rootfs.executors.fetch import WgetFetcher
from core_rootfs.executors.text import GrepLineFilter
from core_rootfs.mirror import MIRROR_LINE_PATTERN
from core_rootfs.utils.executor import Executor
from core_rootfs.utils.exceptions import ExtractionError, ShellCommandError


class FakeExtractor:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def extract(self, archive: Path, destination: Path) -> None:
        self.calls.append((archive, destination))
        if self.error:
            raise self.error
        (destination / "etc").mkdir()
        (destination / "usr").mkdir()


@pytest.fixture
def mock_executor(mock_rich_logger):
    executor = MagicMock()
    executor.logger = mock_rich_logger
    return executor


# --- WgetFetcher ---

def test_wget_fetch_success(mock_executor, tmp_path):
    destination = tmp_path / "image.tar.gz"
    fetcher = WgetFetcher(mock_executor)

    assert fetcher.fetch("http://host/image.tar.gz", destination) is True

    kwargs = mock_executor.run.call_args[1]
    assert kwargs["command"] == ["wget", "-q", "-O", str(destination), "http://host/image.tar.gz"]
    assert kwargs["timeout"] is None


def test_wget_fetch_failure(mock_executor, tmp_path):
    mock_executor.run.side_effect = ShellCommandError("wget", exit_code=8, stderr="404")
    fetcher = WgetFetcher(mock_executor, timeout=60.0)

    assert fetcher.fetch("http://host/missing.tar.gz", tmp_path / "missing.tar.gz") is False
    assert mock_executor.run.call_args[1]["timeout"] == 60.0
    mock_executor.logger.warning.assert_called_once()


# --- Archive installer ---

def test_tar_extractor_command(mock_executor, tmp_path):
    archive = tmp_path / "precise-core-armhf.tar.gz"

    TarExtractor(mock_executor).extract(archive, tmp_path)

    assert mock_executor.run.call_args[1]["command"] == ["tar", "xfz", str(archive), "-C", str(tmp_path)]


def test_install_archive_removes_tarball(workspace, mock_rich_logger):
    archive = workspace.path("precise-core-armhf.tar.gz")
    archive.write_bytes(b"tarball")
    extractor = FakeExtractor()

    install_archive(archive, workspace, extractor, mock_rich_logger)

    assert extractor.calls == [(archive, workspace.root)]
    assert not archive.exists()
    assert workspace.has_existing_rootfs()


def test_install_archive_failure_still_removes_tarball(workspace, mock_rich_logger):
    archive = workspace.path("precise-core-armhf.tar.gz")
    archive.write_bytes(b"not a tarball")
    extractor = FakeExtractor(error=ShellCommandError("tar xfz", exit_code=2, stderr="not in gzip format"))

    with pytest.raises(ExtractionError):
        install_archive(archive, workspace, extractor, mock_rich_logger)

    assert not archive.exists()


def test_install_archive_missing(workspace, mock_rich_logger):
    extractor = FakeExtractor()

    with pytest.raises(ExtractionError):
        install_archive(workspace.path("absent.tar.gz"), workspace, extractor, mock_rich_logger)

    assert extractor.calls == []


# --- GrepLineFilter (runs the host's grep and head) ---

needs_grep = pytest.mark.skipif(
    shutil.which("grep") is None or shutil.which("head") is None,
    reason="grep and head are required",
)


@needs_grep
def test_grep_first_match(tmp_path, mock_rich_logger):
    sources = tmp_path / "sources.list"
    sources.write_text(
        "# deb cdrom:[Ubuntu 12.04 LTS]/ precise main restricted\n"
        "deb-src http://mirror.example.org/ubuntu/ precise main restricted\n"
        "deb http://mirror.example.org/ubuntu/ precise-updates main restricted\n"
        "deb http://mirror.example.org/ubuntu/ precise main restricted\n"
        "deb http://second.example.org/ubuntu/ precise main restricted\n"
    )
    line_filter = GrepLineFilter(Executor(logger_instance=mock_rich_logger))

    line = line_filter.first_match(sources, MIRROR_LINE_PATTERN)

    assert line == "deb http://mirror.example.org/ubuntu/ precise main restricted"


@needs_grep
def test_grep_no_match_or_missing_file(tmp_path, mock_rich_logger):
    sources = tmp_path / "sources.list"
    sources.write_text("deb http://deb.debian.org/debian bookworm main\n")
    line_filter = GrepLineFilter(Executor(logger_instance=mock_rich_logger))

    assert line_filter.first_match(sources, MIRROR_LINE_PATTERN) is None
    assert line_filter.first_match(tmp_path / "missing.list", MIRROR_LINE_PATTERN) is None


@needs_grep
def test_grep_tab_separated_line(tmp_path, mock_rich_logger):
    sources = tmp_path / "sources.list"
    sources.write_text(
        "debtor http://junk.example.org/ubuntu/ precise main\n"
        "deb\thttp://mirror.corp/ubuntu/\tprecise main\n"
    )
    line_filter = GrepLineFilter(Executor(logger_instance=mock_rich_logger))

    assert line_filter.first_match(sources, MIRROR_LINE_PATTERN) == "deb\thttp://mirror.corp/ubuntu/\tprecise main"


@needs_grep
def test_grep_latin1_sources_list(tmp_path, mock_rich_logger):
    sources = tmp_path / "sources.list"
    sources.write_bytes(b"# Caf\xe9 mirror\ndeb http://mirror.corp/ubuntu/ precise main\n")
    line_filter = GrepLineFilter(Executor(logger_instance=mock_rich_logger))

    assert line_filter.first_match(sources, MIRROR_LINE_PATTERN) == "deb http://mirror.corp/ubuntu/ precise main"
