import re
import pytest
from pathlib import Path
from typing import Optional

from core_rootfs.config.models import Architecture, Distribution, MirrorSettings
from core_rootfs.mirror import (
    MIRROR_LINE_PATTERN,
    SOURCES_LIST,
    archive_url,
    detect_mirror_host,
    extract_mirror_host,
    is_local_mirror,
    render_sources_list,
    resolve_mirror,
)

PORTS = "http://ports.ubuntu.com/ubuntu-ports/"
SECTIONS = "main universe multiverse restricted"


class RegexLineFilter:
    """In-process stand-in for grep | head."""

    def first_match(self, path: Path, pattern: str) -> Optional[str]:
        if not path.exists():
            return None
        for line in path.read_text().splitlines():
            if re.search(pattern, line):
                return line
        return None


@pytest.fixture
def settings():
    return MirrorSettings()


@pytest.mark.parametrize("line, matches", [
    ("deb http://fr.archive.ubuntu.com/ubuntu/ precise main restricted", True),
    ("deb http://mirror.corp/ubuntu/ precise main", True),
    ("deb-src http://fr.archive.ubuntu.com/ubuntu/ precise main restricted", False),
    ("deb http://fr.archive.ubuntu.com/ubuntu/ precise-updates main restricted", False),
    ("# deb http://fr.archive.ubuntu.com/ubuntu/ precise main", False),
    ("deb http://deb.debian.org/debian bookworm main", False),
    ("deb\thttp://mirror.corp/ubuntu/ precise main", True),
    ("debtor http://mirror.corp/ubuntu/ precise main", False),
])
def test_mirror_line_pattern(line, matches):
    assert bool(re.search(MIRROR_LINE_PATTERN, line)) is matches


def test_extract_mirror_host():
    assert extract_mirror_host("deb http://mirror.corp:8080/ubuntu/ precise main") == "mirror.corp:8080"
    assert extract_mirror_host("deb file:///srv/ubuntu precise main") is None
    assert extract_mirror_host("deb http:///ubuntu precise main") is None


def test_is_local_mirror(settings):
    assert is_local_mirror("mirror.corp", settings)
    assert not is_local_mirror("fr.archive.ubuntu.com", settings)
    assert not is_local_mirror(None, settings)


def test_archive_url(settings):
    assert archive_url(None, Architecture.ARMHF, settings) == PORTS
    assert archive_url("us.archive.ubuntu.com", Architecture.ARMHF, settings) == PORTS
    assert archive_url("mirror.corp", Architecture.ARMEL, settings) == (
        "http://mirror.corp/distrib/armel/linux/ubuntu/mirror/ports.ubuntu.com/ubuntu-ports/"
    )


def test_render_sources_list_precise():
    lines = render_sources_list(Distribution.PRECISE, PORTS).splitlines()

    assert len(lines) == 6
    assert lines == [
        f"deb {PORTS} precise {SECTIONS}",
        f"deb-src {PORTS} precise {SECTIONS}",
        f"deb {PORTS} precise-security {SECTIONS}",
        f"deb-src {PORTS} precise-security {SECTIONS}",
        f"deb {PORTS} precise-updates {SECTIONS}",
        f"deb-src {PORTS} precise-updates {SECTIONS}",
    ]
    for binary, source in zip(lines[::2], lines[1::2]):
        assert binary.split(" ", 1)[1] == source.split(" ", 1)[1]


def test_detect_mirror_host(tmp_path):
    sources = tmp_path / "sources.list"
    sources.write_text(
        "deb-src http://src.corp/ubuntu/ precise main\n"
        "deb http://mirror.corp/ubuntu/ precise main restricted\n"
    )

    assert detect_mirror_host(RegexLineFilter(), sources) == "mirror.corp"
    assert detect_mirror_host(RegexLineFilter(), tmp_path / "missing") is None


def test_resolve_mirror_local(workspace, tmp_path, settings, mock_rich_logger):
    sources = tmp_path / "sources.list"
    sources.write_text("deb http://mirror.corp/ubuntu/ precise main restricted\n")

    url = resolve_mirror(workspace, Distribution.PRECISE, Architecture.ARMHF,
                         RegexLineFilter(), sources, settings, mock_rich_logger)

    assert url == "http://mirror.corp/distrib/armhf/linux/ubuntu/mirror/ports.ubuntu.com/ubuntu-ports/"
    written = workspace.path(SOURCES_LIST).read_text().splitlines()
    assert written[0] == f"deb {url} precise {SECTIONS}"


def test_resolve_mirror_without_host_mirror(workspace, tmp_path, settings, mock_rich_logger):
    workspace.path("etc/apt").mkdir(parents=True)
    workspace.path(SOURCES_LIST).write_text("deb http://old/ubuntu-ports/ oneiric main\n")

    url = resolve_mirror(workspace, Distribution.PRECISE, Architecture.ARMHF,
                         RegexLineFilter(), tmp_path / "missing.list", settings, mock_rich_logger)

    assert url == PORTS
    content = workspace.path(SOURCES_LIST).read_text()
    assert content == render_sources_list(Distribution.PRECISE, PORTS)
    assert "oneiric" not in content
