import re
from pathlib import Path
from typing import List, Optional

from core_rootfs.config.models import Architecture, Distribution, MirrorSettings
from core_rootfs.executors.text import LineFilter
from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.workspace import FILE_ENCODING, Workspace

SOURCES_LIST = "etc/apt/sources.list"
SECTIONS = "main universe multiverse restricted"
SUITE_SUFFIXES = ("", "-security", "-updates")

# An active "deb" line (not "deb-src") of an ubuntu main component (not a
# "-security"/"-updates" suite). GNU grep -E and Python re
# both read "\s" as whitespace; neither escape works inside brackets for grep.
MIRROR_LINE_PATTERN = r"^deb\s+[^-]*ubuntu.[^-]*main"

_HOST_PATTERN = re.compile(r"http://([^/]*)/")


def extract_mirror_host(line: str) -> Optional[str]:
    """Host name between 'http://' and the next '/', if any."""
    match = _HOST_PATTERN.search(line)
    if not match or not match.group(1):
        return None
    return match.group(1)


def detect_mirror_host(line_filter: LineFilter, sources_list: Path) -> Optional[str]:
    """Guesses the mirror the host installs its packages from."""
    line = line_filter.first_match(sources_list, MIRROR_LINE_PATTERN)
    if line is None:
        return None
    return extract_mirror_host(line)


def is_local_mirror(host: Optional[str], settings: MirrorSettings) -> bool:
    """A detected host outside the official domain is a local mirror."""
    return bool(host) and settings.official_domain not in host


def archive_url(host: Optional[str], architecture: Architecture, settings: MirrorSettings) -> str:
    """
    Base URL of the ports archive, through the local mirror when one was
    detected.
    """
    if is_local_mirror(host, settings):
        return settings.local_mirror_template.format(
            host=host,
            architecture=architecture.value,
            ports_host=settings.ports_host,
            ports_path=settings.ports_path,
        )
    return f"http://{settings.ports_host}/{settings.ports_path}/"


def render_sources_list(distribution: Distribution, url: str) -> str:
    lines: List[str] = []
    for suffix in SUITE_SUFFIXES:
        suite = f"{distribution.value}{suffix}"
        for kind in ("deb", "deb-src"):
            lines.append(f"{kind} {url} {suite} {SECTIONS}")
    return "\n".join(lines) + "\n"


def resolve_mirror(workspace: Workspace,
                   distribution: Distribution,
                   architecture: Architecture,
                   line_filter: LineFilter,
                   host_sources_list: Path,
                   settings: MirrorSettings,
                   logger: RichAppLogger) -> str:
    """
    Writes the target's sources.list, pointing at a local mirror when the
    host uses one and at the public ports archive otherwise.

    Returns:
        The archive URL written.
    """
    host = detect_mirror_host(line_filter, host_sources_list)
    if host is None:
        logger.info("No mirror found in host sources list, using the public ports archive.")
    elif is_local_mirror(host, settings):
        logger.info(f"Using local mirror {host}")
    else:
        logger.info(f"Host uses official archive {host}, using the public ports archive.")

    url = archive_url(host, architecture, settings)

    path = workspace.path(SOURCES_LIST)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_sources_list(distribution, url), **FILE_ENCODING)
    logger.debug(f"Wrote {path} for {url}")
    return url
