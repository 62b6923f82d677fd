from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol

from core_rootfs.config.models import Architecture, Distribution, ImageSources
from core_rootfs.utils.exceptions import FetchError
from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.workspace import Workspace


class Fetcher(Protocol):
    """Downloads a URL into a local file."""

    def fetch(self, url: str, destination: Path) -> bool:
        ...


@dataclass(frozen=True)
class ImageReference:
    base_url: str
    file_name: str

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.file_name}"


def release_version(distribution: Distribution, sources: ImageSources) -> str:
    """Release number used in the release download path (e.g. oneiric -> 11.10)."""
    return sources.release_versions.get(distribution.value, sources.default_release_version)


def image_candidates(distribution: Distribution, architecture: Architecture, sources: ImageSources) -> List[ImageReference]:
    """
    Returns the release image followed by the daily image, in the order
    they are tried.
    """
    version = release_version(distribution, sources)
    release = ImageReference(
        base_url=f"{sources.release_base_url}/{version}/release",
        file_name=f"ubuntu-core-{version}-core-{architecture.value}.tar.gz",
    )
    daily = ImageReference(
        base_url=f"{sources.daily_base_url}/current",
        file_name=f"{distribution.value}-core-{architecture.value}.tar.gz",
    )
    return [release, daily]


def _discard(path: Path) -> None:
    if path.exists() or path.is_symlink():
        path.unlink()


def retrieve_image(distribution: Distribution,
                   architecture: Architecture,
                   workspace: Workspace,
                   fetcher: Fetcher,
                   sources: ImageSources,
                   logger: RichAppLogger) -> ImageReference:
    """
    Downloads the core image into the workspace, falling back from the
    release image to the daily image.

    A fetch only counts when the fetcher reports success and left a
    non-empty file behind.

    Returns:
        The reference that was downloaded; the archive is at
        workspace / reference.file_name.

    Raises:
        FetchError: when neither candidate could be downloaded.
    """
    release, daily = image_candidates(distribution, architecture, sources)

    for reference in (release, daily):
        destination = workspace.path(reference.file_name)
        logger.info(f"Trying to download {reference.url} ...")

        if fetcher.fetch(reference.url, destination) and destination.is_file() and destination.stat().st_size > 0:
            logger.info(f"Successfully downloaded {reference.file_name}")
            return reference

        _discard(destination)
        if reference is release:
            logger.warning(
                f"Requested {distribution.value} distribution for architecture "
                f"{architecture.value} doesn't exist. Trying daily image..."
            )

    raise FetchError(
        f"Failed to find any Ubuntu Core image for {distribution.value} distribution on {architecture.value} !!!"
    )
