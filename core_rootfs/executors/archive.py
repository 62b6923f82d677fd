# core_rootfs/executors/archive.py
from pathlib import Path
from typing import Protocol

from core_rootfs.utils.executor import Executor
from core_rootfs.utils.exceptions import ExtractionError, ShellCommandError
from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.workspace import Workspace


class Extractor(Protocol):
    """Unpacks an archive into a directory, raising on failure."""

    def extract(self, archive: Path, destination: Path) -> None:
        ...


class TarExtractor:
    """
    Unpacks gzipped tarballs with tar, keeping ownership and permissions
    of the image. All operations are delegated to the provided Executor instance.
    """

    def __init__(self, executor: Executor):
        self.executor = executor

    def extract(self, archive: Path, destination: Path) -> None:
        command = ["tar", "xfz", str(archive), "-C", str(destination)]
        self.executor.run(
            description=f"Extracting {archive.name} filesystem in {destination}",
            command=command,
            check=True
        )


def install_archive(archive: Path, workspace: Workspace, extractor: Extractor, logger: RichAppLogger) -> None:
    """
    Extracts the downloaded image into the workspace and removes the
    tarball afterwards, whether or not extraction succeeded.

    Raises:
        ExtractionError: when the archive is missing or cannot be unpacked.
    """
    if not archive.is_file():
        raise ExtractionError(f"Downloaded image {archive} is missing.")

    logger.info(f"Extracting {archive.name} filesystem in {workspace.root}")
    try:
        extractor.extract(archive, workspace.root)
    except (ShellCommandError, OSError) as e:
        raise ExtractionError(f"Could not extract {archive.name}: {e}") from e
    finally:
        # Don't keep the tarball image.
        archive.unlink(missing_ok=True)
        logger.debug(f"Removed {archive}")
