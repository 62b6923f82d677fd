import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from core_rootfs.utils.exceptions import UnsafeWorkspaceError
from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.utils.prompt import Responder, confirm

# Both present means a root filesystem was already extracted here
MARKER_DIRECTORIES = ("usr", "etc")

# System files are bytes; undecodable ones round-trip unchanged
FILE_ENCODING = {"encoding": "utf-8", "errors": "surrogateescape"}


@dataclass(frozen=True)
class Workspace:
    """The directory the core filesystem is extracted into."""
    root: Path

    def path(self, relative: str) -> Path:
        return self.root / relative.lstrip("/")

    @property
    def is_filesystem_root(self) -> bool:
        resolved = self.root.resolve()
        return resolved == Path(resolved.anchor)

    def has_existing_rootfs(self) -> bool:
        return all((self.root / marker).is_dir() for marker in MARKER_DIRECTORIES)

    def wipe(self) -> None:
        """Removes every entry below the root, hidden ones included."""
        for entry in self.root.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()


def guard_workspace(workspace: Workspace, responder: Responder, logger: RichAppLogger) -> None:
    """
    Makes sure the workspace is safe to extract into, asking the operator
    before running there and before wiping a previous filesystem.
    """
    if workspace.is_filesystem_root:
        raise UnsafeWorkspaceError(f"Script does not allow to run in {os.sep}")

    confirm(f"Do you wish to run this script in {workspace.root} ?", responder, logger)

    if workspace.has_existing_rootfs():
        logger.warning("An existing filesystem seems to be already present.")
        confirm(f"Do you wish to wipe out everything in {workspace.root} ?", responder, logger)

        logger.info("Cleaning up previous core filesystem...")
        workspace.wipe()
