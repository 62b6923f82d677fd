# core_rootfs/executors/text.py
import shlex
from pathlib import Path
from typing import Optional, Protocol

from core_rootfs.utils.executor import Executor


class LineFilter(Protocol):
    """Finds the first line of a file matching an extended regular expression."""

    def first_match(self, path: Path, pattern: str) -> Optional[str]:
        ...


class GrepLineFilter:
    """
    Line selection with grep and head on the host.
    """

    def __init__(self, executor: Executor):
        self.executor = executor

    def first_match(self, path: Path, pattern: str) -> Optional[str]:
        """
        Returns the first line of path matching pattern, or None when nothing
        matches or the file cannot be read.
        """
        command = f"grep -a -E -e {shlex.quote(pattern)} {shlex.quote(str(path))} | head -n 1"
        _, stdout, stderr = self.executor.execute_command(command, shell=True, check=False)
        if stderr:
            self.executor.logger.debug(f"grep on {path}: {stderr.strip()}")
        line = stdout.strip()
        return line or None
