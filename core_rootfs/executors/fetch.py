# core_rootfs/executors/fetch.py
from pathlib import Path
from typing import Optional

from core_rootfs.utils.executor import Executor
from core_rootfs.utils.exceptions import ShellCommandError


class WgetFetcher:
    """
    Downloads files with wget. All operations are delegated to the provided
    Executor instance.
    """

    def __init__(self, executor: Executor, timeout: Optional[float] = None):
        """
        Args:
            executor (Executor): An instance of the Executor class for command execution.
            timeout (float, optional): Seconds before a download is abandoned. None waits.
        """
        self.executor = executor
        self.timeout = timeout

    def fetch(self, url: str, destination: Path) -> bool:
        """
        Downloads url into destination quietly.

        Returns:
            bool: True when wget exited successfully.
        """
        command = ["wget", "-q", "-O", str(destination), url]
        try:
            self.executor.run(
                description=f"Downloading {url}",
                command=command,
                timeout=self.timeout,
                check=True
            )
        except ShellCommandError as e:
            self.executor.logger.warning(f"Download of {url} failed: {e.message}")
            return False
        return True
