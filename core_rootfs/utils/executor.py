# core_rootfs/utils/executor.py

import shlex
import subprocess
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.utils.exceptions import (
    ShellCommandError,
    CommandNotFoundError,
    CommandTimeoutError,
    InvalidCommandError,
    PermissionDeniedError,
)

Command = Union[str, List[str]]


class CommandResult(NamedTuple):
    exit_code: int
    stdout: str
    stderr: str


def _as_text(output) -> str:
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output or ""


def _display(command: Command) -> str:
    return shlex.join(command) if isinstance(command, list) else str(command)


class Executor:
    """
    Runs host tools (wget, tar, grep) and reports through the injected
    RichAppLogger. Failures surface as ShellCommandError subclasses.
    """

    def __init__(self, logger_instance: RichAppLogger, default_timeout: Optional[float] = 30.0):
        """
        Args:
            logger_instance: Logger used for TUI feedback and the log file.
            default_timeout: Seconds allowed per command. None never times out,
                which is what a large image download needs.
        """
        if default_timeout is not None and default_timeout <= 0:
            logger_instance.error(f"Refusing default timeout {default_timeout}")
            raise ValueError("Default timeout must be a positive number or None.")

        self.logger = logger_instance
        self._default_timeout = default_timeout
        self.logger.debug(f"Executor ready (default timeout: {default_timeout})")

    def _prepare_command(self, command: Command) -> List[str]:
        """Turns a command into an argument vector, splitting strings like a shell would."""
        if not command:
            raise InvalidCommandError(str(command), "Command cannot be empty.")

        if isinstance(command, str):
            try:
                return shlex.split(command)
            except ValueError as e:
                self.logger.error(f"Cannot split '{command}': {e}")
                raise InvalidCommandError(command, f"Failed to parse command string: {e}")

        if isinstance(command, list) and all(isinstance(arg, str) for arg in command):
            return command

        raise InvalidCommandError(str(command), "Command must be a string or a list of strings.")

    def _failure(self, display: str, result: CommandResult) -> ShellCommandError:
        """Picks the exception matching a non-zero exit."""
        reason = result.stderr.lower()
        if result.exit_code == 127 or "command not found" in reason:
            return CommandNotFoundError(command=display, stdout=result.stdout, stderr=result.stderr)
        if result.exit_code == 126 or "permission denied" in reason:
            return PermissionDeniedError(command=display, stdout=result.stdout, stderr=result.stderr)
        return ShellCommandError(
            command=display,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
            message=f"Command failed with exit code {result.exit_code}",
        )

    def execute_command(self,
                        command: Command,
                        capture_output: bool = True,
                        timeout: Optional[float] = None,
                        check: bool = True,
                        shell: bool = False,
                        cwd: Optional[Union[str, Path]] = None) -> CommandResult:
        """
        Runs one command without any TUI decoration.

        With shell=True the command is handed to /bin/sh as a single string,
        so pipelines such as 'grep ... | head -n 1' work.

        Returns:
            CommandResult: exit code, stdout and stderr (empty strings when not captured).

        Raises:
            ShellCommandError: on a non-zero exit when check is set, or when
                the command cannot be started or times out.
        """
        limit = self._default_timeout if timeout is None else timeout
        display = _display(command)
        argv = display if shell else self._prepare_command(command)

        self.logger.debug(f"exec: {display} (timeout={limit}, shell={shell}, check={check})")

        try:
            process = subprocess.run(
                argv,
                capture_output=capture_output,
                text=True,
                errors="surrogateescape",
                timeout=limit,
                check=False,
                shell=shell,
                cwd=cwd,
            )
        except FileNotFoundError:
            self.logger.error(f"'{display}' is not installed or not on PATH.")
            raise CommandNotFoundError(command=display, stderr="Command not found. Check PATH.")
        except subprocess.TimeoutExpired as e:
            self.logger.warning(f"'{display}' gave up after {limit} seconds.")
            raise CommandTimeoutError(command=display, timeout=limit,
                                      stdout=_as_text(e.stdout), stderr=_as_text(e.stderr))
        except (TypeError, ValueError) as e:
            self.logger.error(f"Bad arguments for '{display}': {e}")
            raise InvalidCommandError(display, f"Argument error in command execution: {e}")

        result = CommandResult(process.returncode, _as_text(process.stdout), _as_text(process.stderr))

        if check and result.exit_code != 0:
            self.logger.error(f"'{display}' exited with {result.exit_code}: {result.stderr.strip()}")
            raise self._failure(display, result)

        self.logger.debug(f"'{display}' exited with {result.exit_code}")
        return result

    def run(self,
            description: str,
            command: Command,
            capture_output: bool = True,
            timeout: Optional[float] = None,
            check: bool = True,
            shell: bool = False,
            cwd: Optional[Union[str, Path]] = None) -> CommandResult:
        """
        Runs a command as a visible step: a spinner while it runs, then a
        completed or failed line. Errors are re-raised by execution_step.
        """
        if not shell:
            command = self._prepare_command(command)

        with self.logger.execution_step(description):
            result = self.execute_command(
                command=command,
                capture_output=capture_output,
                timeout=timeout,
                check=check,
                shell=shell,
                cwd=cwd,
            )
            for name, output in (("stdout", result.stdout), ("stderr", result.stderr)):
                if output:
                    self.logger.debug(f"{description} {name}:\n{output.strip()}")
            return result
