import logging
import os
import sys
import tempfile
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from core_rootfs.utils.exceptions import ProvisionError, ShellCommandError

# --- Custom levels, registered before any logger is created ---
SECTION_LEVEL_NUM = 25
EXECUTE_LEVEL_NUM = 26
logging.addLevelName(SECTION_LEVEL_NUM, 'SECTION')
logging.addLevelName(EXECUTE_LEVEL_NUM, 'EXECUTE')

DEFAULT_LOG_DIRECTORY = "/var/log/core-rootfs"
DEFAULT_LOG_FILE_NAME = "core-rootfs.log"

# Failures that explain themselves; no traceback on the console
EXPECTED_FAILURES = (ShellCommandError, ProvisionError)


class AppLogger(logging.Logger):
    """logging.Logger with SECTION (stage headers) and EXECUTE (step status) levels."""

    def section(self, msg, *args, **kwargs):
        if self.isEnabledFor(SECTION_LEVEL_NUM):
            self._log(SECTION_LEVEL_NUM, msg, args, **kwargs)

    def execute(self, msg, *args, **kwargs):
        if self.isEnabledFor(EXECUTE_LEVEL_NUM):
            self._log(EXECUTE_LEVEL_NUM, msg, args, **kwargs)


logging.setLoggerClass(AppLogger)


class FileFormatter(logging.Formatter):
    """Column-aligned records for the log file."""

    def __init__(self):
        super().__init__(
            '%(asctime)s - %(levelname)-9s - %(name)-15s - %(filename)-20s:%(lineno)-5d - %(message)s'
        )


class ExecuteFilter(logging.Filter):
    """
    Keeps EXECUTE records off the console handler; execution_step draws
    those itself.
    """

    def filter(self, record):
        return record.levelno != EXECUTE_LEVEL_NUM


class RichAppLogger:
    """
    Console presentation (section banners, step spinners, tracebacks) on
    top of an AppLogger that writes everything to the log file.
    """

    def __init__(self, console: Console, logger: AppLogger, log_file_path: str = ""):
        self.console = console
        self.logger: AppLogger = logger
        self.log_file_path = log_file_path

    def section(self, message: str, *args, **kwargs):
        header = f"SECTION: {message}"
        self.console.print(Text(header, style="bold yellow"))
        self.logger.section(header, *args, **kwargs)

    @contextmanager
    def execution_step(self, message: str):
        """
        Shows a spinner while the block runs, then replaces it with a
        completed or failed line. Exceptions are logged and re-raised.
        """
        with self.console.status(f"[bold green]...[/] [RUNNING] {message}", spinner="dots") as status:
            self.logger.execute(f"[RUNNING] {message}")
            try:
                yield status
            except Exception as e:
                expected = isinstance(e, EXPECTED_FAILURES)
                tag = "[CRITICAL]" if expected else "[FAILED]"

                self.console.print(f"[bold red]✘ {tag}[/bold red] {message}")
                self.logger.execute(f"{tag} {message}")
                self.logger.exception(f"Step failed: {message}")

                if not expected:
                    self.console.print("\n[bold red]Traceback (most recent call last):[/bold red]")
                    self.console.print_exception(show_locals=True)
                raise

            self.console.print(f"[green]✔ [COMPLETED][/green] {message}")
            self.logger.execute(f"[COMPLETED] {message}")

    def info(self, message, *args, **kwargs):
        self.logger.info(message, *args, **kwargs)

    def warning(self, message, *args, **kwargs):
        self.logger.warning(message, *args, **kwargs)

    def error(self, message, *args, **kwargs):
        self.logger.error(message, *args, **kwargs)

    def debug(self, message, *args, **kwargs):
        self.logger.debug(message, *args, **kwargs)

    def critical(self, message, *args, **kwargs):
        self.logger.critical(message, *args, **kwargs)

    def exception(self, message, *args, **kwargs):
        """Logs the active exception to the file and prints it with locals."""
        self.logger.exception(message, *args, **kwargs)
        self.console.print(f"[bold red]FATAL ERROR: {message}[/bold red]")
        self.console.print_exception(show_locals=True)


def _open_log_file(log_directory: str, log_file_name: str) -> logging.FileHandler:
    """
    Opens the log file in log_directory, or under the temp directory when
    that one cannot be created (e.g. /var/log without root).
    """
    try:
        os.makedirs(log_directory, exist_ok=True)
        return logging.FileHandler(os.path.join(log_directory, log_file_name), encoding='utf-8')
    except OSError:
        fallback = os.path.join(tempfile.gettempdir(), "core-rootfs")
        os.makedirs(fallback, exist_ok=True)
        return logging.FileHandler(os.path.join(fallback, log_file_name), encoding='utf-8')


def initialize_app_logger(
    app_name: str,
    log_directory: str = DEFAULT_LOG_DIRECTORY,
    log_file_name: str = DEFAULT_LOG_FILE_NAME,
    file_log_level: int = logging.DEBUG,
    console_log_level: int = logging.INFO,
) -> RichAppLogger:
    """
    Configures the named logger with a file handler and a RichHandler on
    stderr, replacing handlers from an earlier call.
    """
    logger: AppLogger = logging.getLogger(app_name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = _open_log_file(log_directory, log_file_name)
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(FileFormatter())
    logger.addHandler(file_handler)

    console = Console(file=sys.stderr, soft_wrap=True)
    console_handler = RichHandler(
        console=console,
        level=console_log_level,
        show_time=False,
        show_path=False,
        keywords=[],
    )
    console_handler.addFilter(ExecuteFilter())
    logger.addHandler(console_handler)

    return RichAppLogger(console, logger, log_file_path=file_handler.baseFilename)
