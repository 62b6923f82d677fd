# core_rootfs/utils/exceptions.py

# --- 1. Command execution errors ---

class ShellCommandError(Exception):
    """Base exception for errors during shell command execution."""
    def __init__(self, command: str, exit_code: int = -1, stdout: str = "", stderr: str = "", message: str = "Command execution failed."):
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.message = message
        super().__init__(f"{message} (Command: '{command}', Exit Code: {exit_code})")

class CommandNotFoundError(ShellCommandError):
    """Raised when the executable specified in the command cannot be found."""
    def __init__(self, command: str, stdout: str = "", stderr: str = ""):
        super().__init__(command, 127, stdout, stderr, "Command not found.")

class CommandTimeoutError(ShellCommandError):
    """Raised when the command exceeds the execution timeout."""
    def __init__(self, command: str, timeout: float, stdout: str = "", stderr: str = ""):
        self.timeout = timeout
        super().__init__(command, 124, stdout, stderr, f"Command timed out after {timeout} seconds.")

class InvalidCommandError(ShellCommandError):
    """Raised when the command string/list is invalid, empty, or improperly formatted."""
    def __init__(self, command: str, message: str = "Invalid command format"):
        super().__init__(command, -2, "", "", message)

class PermissionDeniedError(ShellCommandError):
    """Raised when command execution fails due to permissions."""
    def __init__(self, command: str, stdout: str = "", stderr: str = ""):
        super().__init__(command, 126, stdout, stderr, "Permission denied.")


# --- 2. Provisioning errors (all fatal) ---

class ProvisionError(Exception):
    """Base class for errors that abort a provisioning run."""

class PrivilegeError(ProvisionError):
    """The tool is not running with root privileges."""

class ArgumentError(ProvisionError):
    """Distribution or architecture is missing or not supported."""

class UnsafeWorkspaceError(ProvisionError):
    """The workspace is a directory the tool refuses to operate in."""

class UserDeclinedError(ProvisionError):
    """The operator answered no to a confirmation."""

class DependencyMissingError(ProvisionError):
    """A required host utility is not installed."""
    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Script requires {tool} utility but it's not installed.")

class FetchError(ProvisionError):
    """Neither the release image nor the daily image could be downloaded."""

class ExtractionError(ProvisionError):
    """The downloaded image could not be unpacked into the workspace."""
