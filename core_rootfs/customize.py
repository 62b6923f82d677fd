"""
Patches applied to a freshly extracted Ubuntu Core tree so that it boots to a
serial console and reaches the network.

Every patch is a pure function on file content; the apply_* functions do the
reads and writes relative to the workspace.
"""
import stat
from pathlib import Path
from typing import Callable, List, Mapping, Tuple

from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.workspace import FILE_ENCODING, Workspace

SERIAL_CONSOLE_UNIT = "etc/init/serial-auto-detect-console.conf"
SERIAL_CONSOLE_SCRIPT = "bin/serial-console"
SHADOW_FILE = "etc/shadow"
INTERFACES_FILE = "etc/network/interfaces"
RESOLV_CONF = "etc/resolv.conf"
ENVIRONMENT_FILE = "etc/environment"

PROXY_VARIABLES = ("http_proxy", "https_proxy", "ftp_proxy", "no_proxy")

SERIAL_CONSOLE_UNIT_CONTENT = """\
# serial-auto-detect-console - starts getty on serial console
#
# This service starts a getty on the serial port given in the console kernel argument.
#

start on runlevel [23]
stop on runlevel [!23]

respawn

exec /bin/sh /bin/serial-console
"""

SERIAL_CONSOLE_SCRIPT_CONTENT = """\
for arg in $(cat /proc/cmdline)
do
    case $arg in
        console=*)
            tty=${arg#console=}
            tty=${tty#/dev/}

            case $tty in
                tty[a-zA-Z]* )
                    PORT=${tty%%,*}

                    # check for service which do something on this port
                    if [ -f /etc/init/$PORT.conf ];then continue;fi

                    tmp=${tty##$PORT,}
                    SPEED=${tmp%%n*}
                    BITS=${tmp##${SPEED}n}

                    # 8bit serial is default
                    [ -z $BITS ] && BITS=8
                    [ 8 -eq $BITS ] && GETTY_ARGS="$GETTY_ARGS -8 "

                    [ -z $SPEED ] && SPEED="115200,57600,38400,19200,9600"

                    GETTY_ARGS="$GETTY_ARGS $SPEED $PORT"
                    exec /sbin/getty $GETTY_ARGS
            esac
    esac
done
"""

NETWORK_INTERFACES_CONTENT = """\
auto lo
iface lo inet loopback
auto eth0
iface eth0 inet dhcp
"""


# --- Pure patches ---

def clear_root_password(shadow: str) -> str:
    """Turns 'root:*...' into 'root:...', leaving every other line alone."""
    lines = shadow.splitlines(keepends=True)
    return "".join(
        "root:" + line[len("root:*"):] if line.startswith("root:*") else line
        for line in lines
    )


def strip_comment_lines(text: str) -> str:
    """Drops every line containing '#'."""
    return "".join(line for line in text.splitlines(keepends=True) if "#" not in line)


def set_proxy_variables(environment: str, environ: Mapping[str, str]) -> str:
    """
    Replaces the proxy assignments of an /etc/environment file with the
    values of the invoking environment, one line per variable.
    """
    kept = [
        line for line in environment.splitlines()
        if line.split("=", 1)[0].strip() not in PROXY_VARIABLES
    ]
    kept.extend(f'{name}="{environ.get(name, "")}"' for name in PROXY_VARIABLES)
    return "\n".join(kept) + "\n"


# --- File operations ---

def _read_file(path: Path) -> str:
    return path.read_text(**FILE_ENCODING)


def _write_file(workspace: Workspace, relative: str, contents: str) -> Path:
    path = workspace.path(relative)
    path.parent.mkdir(parents=True, exist_ok=True)
    # A symlink in the image may point outside the workspace
    if path.is_symlink():
        path.unlink()
    path.write_text(contents, **FILE_ENCODING)
    return path


def apply_serial_console(workspace: Workspace, logger: RichAppLogger) -> None:
    logger.info("Setting up serial console on UART...")
    _write_file(workspace, SERIAL_CONSOLE_UNIT, SERIAL_CONSOLE_UNIT_CONTENT)
    script = _write_file(workspace, SERIAL_CONSOLE_SCRIPT, SERIAL_CONSOLE_SCRIPT_CONTENT)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def apply_root_password(workspace: Workspace, logger: RichAppLogger) -> None:
    logger.info("First user is root with no password...")
    logger.warning("Change the root password at first boot and create a regular user.")
    shadow = workspace.path(SHADOW_FILE)
    shadow.write_text(clear_root_password(_read_file(shadow)), **FILE_ENCODING)


def apply_network_interfaces(workspace: Workspace, logger: RichAppLogger) -> None:
    logger.info("Setting up the network for dhcp...")
    _write_file(workspace, INTERFACES_FILE, NETWORK_INTERFACES_CONTENT)


def apply_resolv_conf(workspace: Workspace, host_resolv_conf: Path, logger: RichAppLogger) -> None:
    logger.info("Gathering network information from your PC...")
    _write_file(workspace, RESOLV_CONF, strip_comment_lines(_read_file(host_resolv_conf)))


def apply_proxy_environment(workspace: Workspace, environ: Mapping[str, str], logger: RichAppLogger) -> None:
    path = workspace.path(ENVIRONMENT_FILE)
    current = _read_file(path) if path.exists() else ""
    _write_file(workspace, ENVIRONMENT_FILE, set_proxy_variables(current, environ))
    logger.debug(f"Proxy variables written to {path}")


def customize_filesystem(workspace: Workspace,
                         environ: Mapping[str, str],
                         host_resolv_conf: Path,
                         logger: RichAppLogger) -> List[str]:
    """
    Applies every patch. A failing patch is logged and the next one still runs.

    Returns:
        The names of the patches that failed.
    """
    steps: List[Tuple[str, Callable[[], None]]] = [
        ("serial console", lambda: apply_serial_console(workspace, logger)),
        ("root password", lambda: apply_root_password(workspace, logger)),
        ("network interfaces", lambda: apply_network_interfaces(workspace, logger)),
        ("name resolution", lambda: apply_resolv_conf(workspace, host_resolv_conf, logger)),
        ("proxy environment", lambda: apply_proxy_environment(workspace, environ, logger)),
    ]

    failed: List[str] = []
    for name, step in steps:
        try:
            step()
        except (OSError, UnicodeError) as e:
            logger.error(f"Customization step '{name}' failed: {e}")
            failed.append(name)
    return failed
