import shutil
from typing import Callable, Iterable, Optional, Tuple

from core_rootfs.config.models import Architecture, Distribution
from core_rootfs.utils.exceptions import ArgumentError, DependencyMissingError, PrivilegeError


def check_privileges(euid: int) -> None:
    """
    Check that the tool is running with root privileges.
    """
    if euid != 0:
        raise PrivilegeError("You don't have sufficient privileges to run this script.")


def validate_arguments(distribution: Optional[str], architecture: Optional[str]) -> Tuple[Distribution, Architecture]:
    """
    Validates the two positional arguments against the supported enumerations.

    Args:
        distribution: Ubuntu Core distribution name, e.g. 'precise'.
        architecture: Ubuntu Core architecture name, e.g. 'armhf'.

    Returns:
        The matching Distribution and Architecture members.
    """
    if not distribution or not architecture:
        raise ArgumentError(
            "Please specify a distribution name in 1st parameter "
            "and an architecture name in 2nd parameter."
        )

    try:
        distro = Distribution(distribution)
    except ValueError:
        choices = ", ".join(d.value for d in Distribution)
        raise ArgumentError(f"Invalid distribution '{distribution}' specified in parameter one! ({choices})")

    try:
        arch = Architecture(architecture)
    except ValueError:
        choices = ", ".join(a.value for a in Architecture)
        raise ArgumentError(f"Invalid architecture '{architecture}' specified in parameter two! ({choices})")

    return distro, arch


def check_required_tools(tools: Iterable[str], which: Callable[[str], Optional[str]] = shutil.which) -> None:
    """
    Check that every host utility the run shells out to is on the PATH.
    """
    for tool in tools:
        if which(tool) is None:
            raise DependencyMissingError(tool)
