import os
import shutil
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional

from core_rootfs.checks import check_privileges, check_required_tools, validate_arguments
from core_rootfs.config.models import ProvisionConfig
from core_rootfs.customize import customize_filesystem
from core_rootfs.executors.archive import Extractor, TarExtractor, install_archive
from core_rootfs.executors.fetch import WgetFetcher
from core_rootfs.executors.text import GrepLineFilter, LineFilter
from core_rootfs.image import Fetcher, ImageReference, retrieve_image
from core_rootfs.mirror import resolve_mirror
from core_rootfs.utils.executor import Executor
from core_rootfs.utils.logger import RichAppLogger
from core_rootfs.utils.prompt import Responder
from core_rootfs.workspace import Workspace, guard_workspace


@dataclass
class ProvisionResult:
    workspace: Workspace
    image: ImageReference
    archive_url: Optional[str] = None
    failed_steps: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed_steps


def provision(distribution: Optional[str],
              architecture: Optional[str],
              *,
              workspace: Workspace,
              config: ProvisionConfig,
              logger: RichAppLogger,
              responder: Responder,
              fetcher: Optional[Fetcher] = None,
              extractor: Optional[Extractor] = None,
              line_filter: Optional[LineFilter] = None,
              environ: Optional[Mapping[str, str]] = None,
              euid: Optional[int] = None,
              which: Callable[[str], Optional[str]] = shutil.which) -> ProvisionResult:
    """
    Provisions an Ubuntu Core filesystem in the workspace.

    Validation, the workspace guard, download and extraction abort the run by
    raising a ProvisionError. Customization and the mirror setup are
    best-effort; their failures are listed in the result.
    """
    logger.section("System Check")
    check_privileges(os.geteuid() if euid is None else euid)
    distro, arch = validate_arguments(distribution, architecture)
    check_required_tools(config.host.required_tools, which=which)

    logger.section("Workspace")
    logger.info(config.display_summary(distro, arch, workspace.root))
    guard_workspace(workspace, responder, logger)

    # Downloads may take a while, no default timeout
    executor = Executor(logger_instance=logger, default_timeout=None)
    fetcher = fetcher or WgetFetcher(executor, timeout=config.image.fetch_timeout)
    extractor = extractor or TarExtractor(executor)
    line_filter = line_filter or GrepLineFilter(executor)
    environ = os.environ if environ is None else environ

    logger.section("Image Download")
    image = retrieve_image(distro, arch, workspace, fetcher, config.image, logger)

    logger.section("Image Extraction")
    install_archive(workspace.path(image.file_name), workspace, extractor, logger)

    logger.section("Filesystem Setup")
    result = ProvisionResult(workspace=workspace, image=image)
    result.failed_steps.extend(customize_filesystem(workspace, environ, config.host.resolv_conf, logger))

    logger.section("Package Sources")
    try:
        result.archive_url = resolve_mirror(
            workspace, distro, arch, line_filter, config.host.sources_list, config.mirror, logger
        )
    except (OSError, UnicodeError) as e:
        logger.error(f"Writing the package sources list failed: {e}")
        result.failed_steps.append("package sources")

    return result
