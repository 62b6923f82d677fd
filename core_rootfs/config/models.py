# core_rootfs/config/models.py

import enum
import tomlkit
import typer
from pydantic import BaseModel, Field, PositiveFloat
from typing import Dict, List, Optional
from pathlib import Path

# --- 1. Enumerations ---

class Distribution(str, enum.Enum):
    """Supported Ubuntu Core distributions."""
    ONEIRIC = "oneiric"
    PRECISE = "precise"

class Architecture(str, enum.Enum):
    """Supported ARM architectures (armhf from precise onwards)."""
    ARMEL = "armel"
    ARMHF = "armhf"

# --- 2. Sub-Models ---

# Where images come from
class ImageSources(BaseModel):
    """Download locations and release numbering of the core images."""
    release_base_url: str = "http://cdimage.ubuntu.com/ubuntu-core/releases"
    daily_base_url: str = "http://cdimage.ubuntu.com/ubuntu-core/daily"
    default_release_version: str = "12.04.1"
    release_versions: Dict[str, str] = Field(default_factory=lambda: {"oneiric": "11.10"})
    fetch_timeout: Optional[PositiveFloat] = Field(None, description="Seconds; unset waits forever.")

# Package repository of the target
class MirrorSettings(BaseModel):
    """Archive host written into the target's sources.list."""
    ports_host: str = "ports.ubuntu.com"
    ports_path: str = "ubuntu-ports"
    official_domain: str = "ubuntu.com"
    local_mirror_template: str = "http://{host}/distrib/{architecture}/linux/ubuntu/mirror/{ports_host}/{ports_path}/"

# Host files and tools
class HostSettings(BaseModel):
    """Host configuration read during provisioning."""
    sources_list: Path = Path("/etc/apt/sources.list")
    resolv_conf: Path = Path("/etc/resolv.conf")
    required_tools: List[str] = Field(default_factory=lambda: ["wget", "head", "grep", "tar"])

# --- 3. Top-Level Root Model ---

class ProvisionConfig(BaseModel):
    """The top-level configuration model representing the whole config.toml file."""

    image: ImageSources = Field(default_factory=ImageSources)
    mirror: MirrorSettings = Field(default_factory=MirrorSettings)
    host: HostSettings = Field(default_factory=HostSettings)

    @classmethod
    def load_config_from_file(cls, path: Path) -> 'ProvisionConfig':
        """Loads and validates a TOML file against the Pydantic schema."""
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ValueError(f"Error reading configuration file: {e}")

        try:
            data = tomlkit.parse(content).unwrap()
        except Exception as e:
            raise ValueError(f"Invalid TOML format in file: {e}")

        # The cls(**data) call instantiates the model and runs validation
        return cls(**data)

    def display_summary(self, distribution: Distribution, architecture: Architecture, workspace: Path) -> str:
        """Generates the plan shown before the first confirmation."""
        # Local import, image depends on this module
        from core_rootfs.image import image_candidates, release_version

        s = typer.style("\nUBUNTU CORE ROOTFS PLAN", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        s += f"  Distribution:       {distribution.value} ({release_version(distribution, self.image)})\n"
        s += f"  Architecture:       {architecture.value}\n"
        s += f"  Workspace:          {typer.style(str(workspace), fg=typer.colors.CYAN)}\n"

        s += typer.style("\nIMAGE CANDIDATES", fg=typer.colors.BLUE, bold=True) + "\n"
        s += "----------------------------------------\n"
        for i, reference in enumerate(image_candidates(distribution, architecture, self.image)):
            s += f"[{i+1}] {reference.url}\n"

        return s
