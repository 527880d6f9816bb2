"""Runtime configuration from environment variables."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sandbox_preflight import constants
from sandbox_preflight.config import CheckConfig
from sandbox_preflight.platform_utils import HostArch, parse_arch


class Settings(BaseSettings):
    """Runtime configuration from environment variables.

    All settings can be overridden via environment variables with
    SANDBOX_PREFLIGHT_ prefix.
    Example: SANDBOX_PREFLIGHT_MODULE_ROOT=/tmp/sys/module
    """

    model_config = SettingsConfigDict(
        env_prefix="SANDBOX_PREFLIGHT_",
        extra="ignore",
    )

    cpuinfo_path: Path = constants.PROC_CPUINFO
    module_root: Path = constants.SYS_MODULE_DIR
    device_path: Path = constants.KVM_DEVICE
    skip_device_check: bool = False

    arch: HostArch | None = None
    """Architecture override; accepts uname names and aliases such as amd64/arm64."""

    on_vmm: bool | None = None
    """Override hypervisor detection (e.g. when cpuinfo hides the flag)."""

    @field_validator("arch", mode="before")
    @classmethod
    def _normalize_arch(cls, value: object) -> object:
        if isinstance(value, str):
            if not value.strip():
                return None
            arch = parse_arch(value)
            if arch is None:
                raise ValueError(f"unsupported architecture: {value}")
            return arch
        return value

    def to_check_config(self) -> CheckConfig:
        """Build the CheckConfig these settings describe."""
        return CheckConfig(
            cpuinfo_path=self.cpuinfo_path,
            module_root=self.module_root,
            device_path=None if self.skip_device_check else self.device_path,
            arch=self.arch,
            on_vmm=self.on_vmm,
        )
