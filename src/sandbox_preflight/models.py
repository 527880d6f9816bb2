"""Data models for sandbox-preflight."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ProbeResult(str, Enum):
    """Classification of a hypervisor device probe."""

    USABLE = "usable"
    NOT_PRESENT = "not_present"
    PERMISSION_DENIED = "permission_denied"
    BUSY = "busy"
    UNUSABLE = "unusable"


class CPUDetails(BaseModel):
    """Structured view of a CPU description (/proc/cpuinfo)."""

    model_config = ConfigDict(frozen=True)

    vendor_id: str = Field(min_length=1, description="Value of the architecture's vendor field")
    model: str = Field(min_length=1, description="Value of the architecture's model field")
    flags: frozenset[str] = Field(default=frozenset(), description="Tokens of the flags/features line")
    attributes: frozenset[str] = Field(default=frozenset(), description="Every token of every labelled value")


class ModuleParameter(BaseModel):
    """A kernel module parameter that must hold a specific value."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    required_value: str


class ModuleRequirement(BaseModel):
    """A kernel module that must be loaded, with optional parameter constraints."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    parameters: tuple[ModuleParameter, ...] = ()


class CapabilityVerdict(BaseModel):
    """Result of one capability evaluation pass."""

    model_config = ConfigDict(frozen=True)

    failures: tuple[str, ...] = Field(default=(), description="Unmet requirements, in evaluation order")
    warnings: tuple[str, ...] = Field(default=(), description="Mismatches downgraded by the parameter handler")
    cpu: CPUDetails | None = Field(default=None, description="Parsed CPU description")
    on_vmm: bool = Field(default=False, description="Host is itself running under a hypervisor")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def capable(self) -> bool:
        """True when no requirement failed."""
        return not self.failures
