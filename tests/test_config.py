"""Unit tests for CheckConfig and Settings.

No mocks - uses real environment variables via monkeypatch.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sandbox_preflight.config import CheckConfig
from sandbox_preflight.constants import KVM_DEVICE, PROC_CPUINFO, SYS_MODULE_DIR
from sandbox_preflight.platform_utils import HostArch
from sandbox_preflight.settings import Settings

# ============================================================================
# CheckConfig
# ============================================================================


class TestCheckConfig:
    """Tests for CheckConfig field validation."""

    def test_defaults(self) -> None:
        """CheckConfig points at the real host by default."""
        config = CheckConfig()
        assert config.cpuinfo_path == PROC_CPUINFO
        assert config.module_root == SYS_MODULE_DIR
        assert config.device_path == KVM_DEVICE
        assert config.arch is None
        assert config.on_vmm is None

    def test_paths_coerced(self) -> None:
        config = CheckConfig(cpuinfo_path="/tmp/cpuinfo", module_root="/tmp/sys/module")  # type: ignore[arg-type]
        assert config.cpuinfo_path == Path("/tmp/cpuinfo")
        assert config.module_root == Path("/tmp/sys/module")

    def test_arch_from_value(self) -> None:
        assert CheckConfig(arch="s390x").arch is HostArch.S390X  # type: ignore[arg-type]

    def test_unknown_arch_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CheckConfig(arch="mips")  # type: ignore[arg-type]

    def test_device_probe_disabled(self) -> None:
        assert CheckConfig(device_path=None).device_path is None

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            CheckConfig(unknown_field="value")  # type: ignore[call-arg]

    def test_frozen(self) -> None:
        config = CheckConfig()
        with pytest.raises(ValidationError):
            config.on_vmm = True  # type: ignore[misc]


# ============================================================================
# Settings (environment)
# ============================================================================


class TestSettings:
    """Tests for environment-driven Settings."""

    def test_defaults(self) -> None:
        config = Settings().to_check_config()
        assert config == CheckConfig()

    def test_env_paths(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("SANDBOX_PREFLIGHT_CPUINFO_PATH", str(tmp_path / "cpuinfo"))
        monkeypatch.setenv("SANDBOX_PREFLIGHT_MODULE_ROOT", str(tmp_path / "module"))
        monkeypatch.setenv("SANDBOX_PREFLIGHT_DEVICE_PATH", str(tmp_path / "kvm"))
        config = Settings().to_check_config()
        assert config.cpuinfo_path == tmp_path / "cpuinfo"
        assert config.module_root == tmp_path / "module"
        assert config.device_path == tmp_path / "kvm"

    def test_skip_device_check(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SANDBOX_PREFLIGHT_SKIP_DEVICE_CHECK", "true")
        assert Settings().to_check_config().device_path is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("amd64", HostArch.X86_64),
            ("x86_64", HostArch.X86_64),
            ("arm64", HostArch.AARCH64),
            ("S390X", HostArch.S390X),
            ("", None),
        ],
    )
    def test_arch_aliases(self, monkeypatch: pytest.MonkeyPatch, value: str, expected: HostArch | None) -> None:
        monkeypatch.setenv("SANDBOX_PREFLIGHT_ARCH", value)
        assert Settings().arch is expected

    def test_bad_arch(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SANDBOX_PREFLIGHT_ARCH", "sparc")
        with pytest.raises(ValidationError):
            Settings()

    def test_on_vmm(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SANDBOX_PREFLIGHT_ON_VMM", "1")
        assert Settings().to_check_config().on_vmm is True
