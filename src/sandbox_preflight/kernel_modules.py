"""Kernel module inspection via the /sys/module registry.

Each loaded module (or built-in module with parameters) has a directory
``<root>/<name>``; its parameters are files under ``<root>/<name>/parameters``
whose contents are the current value.

Nothing is cached: module state can change between calls.
"""

import errno
from pathlib import Path

from sandbox_preflight import constants
from sandbox_preflight._logging import get_logger
from sandbox_preflight.exceptions import ModuleInspectionError

logger = get_logger(__name__)

# Errors that mean "no such entry" rather than "registry unreadable"
_ABSENT_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR})


class KernelModuleInspector:
    """Read-only view of a kernel module registry.

    Args:
        module_root: Registry root. Tests point this at a fixture tree.
    """

    def __init__(self, module_root: Path = constants.SYS_MODULE_DIR) -> None:
        self.module_root = Path(module_root)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(module_root={str(self.module_root)!r})"

    def _module_path(self, name: str) -> Path:
        return self.module_root / name

    def module_loaded(self, name: str) -> bool:
        """Check whether a module entry exists in the registry.

        Returns:
            True if ``<root>/<name>`` exists, False if it does not

        Raises:
            ModuleInspectionError: Registry could not be read (e.g. EACCES)
        """
        path = self._module_path(name)
        try:
            path.stat()
        except OSError as e:
            if e.errno in _ABSENT_ERRNOS:
                return False
            raise ModuleInspectionError(
                f"Cannot inspect kernel module {name!r}: {e.strerror or e}",
                context={"module": name, "path": str(path), "errno": e.errno},
            ) from e
        return True

    def module_parameter(self, name: str, parameter: str) -> tuple[str, bool]:
        """Read the current value of a module parameter.

        Returns:
            (value, True) with surrounding whitespace stripped, or ("", False)
            when the module or the parameter does not exist

        Raises:
            ModuleInspectionError: Parameter file exists but cannot be read
        """
        path = self._module_path(name) / constants.MODULE_PARAMETERS_DIR / parameter
        try:
            value = path.read_text(encoding="utf-8", errors="replace").strip()
        except OSError as e:
            if e.errno in _ABSENT_ERRNOS:
                return "", False
            raise ModuleInspectionError(
                f"Cannot read parameter {parameter!r} of kernel module {name!r}: {e.strerror or e}",
                context={"module": name, "parameter": parameter, "path": str(path), "errno": e.errno},
            ) from e

        logger.debug(
            "Kernel module %r parameter %r is %r",
            name,
            parameter,
            value,
            extra={"kernel_module": name, "parameter": parameter},
        )
        return value, True
