"""Hypervisor device usability probe.

Opens the device read-write and exclusively, checks that it is a character
device, and closes it again. Only reachability is tested; the handle is
never kept.

A plain file at the device path opens fine but has no device semantics,
so it is classified as unusable rather than usable.
"""

import errno
import logging
import os
import stat
from pathlib import Path

from sandbox_preflight.exceptions import DeviceError, DeviceNotFound, DeviceNotPermitted, DeviceProbeError
from sandbox_preflight.models import ProbeResult

logger = logging.getLogger(__name__)

_OPEN_FLAGS = os.O_RDWR | os.O_EXCL | os.O_CLOEXEC


def device_usable(path: Path | str) -> None:
    """Check that a hypervisor device can be opened for use.

    Args:
        path: Device node, e.g. /dev/kvm

    Raises:
        DeviceNotFound: Path does not exist
        DeviceNotPermitted: Open denied (EACCES/EPERM)
        DeviceError: Busy, not a character device, or any other failure
    """
    path = str(path)
    try:
        fd = os.open(path, _OPEN_FLAGS)
    except OSError as e:
        if e.errno in (errno.ENOENT, errno.ENOTDIR):
            raise DeviceNotFound(f"{path} does not exist", path) from e
        if e.errno in (errno.EACCES, errno.EPERM):
            raise DeviceNotPermitted(f"permission denied opening {path}", path) from e
        if e.errno == errno.EBUSY:
            raise DeviceError(f"{path} is busy", path, errno=e.errno, result=ProbeResult.BUSY) from e
        raise DeviceError(f"cannot open {path}: {e.strerror or e}", path, errno=e.errno) from e

    try:
        mode = os.fstat(fd).st_mode
    finally:
        os.close(fd)

    if not stat.S_ISCHR(mode):
        raise DeviceError(f"{path} is not a character device", path, context={"mode": oct(mode)})

    logger.debug("Hypervisor device %s usable", path, extra={"path": path})


def probe_device(path: Path | str) -> ProbeResult:
    """Classify a hypervisor device without raising."""
    try:
        device_usable(path)
    except DeviceProbeError as e:
        return e.result
    return ProbeResult.USABLE
