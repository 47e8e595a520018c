from __future__ import annotations

import platform
import re
import subprocess
from pathlib import Path
from uuid import uuid4

from loguru import logger

from posthog_bridge.config import DeviceIdSource
from posthog_bridge.exceptions import DeviceIdError

LINUX_MACHINE_ID_PATHS = (
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
)

_IOREG_UUID = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')
_REG_GUID = re.compile(r"MachineGuid\s+REG_SZ\s+(\S+)")


def resolve_device_id(source: DeviceIdSource = "machine") -> str:
    """Return the device id for this installation.

    @type source: str
    @param source: C{"machine"} reads the stable OS machine identifier,
        C{"random"} generates a fresh UUID.
    @raise DeviceIdError: If the machine identifier is unavailable.
    """
    if source == "random":
        return str(uuid4())
    if source == "machine":
        return machine_id()
    raise DeviceIdError(f"unknown device id source '{source}'")


def machine_id() -> str:
    """Read the OS-provided machine identifier.

    The value is stable across process restarts on the same host.
    """
    system = platform.system()
    try:
        if system == "Darwin":
            value = _darwin_machine_id()
        elif system == "Windows":
            value = _windows_machine_id()
        else:
            value = _linux_machine_id()
    except (OSError, subprocess.SubprocessError) as e:
        raise DeviceIdError(str(e)) from e
    if not value:
        raise DeviceIdError(f"no machine identifier found on {system}")
    logger.debug(f"Resolved machine id on {system}.")
    return value


def _linux_machine_id() -> str | None:
    for path in LINUX_MACHINE_ID_PATHS:
        if path.exists():
            value = path.read_text(encoding="utf-8").strip()
            if value:
                return value
    return None


def _darwin_machine_id() -> str | None:
    output = subprocess.run(
        ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
        capture_output=True,
        text=True,
        check=True,
    ).stdout
    match = _IOREG_UUID.search(output)
    return match.group(1) if match else None


def _windows_machine_id() -> str | None:
    output = subprocess.run(
        [
            "reg",
            "query",
            r"HKEY_LOCAL_MACHINE\SOFTWARE\Microsoft\Cryptography",
            "/v",
            "MachineGuid",
        ],
        capture_output=True,
        text=True,
        check=True,
    ).stdout
    match = _REG_GUID.search(output)
    return match.group(1) if match else None
