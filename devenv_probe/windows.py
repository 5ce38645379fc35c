"""
Windows-only lookups: registry values, file version resources and optional features.

Every function returns None on other platforms or when the information cannot be
read, so callers can treat "unsupported" and "absent" the same way.
"""

from __future__ import annotations

import logging
import re

from .common import IS_WINDOWS
from .detection import run_capture

if IS_WINDOWS:
    import winreg
else:
    winreg = None

logger = logging.getLogger(__name__)

FEATURE_ENABLED = "Enabled"
FEATURE_DISABLED = "Disabled"

# dism exits with ERROR_ELEVATION_REQUIRED when not run as administrator
ELEVATION_REQUIRED_EXIT = 740
FEATURE_STATE_RE = re.compile(r"^\s*State\s*:\s*(.+?)\s*$", re.MULTILINE)


def _hives() -> dict[str, int]:
    return {
        "HKLM": winreg.HKEY_LOCAL_MACHINE,
        "HKEY_LOCAL_MACHINE": winreg.HKEY_LOCAL_MACHINE,
        "HKCU": winreg.HKEY_CURRENT_USER,
        "HKEY_CURRENT_USER": winreg.HKEY_CURRENT_USER,
        "HKCR": winreg.HKEY_CLASSES_ROOT,
        "HKEY_CLASSES_ROOT": winreg.HKEY_CLASSES_ROOT,
    }


def read_registry_value(hive: str, subkey: str, value_name: str) -> str | None:
    """Read a string value, trying the 64-bit view before the 32-bit one.

    Args:
        hive: Hive abbreviation or full name (HKLM, HKEY_CURRENT_USER, ...)
        subkey: Key path below the hive
        value_name: Value to read ("" for the default value)

    Returns:
        The value as a string, or None when unavailable
    """
    if winreg is None:
        return None

    root = _hives().get(hive.upper())
    if root is None:
        logger.debug(f"Unknown registry hive: {hive}")
        return None

    for view in (winreg.KEY_WOW64_64KEY, winreg.KEY_WOW64_32KEY):
        try:
            with winreg.OpenKey(root, subkey, 0, winreg.KEY_READ | view) as key:
                value, _ = winreg.QueryValueEx(key, value_name)
        except (FileNotFoundError, PermissionError):
            continue
        except OSError as e:
            logger.debug(f"Registry read failed for {hive}\\{subkey}: {e}")
            continue
        if value:
            return str(value)

    return None


def read_file_version(path: str) -> tuple[int, int, int] | None:
    """Read (major, minor, build) from an executable's version resource.

    The file is never executed, which makes this safe for GUI programs.
    """
    if not IS_WINDOWS:
        return None

    import ctypes

    class VS_FIXEDFILEINFO(ctypes.Structure):
        _fields_ = [
            ("dwSignature", ctypes.c_uint32),
            ("dwStrucVersion", ctypes.c_uint32),
            ("dwFileVersionMS", ctypes.c_uint32),
            ("dwFileVersionLS", ctypes.c_uint32),
            ("dwProductVersionMS", ctypes.c_uint32),
            ("dwProductVersionLS", ctypes.c_uint32),
            ("dwFileFlagsMask", ctypes.c_uint32),
            ("dwFileFlags", ctypes.c_uint32),
            ("dwFileOS", ctypes.c_uint32),
            ("dwFileType", ctypes.c_uint32),
            ("dwFileSubtype", ctypes.c_uint32),
            ("dwFileDateMS", ctypes.c_uint32),
            ("dwFileDateLS", ctypes.c_uint32),
        ]

    version_dll = ctypes.windll.version
    size = version_dll.GetFileVersionInfoSizeW(path, None)
    if not size:
        return None

    buffer = ctypes.create_string_buffer(size)
    if not version_dll.GetFileVersionInfoW(path, 0, size, buffer):
        return None

    val_ptr = ctypes.c_void_p()
    val_size = ctypes.c_uint()
    if not version_dll.VerQueryValueW(buffer, "\\", ctypes.byref(val_ptr), ctypes.byref(val_size)):
        return None
    if not val_size.value:
        return None

    info = ctypes.cast(val_ptr, ctypes.POINTER(VS_FIXEDFILEINFO)).contents
    ms, ls = info.dwFileVersionMS, info.dwFileVersionLS
    return ((ms >> 16) & 0xFFFF, ms & 0xFFFF, (ls >> 16) & 0xFFFF)


def parse_feature_state(output: str) -> str | None:
    """Map dism /get-featureinfo output to Enabled, Disabled or None (no state line)."""
    m = FEATURE_STATE_RE.search(output)
    if not m:
        return None
    return FEATURE_ENABLED if m.group(1).lower() == "enabled" else FEATURE_DISABLED


def query_optional_feature(feature: str, timeout: float | None = None) -> str | None:
    """Query the state of a Windows optional feature.

    Returns:
        "Enabled", "Disabled", or None when the query cannot be answered
        (no elevation, dism unavailable, non-Windows host)
    """
    if not IS_WINDOWS:
        return None

    result = run_capture(
        ["dism.exe", "/online", "/English", "/get-featureinfo", f"/featurename:{feature}"],
        timeout=timeout,
    )
    if result.returncode == ELEVATION_REQUIRED_EXIT or "elevat" in result.output.lower():
        logger.debug(f"Feature query for {feature} needs elevation")
        return None
    if result.returncode != 0:
        return None
    return parse_feature_state(result.output)
