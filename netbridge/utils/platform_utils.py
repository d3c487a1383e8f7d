"""Platform detection and abstraction utilities."""
import os
import platform
import sys
from enum import Enum
from typing import Optional


class Platform(Enum):
    """Operating system platforms."""
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    ANDROID = "android"
    IOS = "ios"


class PlatformUtils:
    """Utility class for platform detection and abstraction."""

    @staticmethod
    def get_platform() -> Platform:
        """
        Detect the current operating system.

        Android and iOS are checked first because embedded interpreters
        on those systems may still report a POSIX ``platform.system()``.

        Returns:
            Platform enum value
        """
        if sys.platform == "android" or hasattr(sys, "getandroidapilevel"):
            return Platform.ANDROID
        if sys.platform == "ios":
            return Platform.IOS

        system = platform.system()
        if system == "Windows" or os.name == "nt":
            return Platform.WINDOWS
        elif system == "Darwin":
            return Platform.MACOS
        else:
            return Platform.LINUX

    @staticmethod
    def get_android_api_level() -> Optional[int]:
        """
        Get the Android API level of the running interpreter.

        Returns:
            API level, or None when not running on Android
        """
        getter = getattr(sys, "getandroidapilevel", None)
        if getter is None:
            return None
        return getter()

    @staticmethod
    def get_subprocess_flags() -> int:
        """
        Get platform-specific subprocess creation flags.

        Returns:
            CREATE_NO_WINDOW flag on Windows, 0 on other platforms
        """
        import subprocess

        if PlatformUtils.get_platform() == Platform.WINDOWS:
            # CREATE_NO_WINDOW only exists on Windows
            return getattr(subprocess, "CREATE_NO_WINDOW", 0x08000000)
        return 0

    @staticmethod
    def get_startupinfo():
        """
        Get STARTUPINFO object for hiding subprocess windows on Windows.

        Returns:
            STARTUPINFO object with STARTF_USESHOWWINDOW on Windows, None otherwise
        """
        import subprocess

        if PlatformUtils.get_platform() == Platform.WINDOWS:
            # STARTUPINFO and related constants only exist on Windows
            STARTUPINFO = getattr(subprocess, "STARTUPINFO", None)
            if STARTUPINFO:
                startupinfo = STARTUPINFO()
                startupinfo.dwFlags |= getattr(subprocess, "STARTF_USESHOWWINDOW", 0x00000001)
                startupinfo.wShowWindow = getattr(subprocess, "SW_HIDE", 0)
                return startupinfo
        return None
