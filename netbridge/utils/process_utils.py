"""Process utilities for the short OS commands samplers and change sources run."""
import subprocess
from typing import List, Optional, Tuple

import psutil
from loguru import logger

from netbridge.core.constants import COMMAND_TIMEOUT
from netbridge.utils.platform_utils import PlatformUtils


class ProcessUtils:
    """Utility class for running local OS commands."""

    @staticmethod
    def run_command_sync(cmd: List[str], timeout: Optional[float] = COMMAND_TIMEOUT) -> Optional[Tuple[int, str]]:
        """
        Run a command synchronously and return its exit code and output.

        Args:
            cmd: Command and arguments
            timeout: Timeout in seconds

        Returns:
            Tuple of (returncode, stdout) or None if the command could not run
        """
        if not cmd or not isinstance(cmd, list):
            logger.error("Invalid command: must be a non-empty list")
            return None

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                check=False,
                creationflags=PlatformUtils.get_subprocess_flags(),
                startupinfo=PlatformUtils.get_startupinfo(),
            )
            return result.returncode, result.stdout
        except FileNotFoundError:
            logger.debug(f"Command not available: {cmd[0]}")
            return None
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out: {' '.join(cmd)}")
            return None
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Failed to run command {' '.join(cmd)}: {e}")
            return None

    @staticmethod
    def spawn_reader(cmd: List[str]) -> subprocess.Popen:
        """
        Start a long-running command whose stdout is read line by line.

        Raises:
            OSError: The command could not be started
        """
        return subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            shell=False,
            creationflags=PlatformUtils.get_subprocess_flags(),
            startupinfo=PlatformUtils.get_startupinfo(),
        )

    @staticmethod
    def terminate(proc: subprocess.Popen, timeout: float = 2.0) -> None:
        """Terminate a child process, escalating to kill if it does not exit."""
        if proc.poll() is not None:
            return
        try:
            process = psutil.Process(proc.pid)
            process.terminate()
            try:
                process.wait(timeout=timeout)
            except psutil.TimeoutExpired:
                logger.warning(f"Process {proc.pid} did not terminate, killing")
                process.kill()
        except psutil.NoSuchProcess:
            pass
        except psutil.AccessDenied:
            logger.warning(f"Access denied when terminating process {proc.pid}")
        finally:
            if proc.stdout:
                proc.stdout.close()
            try:
                proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning(f"Process {proc.pid} still running after kill")
