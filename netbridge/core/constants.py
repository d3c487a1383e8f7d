import os
import tempfile
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv

from netbridge.utils.platform_utils import Platform, PlatformUtils

# Load .env from project root
_project_root = Path(__file__).parent.parent.parent
load_dotenv(_project_root / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Host channel names (method calls and the push stream)
METHOD_CHANNEL = os.getenv("NETBRIDGE_METHOD_CHANNEL", "network_service")
EVENT_CHANNEL = os.getenv("NETBRIDGE_EVENT_CHANNEL", f"{METHOD_CHANNEL}/events")

# Change notification tuning
SETTLE_SECONDS = float(os.getenv("NETBRIDGE_SETTLE_SECONDS", "0.3"))
POLL_INTERVAL = float(os.getenv("NETBRIDGE_POLL_INTERVAL", "5.0"))
# 0 keeps degraded monitors at the baseline event only
FALLBACK_POLL_INTERVAL = float(os.getenv("NETBRIDGE_FALLBACK_POLL_INTERVAL", "0"))
DEDUPE_EVENTS = _env_flag("NETBRIDGE_DEDUPE", "true")

# Dispatcher queue bound
DISPATCH_QUEUE_SIZE = int(os.getenv("NETBRIDGE_DISPATCH_QUEUE_SIZE", "64"))

# Local OS command timeouts
COMMAND_TIMEOUT = 5  # seconds
THREAD_JOIN_TIMEOUT = 2.0  # seconds

# Logging
LOG_LEVEL = os.getenv("NETBRIDGE_LOG_LEVEL", "DEBUG").upper()

# Temporary directory (cross-platform)
if PlatformUtils.get_platform() == Platform.WINDOWS:
    TMPDIR = os.path.join(tempfile.gettempdir(), "netbridge")
elif PlatformUtils.get_platform() == Platform.MACOS:
    TMPDIR = os.path.join(os.path.expanduser("~/Library/Caches"), "netbridge")
else:
    TMPDIR = os.path.join(os.environ.get("TMPDIR", tempfile.gettempdir()), "netbridge")

LOG_FILE = os.path.join(TMPDIR, "netbridge.log")
