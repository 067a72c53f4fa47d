"""Platform detection for platform-restricted commands and imports."""

import logging
import sys
from typing import Optional

from .model import Platform


logger = logging.getLogger(__name__)


def current_platform(system: Optional[str] = None) -> Optional[Platform]:
    """
    Platform of the running interpreter (or of ``system``, a sys.platform value).

    Returns None on systems outside the known platforms; only unrestricted
    commands are available there.
    """
    system = system or sys.platform
    if system.startswith("linux"):
        return Platform.LINUX
    if system == "darwin":
        return Platform.MACOS
    if system in ("win32", "cygwin"):
        return Platform.WINDOWS
    logger.debug(f"Unrecognized platform {system}, platform-restricted commands are unavailable")
    return None

