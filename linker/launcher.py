"""Open a chosen URL with the platform's URL opener."""
import os
import subprocess
import sys
from typing import Optional


def get_opener_command(override: Optional[str] = None) -> str:
    """Get the command used to open URLs.

    Args:
        override: Configured opener, used as-is when set

    Returns:
        Opener executable name
    """
    if override:
        return override
    if sys.platform == "darwin":  # macOS
        return "open"
    if os.name == "nt":  # Windows
        return "explorer"
    return "xdg-open"


def open_url(url: str, opener: Optional[str] = None) -> bool:
    """Launch the opener for a URL without waiting for it.

    Args:
        url: URL to open
        opener: Opener override (defaults to the platform opener)

    Returns:
        True if the opener was started
    """
    command = get_opener_command(opener)

    try:
        subprocess.Popen(
            [command, url],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        print(f"[Launcher] Could not run {command}: {e}", file=sys.stderr)
        return False

    return True
