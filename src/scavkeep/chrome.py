"""Chrome version detection utilities."""

import re
import shutil
import subprocess
from pathlib import Path

from scavkeep.exceptions import ChromeDriverError
from scavkeep.logging import get_logger

LOG = get_logger(__name__)

CHROME_PATHS: tuple[str, ...] = (
    # macOS
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    # Linux
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    # Windows
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
)

CHROME_COMMANDS: tuple[str, ...] = ("google-chrome", "chromium-browser", "chromium")

_VERSION_RE = re.compile(r"(\d+(?:\.\d+)*)")


def parse_chrome_version(output: str, major: bool = True) -> str | None:
    """Extract the version from ``chrome --version`` output.

    Args:
        output: Output like "Google Chrome 120.0.6099.71".
        major: If True, return only the major version.

    Returns:
        Version string, or None if the output holds no version.
    """
    match = _VERSION_RE.search(output)
    if not match:
        return None
    full_version = match.group(1)
    return full_version.split(".")[0] if major else full_version


def _candidate_binaries() -> list[str]:
    """Known install locations first, then whatever is on PATH."""
    candidates = [path for path in CHROME_PATHS if Path(path).exists()]
    for command in CHROME_COMMANDS:
        found = shutil.which(command)
        if found and found not in candidates:
            candidates.append(found)
    return candidates


def get_chrome_version(major: bool = True) -> str:
    """Detect installed Chrome version.

    Args:
        major: If True, return only major version. Otherwise, return full version.

    Returns:
        Chrome version string.

    Raises:
        ChromeDriverError: If Chrome is not installed or version cannot be determined.
    """
    for chrome_path in _candidate_binaries():
        try:
            result = subprocess.run(  # noqa: S603
                [chrome_path, "--version"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (subprocess.TimeoutExpired, OSError) as exc:
            LOG.warning("chrome_version_check_failed", path=chrome_path, error=str(exc))
            continue

        version = parse_chrome_version(result.stdout.strip(), major=major)
        if version:
            LOG.debug("detected_chrome_version", version=version, path=chrome_path)
            return version

    raise ChromeDriverError("Chrome not found. Please install Google Chrome or Chromium.")
