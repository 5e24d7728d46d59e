"""Stealth Chrome driver with a persistent profile.

The mining page needs a connected wallet. Reusing one Chrome profile keeps
that connection (and the wallet extension) across watchdog restarts, and
undetected-chromedriver plus selenium-stealth keep the page from treating
the automated browser differently from a normal one.
"""

import platform as platform_mod
from pathlib import Path

import undetected_chromedriver as uc
from selenium_stealth import stealth

from scavkeep.chrome import get_chrome_version
from scavkeep.config import get_settings
from scavkeep.exceptions import ChromeDriverError
from scavkeep.logging import get_logger

LOG = get_logger(__name__)

WINDOW_SIZE = (1280, 900)


def get_profile_dir() -> Path:
    """Get persistent Chrome profile directory.

    Returns:
        Path to Chrome profile directory (~/.config/scavkeep/chrome_profile).
    """
    return get_settings().profile_dir


def platform_fingerprint(system: str | None = None) -> tuple[str, str, str]:
    """Get a (platform, vendor, renderer) fingerprint matching the OS.

    Args:
        system: Result of ``platform.system()``; detected when omitted.
    """
    system = system or platform_mod.system()
    if system == "Darwin":
        return ("MacIntel", "Apple Inc.", "Apple GPU")
    if system == "Windows":
        return ("Win32", "Google Inc.", "ANGLE (Intel, Intel(R) UHD Graphics Direct3D11)")
    return ("Linux x86_64", "Google Inc.", "Mesa Intel(R) UHD Graphics")


def create_stealth_driver(
    headless: bool = False,
    profile_dir: Path | None = None,
) -> uc.Chrome:
    """Create an undetected Chrome driver bound to a persistent profile.

    Args:
        headless: Run in headless mode. Wallet extensions generally need a
            visible window, so this defaults to False.
        profile_dir: Custom profile directory (default: ~/.config/scavkeep/chrome_profile).

    Returns:
        Configured undetected Chrome driver with stealth settings applied.
    """
    if profile_dir is None:
        profile_dir = get_profile_dir()

    profile_dir.mkdir(parents=True, exist_ok=True)
    LOG.info("creating_stealth_driver", profile_dir=str(profile_dir), headless=headless)

    options = uc.ChromeOptions()
    options.add_argument("--disable-blink-features=AutomationControlled")
    options.add_argument("--no-first-run")
    options.add_argument("--password-store=basic")
    # Background tabs get their timers throttled; the page must keep mining.
    options.add_argument("--disable-background-timer-throttling")
    options.add_argument("--disable-renderer-backgrounding")
    options.add_argument(f"--window-size={WINDOW_SIZE[0]},{WINDOW_SIZE[1]}")

    if headless:
        options.add_argument("--headless=new")

    try:
        chrome_version: int | None = int(get_chrome_version(major=True))
    except (ChromeDriverError, ValueError) as exc:
        LOG.warning("chrome_version_detection_failed", error=str(exc))
        chrome_version = None

    driver = uc.Chrome(
        options=options,
        user_data_dir=str(profile_dir),
        version_main=chrome_version,
    )

    plat, vendor, renderer = platform_fingerprint()
    stealth(
        driver,
        languages=["en-US", "en"],
        vendor=vendor,
        platform=plat,
        webgl_vendor=vendor,
        renderer=renderer,
        fix_hairline=True,
    )

    LOG.info("stealth_driver_created", chrome_version=chrome_version)
    return driver
