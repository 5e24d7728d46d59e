"""Tests for the Selenium page backend."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import selenium.common.exceptions

from scavkeep.backends.base import SCOPE_TEXTS_SCRIPT, MinePage
from scavkeep.backends.selenium import SeleniumButton, SeleniumPage
from scavkeep.exceptions import BrowserError


def _element(text: str, enabled: bool = True) -> MagicMock:
    element = MagicMock()
    element.get_attribute.return_value = text
    element.is_enabled.return_value = enabled
    return element


@pytest.fixture
def driver() -> MagicMock:
    return MagicMock()


@pytest.fixture
def page(driver: MagicMock) -> SeleniumPage:
    page = SeleniumPage(headless=True)
    page._driver = driver
    page._started = True
    return page


class TestSeleniumPageInit:
    """Construction and protocol compliance."""

    def test_implements_protocol(self) -> None:
        assert isinstance(SeleniumPage(), MinePage)

    def test_defaults(self) -> None:
        page = SeleniumPage()
        assert page._headless is False
        assert page._use_stealth is True
        assert page.is_running is False

    def test_get_state(self, tmp_path: Path) -> None:
        page = SeleniumPage(headless=True, profile_dir=tmp_path, use_stealth=False)
        assert page.get_state() == {
            "backend_type": "selenium",
            "headless": True,
            "use_stealth": False,
            "profile_dir": str(tmp_path),
        }

    def test_repr(self) -> None:
        assert repr(SeleniumPage(use_stealth=False)) == "<SeleniumPage standard stopped>"


class TestSeleniumPageLifecycle:
    """start / stop / navigate."""

    @pytest.mark.asyncio
    async def test_start_uses_stealth_driver(self, tmp_path: Path) -> None:
        driver = MagicMock()
        page = SeleniumPage(headless=False, profile_dir=tmp_path)

        with patch("scavkeep.stealth.create_stealth_driver", return_value=driver) as create:
            await page.start()

        create.assert_called_once_with(headless=False, profile_dir=tmp_path)
        assert page.is_running is True

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, page: SeleniumPage) -> None:
        with patch("scavkeep.stealth.create_stealth_driver") as create:
            await page.start()
        create.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_failure_raises_browser_error(self) -> None:
        page = SeleniumPage()
        with (
            patch(
                "scavkeep.stealth.create_stealth_driver",
                side_effect=selenium.common.exceptions.WebDriverException("no chrome"),
            ),
            pytest.raises(BrowserError, match="Failed to start Selenium browser"),
        ):
            await page.start()
        assert page.is_running is False

    @pytest.mark.asyncio
    async def test_stop_quits_driver(self, page: SeleniumPage, driver: MagicMock) -> None:
        await page.stop()
        driver.quit.assert_called_once()
        assert page.is_running is False

    @pytest.mark.asyncio
    async def test_stop_tolerates_closed_window(
        self, page: SeleniumPage, driver: MagicMock
    ) -> None:
        driver.quit.side_effect = selenium.common.exceptions.WebDriverException(
            "no such window"
        )
        await page.stop()
        assert page.is_running is False

    @pytest.mark.asyncio
    async def test_stop_when_not_started(self) -> None:
        await SeleniumPage().stop()

    @pytest.mark.asyncio
    async def test_navigate(self, page: SeleniumPage, driver: MagicMock) -> None:
        await page.navigate("https://sm.midnight.gd/")
        driver.get.assert_called_once_with("https://sm.midnight.gd/")

    @pytest.mark.asyncio
    async def test_navigate_failure(self, page: SeleniumPage, driver: MagicMock) -> None:
        driver.get.side_effect = selenium.common.exceptions.WebDriverException("timeout")
        with pytest.raises(BrowserError, match="Navigation failed"):
            await page.navigate("https://sm.midnight.gd/")

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        driver = MagicMock()
        with patch("scavkeep.stealth.create_stealth_driver", return_value=driver):
            async with SeleniumPage(profile_dir=tmp_path) as page:
                assert page.is_running is True
        driver.quit.assert_called_once()
        assert page.is_running is False


class TestSeleniumPageReading:
    """find_button / matching_scopes / reload."""

    @pytest.mark.asyncio
    async def test_find_button_case_insensitive(
        self, page: SeleniumPage, driver: MagicMock
    ) -> None:
        driver.find_elements.return_value = [
            _element("Connect wallet"),
            _element("  Start Session "),
        ]

        button = await page.find_button("start session")

        assert isinstance(button, SeleniumButton)
        assert button.text == "Start Session"
        assert button.disabled is False

    @pytest.mark.asyncio
    async def test_find_button_disabled(self, page: SeleniumPage, driver: MagicMock) -> None:
        driver.find_elements.return_value = [_element("Start session", enabled=False)]
        button = await page.find_button("start session")
        assert button is not None
        assert button.disabled is True

    @pytest.mark.asyncio
    async def test_find_button_none(self, page: SeleniumPage, driver: MagicMock) -> None:
        driver.find_elements.return_value = [_element("Connect wallet")]
        assert await page.find_button("stop session") is None

    @pytest.mark.asyncio
    async def test_find_button_driver_error(self, page: SeleniumPage, driver: MagicMock) -> None:
        driver.find_elements.side_effect = selenium.common.exceptions.WebDriverException("gone")
        assert await page.find_button("stop session") is None

    @pytest.mark.asyncio
    async def test_find_button_not_running(self) -> None:
        assert await SeleniumPage().find_button("stop session") is None

    @pytest.mark.asyncio
    async def test_click(self, page: SeleniumPage, driver: MagicMock) -> None:
        element = _element("Start session")
        driver.find_elements.return_value = [element]

        button = await page.find_button("start session")
        await button.click()

        element.click.assert_called_once()

    @pytest.mark.asyncio
    async def test_click_failure_is_logged(self) -> None:
        element = _element("Start session")
        element.click.side_effect = selenium.common.exceptions.WebDriverException("covered")
        await SeleniumButton(element, "Start session").click()

    @pytest.mark.asyncio
    async def test_matching_scopes(self, page: SeleniumPage, driver: MagicMock) -> None:
        driver.execute_script.return_value = ["Finding a solution Time left: 00:01:00"]

        scopes = await page.matching_scopes("finding a solution", ("div", "span"))

        assert scopes == ["Finding a solution Time left: 00:01:00"]
        driver.execute_script.assert_called_once_with(
            SCOPE_TEXTS_SCRIPT, "finding a solution", ["div", "span"]
        )

    @pytest.mark.asyncio
    async def test_matching_scopes_none_result(
        self, page: SeleniumPage, driver: MagicMock
    ) -> None:
        driver.execute_script.return_value = None
        assert await page.matching_scopes("x", ["div"]) == []

    @pytest.mark.asyncio
    async def test_matching_scopes_driver_error(
        self, page: SeleniumPage, driver: MagicMock
    ) -> None:
        driver.execute_script.side_effect = selenium.common.exceptions.WebDriverException("js")
        assert await page.matching_scopes("x", ["div"]) == []

    @pytest.mark.asyncio
    async def test_reload(self, page: SeleniumPage, driver: MagicMock) -> None:
        await page.reload()
        driver.refresh.assert_called_once()

    @pytest.mark.asyncio
    async def test_reload_failure_is_logged(self, page: SeleniumPage, driver: MagicMock) -> None:
        driver.refresh.side_effect = selenium.common.exceptions.WebDriverException("gone")
        await page.reload()

    @pytest.mark.asyncio
    async def test_reload_not_running(self) -> None:
        await SeleniumPage().reload()
