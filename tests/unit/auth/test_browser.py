"""Unit tests for the consent-page browser launch."""

import webbrowser
from unittest.mock import MagicMock, patch

from contentflow_core.auth import open_browser

URL = "https://auth.example.com/authorize?client_id=client-123"


class TestOpenBrowser:
    """open_browser() never raises."""

    def test_opened(self):
        """A launched browser is logged as opened."""
        logger = MagicMock()
        with patch("contentflow_core.auth.browser.webbrowser.open", return_value=True):
            assert open_browser(URL, logger) is True
        logger.browser_opened.assert_called_once_with(URL)
        logger.manual_open.assert_not_called()

    def test_no_browser_logs_manual_open(self):
        """Without a browser the URL is logged for manual use."""
        logger = MagicMock()
        with patch("contentflow_core.auth.browser.webbrowser.open", return_value=False):
            assert open_browser(URL, logger) is False
        logger.manual_open.assert_called_once_with(URL)

    def test_browser_error_is_swallowed(self, capsys):
        """A webbrowser.Error falls back to printing the URL."""
        with patch(
            "contentflow_core.auth.browser.webbrowser.open",
            side_effect=webbrowser.Error("no runnable browser"),
        ):
            assert open_browser(URL) is False
        assert f"Please manually open: {URL}" in capsys.readouterr().err
