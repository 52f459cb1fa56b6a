"""Best-effort browser launch for the consent page."""

import sys
import webbrowser

from contentflow_core.logging import AuthLogger


def open_browser(url: str, logger: AuthLogger | None = None) -> bool:
    """Open ``url`` in the default browser.

    Never raises: when no browser can be launched the URL is reported for
    manual use instead.

    Args:
        url: Authorization URL
        logger: Optional auth logger

    Returns:
        True if a browser was launched
    """
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error:
        opened = False

    if opened:
        if logger:
            logger.browser_opened(url)
    elif logger:
        logger.manual_open(url)
    else:
        print(f"Please manually open: {url}", file=sys.stderr)
    return opened
