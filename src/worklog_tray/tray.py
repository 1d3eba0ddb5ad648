"""
System tray icon.

Show / Hide drive the PresentationBridge, "Send test notification" goes
through the same dispatch path as the daily reminder, and the icon's
balloon is the system notification used when no window is visible.
"""

import logging
from typing import Callable, Optional

import pystray
from PIL import Image, ImageDraw

from .commands import Commands
from .errors import PresentationUnavailable

logger = logging.getLogger(__name__)

APP_NAME = "Jira Worklog"


def make_icon_image(size: int = 64, color: str = "#2684FF") -> Image.Image:
    """Blue rounded square with a clock hand."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    margin = size // 8
    draw.rounded_rectangle((margin, margin, size - margin, size - margin), radius=size // 6, fill=color)
    center = size // 2
    draw.ellipse((center - size // 4, center - size // 4, center + size // 4, center + size // 4),
                 outline="white", width=max(2, size // 16))
    draw.line((center, center, center, center - size // 6), fill="white", width=max(2, size // 16))
    draw.line((center, center, center + size // 8, center), fill="white", width=max(2, size // 16))
    return image


class TrayNotifier:
    """Posts notifications through the tray icon balloon."""

    def __init__(self, icon: pystray.Icon):
        self._icon = icon

    def notify(self, title: str, message: str) -> None:
        self._icon.notify(message, title)


class TrayApp:
    def __init__(self, commands: Commands, on_quit: Optional[Callable[[], None]] = None):
        self.commands = commands
        self._on_quit = on_quit
        self.icon = pystray.Icon(
            name="worklog-tray",
            icon=make_icon_image(),
            title=APP_NAME,
            menu=self._build_menu(),
        )

    def _build_menu(self) -> pystray.Menu:
        return pystray.Menu(
            pystray.MenuItem("Show", self._on_show, default=True),
            pystray.MenuItem("Hide", self._on_hide),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Send test notification", self._on_test_notification),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", self._on_quit_clicked),
        )

    def _on_show(self, icon=None, item=None):
        try:
            self.commands.show_window()
        except PresentationUnavailable:
            self.icon.notify("Open the worklog window to log your time.", APP_NAME)

    def _on_hide(self, icon=None, item=None):
        try:
            self.commands.hide_to_tray()
        except PresentationUnavailable:
            logger.info("Hide requested but no window is attached")

    def _on_test_notification(self, icon=None, item=None):
        self.commands.send_test_notification()

    def _on_quit_clicked(self, icon=None, item=None):
        logger.info("Quit requested from tray")
        if self._on_quit:
            self._on_quit()
        self.icon.stop()

    def run(self, setup: Optional[Callable[[pystray.Icon], None]] = None):
        """Blocks on the tray message loop; call from the main thread."""
        self.commands.bridge.set_notifier(TrayNotifier(self.icon))

        def _setup(icon: pystray.Icon):
            icon.visible = True
            if setup:
                setup(icon)

        self.icon.run(setup=_setup)
