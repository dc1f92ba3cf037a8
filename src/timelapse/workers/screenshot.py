from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import mss
import mss.tools
from screeninfo import get_monitors

from timelapse.errors import CaptureError
from timelapse.models.display import Display, WindowRect


def window_overlaps_display(window: WindowRect, display: Display) -> bool:
    """True if the window's center point lies on the display."""
    cx, cy = window.center
    return display.contains(cx, cy)


def select_display(window: Optional[WindowRect], displays: Sequence[Display]) -> Display:
    """
    Return the display that contains the focused window's center.

    Falls back to the display containing (0, 0), the primary display, when
    the window is off-screen or unknown.
    """
    if not displays:
        raise CaptureError("no displays available")

    if window is not None:
        for display in displays:
            if window_overlaps_display(window, display):
                return display

    for display in displays:
        if display.contains(0, 0):
            return display

    raise CaptureError("no display contains the focused window or the origin")


class WindowLocator(ABC):
    @abstractmethod
    def focused_window(self) -> Optional[WindowRect]:
        pass


class CaptureSource(ABC):
    @abstractmethod
    def displays(self) -> List[Display]:
        pass

    @abstractmethod
    def capture(self, display: Display) -> bytes:
        pass


class CursorWindowLocator(WindowLocator):
    """
    Treats the mouse cursor as the focus point.

    The cursor is reported as a zero-size window at its position, so the
    window-center rule in ``select_display`` picks the display under the
    cursor. A platform locator returning real window bounds can replace it.
    """

    def __init__(self):
        self.mouse_controller = None

    def focused_window(self) -> Optional[WindowRect]:
        try:
            if self.mouse_controller is None:
                # pynput binds to the display server on import
                from pynput import mouse
                self.mouse_controller = mouse.Controller()
            position = self.mouse_controller.position
        except Exception as e:
            raise CaptureError(f"cursor position unavailable: {e}") from e

        if position is None:
            return None
        x, y = position
        return WindowRect(int(x), int(y), 0, 0)


class MssCaptureSource(CaptureSource):
    """Enumerates displays with screeninfo and grabs them with mss as PNG bytes."""

    def __init__(self, with_cursor: bool = False):
        self.with_cursor = with_cursor

    def displays(self) -> List[Display]:
        try:
            monitors = get_monitors()
        except Exception as e:
            raise CaptureError(f"display enumeration failed: {e}") from e

        return [
            Display(id=idx, x=m.x, y=m.y, width=m.width, height=m.height)
            for idx, m in enumerate(monitors)
        ]

    def capture(self, display: Display) -> bytes:
        # mss handles are not shareable across threads, open one per grab
        try:
            with mss.mss(with_cursor=self.with_cursor) as sct:
                screenshot = sct.grab(display.to_monitor_dict())
                return mss.tools.to_png(screenshot.rgb, screenshot.size)
        except Exception as e:
            raise CaptureError(f"grab of display {display.id} failed: {e}") from e
