"""
In-memory capture collaborators so tests need no real display, cursor or ffmpeg.
"""
import io
from typing import List, Optional

from PIL import Image

from timelapse.models.display import Display, WindowRect
from timelapse.workers.screenshot import CaptureSource, WindowLocator

PRIMARY = Display(id=0, x=0, y=0, width=1920, height=1080)
SECONDARY = Display(id=1, x=1920, y=0, width=1280, height=1024)


def png_bytes(size=(320, 200), color=(200, 120, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new('RGB', size, color).save(buf, format='PNG')
    return buf.getvalue()


class FakeWindowLocator(WindowLocator):
    def __init__(self, window: Optional[WindowRect] = None):
        self.window = window

    def focused_window(self) -> Optional[WindowRect]:
        return self.window


class FakeCaptureSource(CaptureSource):
    """
    Serves queued capture results in order, repeating the last one.

    A queued exception is raised instead of returned.
    """

    def __init__(self, results: List, displays: Optional[List[Display]] = None):
        self.results = list(results)
        self._displays = [PRIMARY, SECONDARY] if displays is None else displays
        self.captured_from: List[Display] = []

    def displays(self) -> List[Display]:
        return list(self._displays)

    def capture(self, display: Display) -> bytes:
        self.captured_from.append(display)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result
