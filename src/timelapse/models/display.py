from dataclasses import dataclass


@dataclass(frozen=True)
class WindowRect:
    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> tuple[int, int]:
        return self.x + self.width // 2, self.y + self.height // 2


@dataclass(frozen=True)
class Display:
    id: int
    x: int
    y: int
    width: int
    height: int

    def contains(self, px: int, py: int) -> bool:
        """Check if a point is within display bounds (right/bottom edges excluded)"""
        return (self.x <= px < self.x + self.width and
                self.y <= py < self.y + self.height)

    def to_monitor_dict(self) -> dict:
        return {
            "left": self.x, "top": self.y, "width": self.width, "height": self.height
        }
