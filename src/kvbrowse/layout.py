"""Screen layout shared by the state machine and the renderer."""

from __future__ import annotations

from dataclasses import dataclass

HEADER_HEIGHT = 1
FOOTER_HEIGHT = 1
PANEL_HEADER_LINES = 1
PANEL_GAP = 1  # vertical separator column
MIN_WIDTH = 20
MIN_HEIGHT = 5


@dataclass(frozen=True)
class Layout:
    width: int
    height: int
    body_height: int
    left_width: int
    right_width: int
    list_height: int
    content_height: int

    @property
    def too_small(self) -> bool:
        return self.width < MIN_WIDTH or self.height < MIN_HEIGHT


def _clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(v, hi))


def compute_layout(width: int, height: int) -> Layout:
    width = max(0, width)
    height = max(0, height)
    body = max(1, height - HEADER_HEIGHT - FOOTER_HEIGHT)

    min_left, min_right = 24, 20
    if width < min_left + min_right + PANEL_GAP:
        left = max(1, width // 2)
    else:
        left = _clamp(int(width * 0.38), min_left, width - min_right - PANEL_GAP)
    right = max(1, width - left - PANEL_GAP)

    inner = max(1, body - PANEL_HEADER_LINES)
    return Layout(
        width=width,
        height=height,
        body_height=body,
        left_width=left,
        right_width=right,
        list_height=inner,
        content_height=inner,
    )
