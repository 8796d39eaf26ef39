"""
Colour palettes for injected dye.

Every palette maps a time value in [0, 1) to an RGBA colour with alpha 1. The
time value wraps, so callers can feed a cycling counter straight in.
"""

import colorsys
import math
from enum import Enum

import numpy as np

PALETTE_PERIOD = 360  # ticks per full colour cycle


def palette_time(tick):
    """Map a monotonic tick counter onto the palette's [0, 1) time axis."""
    return (tick % PALETTE_PERIOD) / PALETTE_PERIOD


def _waves(t, base, amp, phase):
    p = t * 2.0 * math.pi
    return tuple(b + a * math.sin(p + ph) for b, a, ph in zip(base, amp, phase))


class ColorPalette(str, Enum):
    RAINBOW = "rainbow"
    OCEAN = "ocean"
    FIRE = "fire"
    PLASMA = "plasma"
    NEON = "neon"
    SUNSET = "sunset"
    VAPOR = "vapor"
    GREYSCALE = "greyscale"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown colour palette: {value!r}") from None

    def get_color(self, t):
        """RGBA colour (float32 array of 4) for time ``t``."""
        t = t % 1.0
        if self is ColorPalette.RAINBOW:
            rgb = colorsys.hsv_to_rgb(t, 1.0, 1.0)
        elif self is ColorPalette.OCEAN:
            rgb = _waves(t, (0.2, 0.5, 0.8), (0.3, 0.4, 0.2), (0.0, math.pi / 3, 0.0))
        elif self is ColorPalette.FIRE:
            rgb = (1.0, min(1.0, t * 2.0), max(0.0, (t - 0.5) * 2.0))
        elif self is ColorPalette.PLASMA:
            rgb = _waves(t, (0.5, 0.3, 0.8), (0.5, 0.5, 0.2),
                         (0.0, 2 * math.pi / 3, 4 * math.pi / 3))
        elif self is ColorPalette.NEON:
            rgb = colorsys.hsv_to_rgb((t * 1.5) % 1.0, 1.0, 1.0)
        elif self is ColorPalette.SUNSET:
            rgb = _waves(t, (0.9, 0.3, 0.4), (0.1, 0.4, 0.6), (0.0, math.pi / 2, math.pi))
        elif self is ColorPalette.VAPOR:
            rgb = _waves(t, (0.7, 0.3, 0.9), (0.3, 0.3, 0.1), (0.0, math.pi / 2, math.pi))
        else:
            grey = 0.5 + 0.5 * math.sin(t * 2.0 * math.pi)
            rgb = (grey, grey, grey)
        return np.array((*rgb, 1.0), dtype=np.float32)
