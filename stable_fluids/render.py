"""
Density decay and display rendering.

Each display mode maps one source field into the RGBA float display buffer.
"""

import numpy as np

from .config import DisplayMode

VELOCITY_SCALE = 1.0
SPEED_SCALE = 25.0
VORTICITY_BRIGHTNESS = 10.0


def fade_density(density, rate):
    """density *= (1 - rate), clamped at zero, in place."""
    density *= 1.0 - rate
    np.maximum(density, 0.0, out=density)


def render_density(source, display, brightness):
    """
    rgb = source * brightness, alpha = 1.

    A scalar source is treated as the red channel of an otherwise black colour.
    """
    display.fill(0.0)
    if source.ndim == 2:
        display[..., 0] = source * brightness
    else:
        display[..., :3] = source[..., :3] * brightness
    display[..., 3] = 1.0


def render_velocity(velocity, display, scale=VELOCITY_SCALE):
    """Signed components centred on 0.5 in red/green, speed in blue."""
    speed = np.hypot(velocity[..., 0], velocity[..., 1])
    display[..., 0] = velocity[..., 0] * scale + 0.5
    display[..., 1] = velocity[..., 1] * scale + 0.5
    display[..., 2] = speed * scale
    display[..., 3] = 1.0


def render_speed(velocity, display, scale=SPEED_SCALE):
    speed = np.hypot(velocity[..., 0], velocity[..., 1]) * scale
    display[..., 0] = speed
    display[..., 1] = speed
    display[..., 2] = speed
    display[..., 3] = 1.0


def render_display(fields, mode, brightness):
    """Render ``mode`` into ``fields.display.current``."""
    display = fields.display.current
    mode = DisplayMode(mode)
    if mode is DisplayMode.DENSITY:
        render_density(fields.density.current, display, brightness)
    elif mode is DisplayMode.VELOCITY:
        render_velocity(fields.velocity.current, display)
    elif mode is DisplayMode.SPEED:
        render_speed(fields.velocity.current, display)
    elif mode is DisplayMode.VORTICITY:
        render_density(fields.vorticity.current, display, VORTICITY_BRIGHTNESS)
    else:
        display.fill(0.0)
    return display


def to_rgba8(display):
    """Clip a float RGBA buffer to [0, 1] and convert it to uint8 pixels."""
    return (np.clip(display, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
