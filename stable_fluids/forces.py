"""
Force Injector.

Turns an interaction sample into a localized impulse on velocity and density.
The impulse is a Gaussian splat with a hard cutoff at ``radius``.
"""

import numpy as np

from .fields import DTYPE


def apply_force(velocity, density, position, force, color, radius, dt):
    """
    Splat a force and a colour around ``position`` (grid coordinates, x then y).

    Every cell whose centre lies strictly closer than ``radius`` to
    ``position`` receives::

        influence = exp(-dist^2 / (2 * radius^2))
        velocity += force * influence * dt
        density  += color * influence * dt

    Cells at or beyond ``radius`` are not written at all.
    """
    h, w = velocity.shape[:2]
    px, py = float(position[0]), float(position[1])
    radius = float(radius)
    if radius <= 0.0:
        return

    # Only the bounding box of the disc can be affected
    x0 = max(int(np.floor(px - radius)), 0)
    x1 = min(int(np.ceil(px + radius)) + 1, w)
    y0 = max(int(np.floor(py - radius)), 0)
    y1 = min(int(np.ceil(py + radius)) + 1, h)
    if x0 >= x1 or y0 >= y1:
        return

    ys, xs = np.mgrid[y0:y1, x0:x1]
    dist2 = (xs - px) ** 2 + (ys - py) ** 2
    inside = dist2 < radius * radius
    influence = np.exp(-dist2[inside] / (2.0 * radius * radius)).astype(DTYPE)

    force = np.asarray(force, dtype=DTYPE) * DTYPE(dt)
    color = np.asarray(color, dtype=DTYPE) * DTYPE(dt)

    vel_box = velocity[y0:y1, x0:x1]
    dens_box = density[y0:y1, x0:x1]
    vel_box[inside] += influence[:, None] * force
    dens_box[inside] += influence[:, None] * color


class ForceInjector:
    """
    Remembers the previous sample of a gesture so consecutive samples turn
    pointer motion into force.
    """

    def __init__(self):
        self.previous_position = None
        # Force of the last moving sample, used by the approximate particle velocity query
        self.last_input_force = np.zeros(2, dtype=DTYPE)

    def inject(self, fields, position, force_multiplier, color, radius, dt):
        """
        Apply one interaction sample at ``position`` (grid coordinates).

        The first sample of a gesture has no previous position and injects
        colour with zero force.

        Returns:
            The force vector that was applied.
        """
        position = np.asarray(position, dtype=DTYPE)
        if self.previous_position is None:
            force = np.zeros(2, dtype=DTYPE)
        else:
            force = (position - self.previous_position) * DTYPE(force_multiplier)
            self.last_input_force = force

        apply_force(fields.velocity.current, fields.density.current,
                    position, force, color, radius, dt)
        self.previous_position = position
        return force

    def end_interaction(self):
        self.previous_position = None

    def reset(self):
        self.previous_position = None
        self.last_input_force = np.zeros(2, dtype=DTYPE)
