"""
Vorticity Confinement.

Numerical diffusion in the advection step smears out small vortices. The
confinement force pushes velocity around each vortex core to put some of that
rotational energy back.
"""

import numpy as np

from .fields import interior, neighbors, zero_boundary

EPSILON = 1e-5


def compute_vorticity(velocity, out):
    """curl = (bottom.x - top.x) - (right.y - left.y), zero on the boundary."""
    left, right, top, bottom = neighbors(velocity)
    interior(out)[...] = (bottom[..., 0] - top[..., 0]) - (right[..., 1] - left[..., 1])
    zero_boundary(out)


def apply_vorticity(vorticity, velocity, strength, dt):
    """
    Add the confinement force to the interior of ``velocity`` in place.

    N is the normalised gradient of |curl|; the force is
    ``strength * curl * (N.y, -N.x)``.
    """
    mag = np.abs(vorticity)
    left, right, top, bottom = neighbors(mag)
    grad_x = right - left
    grad_y = bottom - top
    length = np.sqrt(grad_x * grad_x + grad_y * grad_y) + EPSILON
    nx = grad_x / length
    ny = grad_y / length

    curl = interior(vorticity)
    v = interior(velocity)
    v[..., 0] += strength * curl * ny * dt
    v[..., 1] += strength * curl * -nx * dt
