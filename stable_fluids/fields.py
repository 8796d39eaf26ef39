"""
Grid Field Store.

All fields live on a collocated grid of ``height x width`` cells and are stored
as numpy arrays indexed ``[y, x]``:

- velocity    (h, w, 2)  x and y components
- density     (h, w, 4)  RGBA dye
- pressure    (h, w)
- divergence  (h, w)
- vorticity   (h, w)
- display     (h, w, 4)  RGBA output

Every field is a FieldPair: a ``current`` buffer and a ``temp`` buffer. Stages
that cannot update in place write into ``temp`` and then swap the pair, which
exchanges the two references and never copies data.

Cells on the outer ring (x in {0, w-1} or y in {0, h-1}) are boundary cells.
Stencil stages only update the interior ``[1:-1, 1:-1]``.
"""

import logging

import numpy as np

from .config import MAX_GRID_DIMENSION
from .errors import AllocationError

logger = logging.getLogger(__name__)

FIELD_CHANNELS = {
    "velocity": 2,
    "density": 4,
    "pressure": None,
    "divergence": None,
    "vorticity": None,
    "display": 4,
}

DTYPE = np.float32


class FieldPair:
    """Two same-shaped buffers for ping-pong updates."""

    __slots__ = ("current", "temp")

    def __init__(self, shape, dtype=DTYPE):
        self.current = np.zeros(shape, dtype=dtype)
        self.temp = np.zeros(shape, dtype=dtype)

    @property
    def shape(self):
        return self.current.shape

    def swap(self):
        self.current, self.temp = self.temp, self.current

    def clear(self):
        self.current.fill(0.0)
        self.temp.fill(0.0)


class GridFields:
    """
    Owns every simulation field for one grid resolution.

    Use ``GridFields.allocate`` to build one; a resolution change builds a new
    store rather than resizing this one.
    """

    def __init__(self, width, height, pairs):
        self.width = width
        self.height = height
        self._pairs = pairs

    @classmethod
    def allocate(cls, width, height, max_dimension=MAX_GRID_DIMENSION):
        """
        Allocate zero-initialised fields for a ``width x height`` grid.

        Raises:
            AllocationError: if a dimension is not a positive integer, is larger
                than ``max_dimension``, or memory cannot be obtained.
        """
        for dim in (width, height):
            if isinstance(dim, bool) or not isinstance(dim, (int, np.integer)):
                raise AllocationError(width, height, "dimensions must be integers")
        if width <= 0 or height <= 0:
            raise AllocationError(width, height, "dimensions must be positive")
        if width > max_dimension or height > max_dimension:
            raise AllocationError(
                width, height, f"exceeds backend capacity of {max_dimension}")

        width, height = int(width), int(height)
        try:
            pairs = {}
            for name, channels in FIELD_CHANNELS.items():
                shape = (height, width) if channels is None else (height, width, channels)
                pairs[name] = FieldPair(shape)
        except MemoryError as exc:
            raise AllocationError(width, height, "out of memory") from exc

        logger.info("Allocated %dx%d grid fields", width, height)
        return cls(width, height, pairs)

    @property
    def shape(self):
        return (self.height, self.width)

    def __getitem__(self, name):
        return self._pairs[name]

    def __iter__(self):
        return iter(self._pairs)

    @property
    def velocity(self):
        return self._pairs["velocity"]

    @property
    def density(self):
        return self._pairs["density"]

    @property
    def pressure(self):
        return self._pairs["pressure"]

    @property
    def divergence(self):
        return self._pairs["divergence"]

    @property
    def vorticity(self):
        return self._pairs["vorticity"]

    @property
    def display(self):
        return self._pairs["display"]

    def swap(self, name):
        self._pairs[name].swap()

    def clear(self, name):
        self._pairs[name].clear()

    def clear_all(self):
        for pair in self._pairs.values():
            pair.clear()


# ---------------------------------------------------------------------------
# Stencil helpers
# ---------------------------------------------------------------------------

def interior(a):
    """View of the interior cells of a grid array."""
    return a[1:-1, 1:-1]


def neighbors(a):
    """(left, right, top, bottom) views aligned with ``interior(a)``."""
    return a[1:-1, :-2], a[1:-1, 2:], a[:-2, 1:-1], a[2:, 1:-1]


def copy_boundary(src, dst):
    """Copy the outer ring of cells from src to dst."""
    dst[0] = src[0]
    dst[-1] = src[-1]
    dst[:, 0] = src[:, 0]
    dst[:, -1] = src[:, -1]


def zero_boundary(a):
    a[0] = 0.0
    a[-1] = 0.0
    a[:, 0] = 0.0
    a[:, -1] = 0.0
