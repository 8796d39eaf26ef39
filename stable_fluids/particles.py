"""
Particle Tracer System.

Particles live in window (viewport) space and visualise the flow: each tick
they are pulled by the fluid velocity under them, coast on their own momentum,
fade and eventually die.

Storage is structure-of-arrays with a fixed capacity. Live particles occupy
slots ``[0, count)`` in spawn order, oldest first, so evicting the oldest
particles and compacting dead ones both preserve the relative order of the
survivors.
"""

import logging
from collections import namedtuple

import numpy as np

from .config import ParticleParams

logger = logging.getLogger(__name__)

LIFE_DECAY = 0.999   # per-tick life multiplier
MIN_LIFE = 0.01      # particles below this are removed
VISCOSITY_LINK_SCALE = 0.01


class ParticleVertices(namedtuple("ParticleVertices", ["segments", "alpha"])):
    """
    Line-segment vertex stream for one frame.

    segments: (n, 2, 2) array, for each particle its tail and head point.
    alpha:    (n,) array, opacity of each segment.
    """

    __slots__ = ()

    def __len__(self):
        return len(self.alpha)

    def interleaved(self):
        """(2n, 3) array of x, y, alpha rows ready for a line-list draw call."""
        n = len(self.alpha)
        out = np.empty((2 * n, 3), dtype=np.float32)
        out[:, :2] = self.segments.reshape(2 * n, 2)
        out[:, 2] = np.repeat(self.alpha, 2)
        return out


class ParticleSystem:

    def __init__(self, params=None, rng=None):
        self.params = params if params is not None else ParticleParams()
        self.rng = rng if rng is not None else np.random.default_rng()
        self._next_id = 0
        self._allocate(self.params.capacity)

    def _allocate(self, capacity):
        self._position = np.zeros((capacity, 2))
        self._velocity = np.zeros((capacity, 2))
        self._color = np.zeros((capacity, 4))
        self._life = np.zeros(capacity)
        self._mass = np.zeros(capacity)
        self._age = np.zeros(capacity)
        self._ids = np.zeros(capacity, dtype=np.int64)
        self.count = 0

    def _arrays(self):
        return (self._position, self._velocity, self._color, self._life,
                self._mass, self._age, self._ids)

    @property
    def capacity(self):
        return len(self._life)

    def __len__(self):
        return self.count

    # Views over the live particles, oldest first
    @property
    def positions(self):
        return self._position[:self.count]

    @property
    def velocities(self):
        return self._velocity[:self.count]

    @property
    def colors(self):
        return self._color[:self.count]

    @property
    def life(self):
        return self._life[:self.count]

    @property
    def mass(self):
        return self._mass[:self.count]

    @property
    def age(self):
        return self._age[:self.count]

    @property
    def ids(self):
        return self._ids[:self.count]

    def set_params(self, params):
        """Swap in new parameters; a smaller capacity keeps the newest particles."""
        if params.capacity != self.capacity:
            old = [a[:self.count] for a in self._arrays()]
            keep = min(self.count, params.capacity)
            self._allocate(params.capacity)
            for dst, src in zip(self._arrays(), old):
                dst[:keep] = src[len(src) - keep:]
            self.count = keep
        self.params = params

    # ---------------------------------------------------------------------
    # Creation and removal
    # ---------------------------------------------------------------------

    def _evict_oldest(self, n):
        n = min(n, self.count)
        if n <= 0:
            return
        remaining = self.count - n
        for a in self._arrays():
            a[:remaining] = a[n:self.count]
        self.count = remaining

    def _append(self, position, velocity, color, life, mass, age):
        k = len(life)
        cap = self.capacity
        if k > cap:
            # The head of an oversized batch would be evicted by its own tail
            position, velocity, color = position[-cap:], velocity[-cap:], color[-cap:]
            life, mass, age = life[-cap:], mass[-cap:], age[-cap:]
            self._next_id += k - cap
            k = cap

        overflow = self.count + k - cap
        if overflow > 0:
            self._evict_oldest(overflow)

        start, end = self.count, self.count + k
        self._position[start:end] = position
        self._velocity[start:end] = velocity
        self._color[start:end] = color
        self._life[start:end] = life
        self._mass[start:end] = mass
        self._age[start:end] = age
        self._ids[start:end] = np.arange(self._next_id, self._next_id + k)
        self._next_id += k
        self.count = end
        return self._ids[start:end].copy()

    def insert(self, position, velocity=(0.0, 0.0), color=(1.0, 1.0, 1.0, 1.0),
               life=1.0, mass=1.0, age=0.0):
        """Add a single fully specified particle; returns its id."""
        ids = self._append(
            np.asarray(position, dtype=np.float64).reshape(1, 2),
            np.asarray(velocity, dtype=np.float64).reshape(1, 2),
            np.asarray(color, dtype=np.float64).reshape(1, 4),
            np.array([life], dtype=np.float64),
            np.array([mass], dtype=np.float64),
            np.array([age], dtype=np.float64),
        )
        return int(ids[0])

    def spawn(self, position, count=None, spawn_radius=None):
        """
        Spawn ``count`` particles scattered around ``position`` (window space).

        Offsets are uniform in [-spawn_radius, spawn_radius] on each axis,
        alpha ~ U(0.3, 1) doubles as the starting life, mass ~ U(0.1, 1).
        When the pool is full the oldest particles are evicted.

        Returns:
            ids of the spawned particles (empty when the system is disabled).
        """
        p = self.params
        if not p.is_enabled:
            return np.zeros(0, dtype=np.int64)
        count = p.spawn_count if count is None else int(count)
        radius = p.spawn_radius if spawn_radius is None else spawn_radius
        if count <= 0:
            return np.zeros(0, dtype=np.int64)

        offsets = self.rng.uniform(-radius, radius, size=(count, 2))
        alpha = self.rng.uniform(0.3, 1.0, size=count)
        mass = self.rng.uniform(0.1, 1.0, size=count)
        color = np.ones((count, 4))
        color[:, 3] = alpha

        return self._append(
            np.asarray(position, dtype=np.float64) + offsets,
            np.zeros((count, 2)),
            color,
            alpha,
            mass,
            np.zeros(count),
        )

    def reset(self):
        self.count = 0

    # ---------------------------------------------------------------------
    # Integration
    # ---------------------------------------------------------------------

    def fluid_force(self, viscosity):
        p = self.params
        if p.link_to_viscosity:
            return 0.1 + (viscosity / VISCOSITY_LINK_SCALE) * 0.9
        return p.fluid_force

    def update(self, sampler, viewport, viscosity=0.0):
        """
        Advance every particle by one frame.

        Args:
            sampler: callable mapping (n, 2) normalised positions to (n, 2)
                normalised fluid displacement per frame.
            viewport: (width, height) of the window space particles live in.
            viscosity: current fluid viscosity, used when
                ``link_to_viscosity`` is set.

        Velocity is replaced each tick by a blend of fluid pull and carried
        momentum; it is not integrated as an acceleration.
        """
        p = self.params
        n = self.count
        if not p.is_enabled or n == 0:
            return

        viewport = np.asarray(viewport, dtype=np.float64)
        pos = self._position[:n]
        vel = self._velocity[:n]
        life = self._life[:n]
        age = self._age[:n]

        fluid_vel = np.asarray(sampler(pos / viewport), dtype=np.float64).reshape(n, 2)

        age_decay = np.maximum(0.0, 1.0 - age * p.fluid_decay_rate)
        pull = self._mass[:n] * self.fluid_force(viscosity) * age_decay
        fluid_contribution = fluid_vel * pull[:, None] * viewport
        momentum = p.momentum + (1.0 - p.momentum) * np.minimum(1.0, age * 2.0)

        vel[:] = fluid_contribution + vel * momentum[:, None]
        pos += vel
        age += p.frame_seconds

        m = p.margin
        outside = ((pos[:, 0] < -m) | (pos[:, 0] > viewport[0] + m) |
                   (pos[:, 1] < -m) | (pos[:, 1] > viewport[1] + m))
        life[outside] = 0.0
        life *= LIFE_DECAY

        alive = life >= MIN_LIFE
        if not alive.all():
            survivors = int(alive.sum())
            for a in self._arrays():
                a[:survivors] = a[:n][alive]
            self.count = survivors
        logger.debug("%d particles alive", self.count)

    def render(self):
        """Current vertex stream, one segment per live particle, oldest first."""
        pos = self.positions
        tail = pos - self.velocities * self.params.particle_size
        return ParticleVertices(np.stack([tail, pos], axis=1), self.life.copy())
