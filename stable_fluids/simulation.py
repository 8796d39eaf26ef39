"""
Simulation facade: the grid solver and the particle tracers behind one
tick-driven interface.

An external cadence driver (a render loop, a timer, a test) calls ``tick()``
once per frame. Interaction arrives as window-space positions together with
the window size they were measured in.
"""

import logging
from collections import namedtuple

from .config import DEFAULT_RESOLUTION, MAX_GRID_DIMENSION, MIN_SCALED_DIMENSION, FluidParams
from .errors import AllocationError
from .particles import ParticleSystem
from .presets import FluidPreset, get_preset
from .solver import FluidSolver

logger = logging.getLogger(__name__)

Frame = namedtuple("Frame", ["display", "particles", "tick", "recovered"])


class Simulation:
    """
    Couples a FluidSolver with a ParticleSystem.

    Args:
        width, height: requested grid resolution (height defaults to width).
        params: FluidParams snapshot; replaced wholesale on every change.
        particle_params: ParticleParams for the tracer layer.
        viewport: (width, height) of the window space; defaults to the grid size.
        rng: numpy Generator used for particle spawn jitter.
    """

    def __init__(self, width=DEFAULT_RESOLUTION, height=None, params=None,
                 particle_params=None, viewport=None, rng=None,
                 max_dimension=MAX_GRID_DIMENSION):
        height = width if height is None else height
        self.params = params if params is not None else FluidParams()
        self.solver = FluidSolver(width, height, max_dimension)
        self.particles = ParticleSystem(particle_params, rng)
        self.viewport = tuple(viewport) if viewport is not None else (float(width), float(height))
        self.resolution = (width, height)
        self.resolution_scale = 1
        self.last_good_resolution = (width, height)
        self._particle_vertices = self.particles.render()

    # ---------------------------------------------------------------------
    # Configuration
    # ---------------------------------------------------------------------

    @property
    def particle_params(self):
        return self.particles.params

    @particle_params.setter
    def particle_params(self, params):
        self.particles.set_params(params)

    def update_params(self, **changes):
        """Replace the fluid parameter snapshot with some fields changed."""
        self.params = self.params.replace(**changes)
        return self.params

    def update_particle_params(self, **changes):
        self.particle_params = self.particle_params.replace(**changes)
        return self.particle_params

    def apply_preset(self, preset, adopt_resolution=False):
        """
        Assign a preset's numeric parameters.

        The grid is only reallocated when ``adopt_resolution`` is set and the
        preset's resolution differs from the current one.
        """
        if not isinstance(preset, FluidPreset):
            preset = get_preset(preset)
        self.params = preset.apply_to(self.params)
        if adopt_resolution:
            size = preset.grid_resolution
            if (size, size) != self.last_good_resolution:
                self.set_resolution(size, size)
        return self.params

    # ---------------------------------------------------------------------
    # Grid management
    # ---------------------------------------------------------------------

    @property
    def grid_size(self):
        return (self.solver.width, self.solver.height)

    def _scaled(self, width, height, scale):
        if scale <= 1:
            return width, height
        return (max(MIN_SCALED_DIMENSION, width // scale),
                max(MIN_SCALED_DIMENSION, height // scale))

    def _reallocate(self, width, height, scale):
        self.resolution = (width, height)
        grid_w, grid_h = self._scaled(width, height, scale)
        try:
            self.solver.reallocate(grid_w, grid_h)
        except AllocationError:
            logger.error("Could not allocate %dx%d grid, keeping %dx%d",
                         grid_w, grid_h, self.solver.width, self.solver.height)
            raise
        self.resolution_scale = scale
        self.last_good_resolution = (width, height)
        logger.info("Resolution set to %dx%d (grid %dx%d)", width, height, grid_w, grid_h)

    def set_resolution(self, width, height=None):
        """
        Reallocate the grid for a new resolution and clear every field.

        ``resolution`` records the request; ``last_good_resolution`` only moves
        when the allocation succeeds.

        Raises:
            AllocationError: the new grid could not be allocated; the previous
                grid and its contents are kept.
        """
        height = width if height is None else height
        self._reallocate(width, height, self.resolution_scale)

    def set_resolution_scale(self, scale):
        """Run the solver at ``last_good_resolution // scale`` (never below 32 cells)."""
        if isinstance(scale, bool) or not isinstance(scale, int) or scale < 1:
            raise ValueError(f"resolution scale must be a positive integer, got {scale!r}")
        if scale == self.resolution_scale:
            return
        width, height = self.last_good_resolution
        if self._scaled(width, height, scale) == self.grid_size:
            self.resolution_scale = scale
            return
        self._reallocate(width, height, scale)

    # ---------------------------------------------------------------------
    # External operations
    # ---------------------------------------------------------------------

    def add_force(self, position, window_size):
        self.viewport = tuple(window_size)
        return self.solver.add_force(position, window_size, self.params)

    def end_interaction(self):
        self.solver.end_interaction()

    def add_particles(self, position, count=None, window_size=None):
        if window_size is not None:
            self.viewport = tuple(window_size)
        return self.particles.spawn(position, count)

    def reset(self):
        self.solver.reset()
        self.particles.reset()
        self._particle_vertices = self.particles.render()

    def velocity_at(self, normalized_positions):
        """Per-cell velocity query in normalised units per tick."""
        return self.solver.velocity_at(normalized_positions, self.params.delta_time)

    def _sampler(self, params):
        if self.particles.params.velocity_sampling == "last_input":
            return self.solver.approximate_velocity_at
        return lambda pts: self.solver.velocity_at(pts, params.delta_time)

    def tick(self):
        """
        Advance one frame: fluid stages first, then the particle tracers
        against the settled velocity field.
        """
        params = self.params
        report = self.solver.step(params)
        self.particles.update(self._sampler(params), self.viewport, params.viscosity)
        self._particle_vertices = self.particles.render()
        return Frame(self.solver.display, self._particle_vertices, report.tick, report.recovered)

    @property
    def display(self):
        return self.solver.display

    @property
    def particle_vertices(self):
        return self._particle_vertices
