import logging
from collections import namedtuple

import numpy as np
from scipy.ndimage import map_coordinates

from .advection import advect
from .config import MAX_GRID_DIMENSION
from .diffusion import diffuse
from .errors import NonFiniteFieldError
from .fields import DTYPE, GridFields
from .forces import ForceInjector
from .palette import palette_time
from .projection import project
from .render import fade_density, render_display
from .vorticity import apply_vorticity, compute_vorticity

logger = logging.getLogger(__name__)

StepReport = namedtuple("StepReport", ["tick", "recovered"])

# Scale applied to the last interaction force when approximating the
# velocity under a particle.
LAST_INPUT_DAMPING = 0.01


class FluidSolver:
    """
    A 2D "Stable Fluids" solver on a collocated grid.

    Grid Layout:
    --------------------------------
    Every field is stored at cell centres in arrays of shape (height, width, ...)
    indexed [y, x]. The outer ring of cells is the boundary and is never updated
    by a stencil; see ``fields.py``.

    Solver Steps (one call to ``step``):
    1. Vorticity confinement (only when vorticity_strength > 0).
    2. Velocity diffusion (only when viscosity > 0), Jacobi iterations.
    3. Projection: divergence -> clear pressure -> Jacobi pressure solve ->
       subtract gradient.
    4. Velocity self-advection, semi-Lagrangian backtracing.
    5. Density diffusion (only when diffusion > 0).
    6. Density advection through the updated velocity.
    7. Density fade.
    8. Render the active display mode.

    Every stage finishes writing its output before the next one reads it.
    Stages that would otherwise read and write the same cells ping-pong between
    the two buffers of a FieldPair.
    """

    def __init__(self, width, height, max_dimension=MAX_GRID_DIMENSION):
        self.max_dimension = max_dimension
        self.fields = GridFields.allocate(width, height, max_dimension)
        self.injector = ForceInjector()
        self.tick_count = 0

    @property
    def width(self):
        return self.fields.width

    @property
    def height(self):
        return self.fields.height

    @property
    def display(self):
        return self.fields.display.current

    def reallocate(self, width, height):
        """
        Replace the field store with a fresh ``width x height`` one.

        The new store is built before the old one is dropped, so a failed
        allocation leaves the solver running on its previous grid.
        """
        fields = GridFields.allocate(width, height, self.max_dimension)
        self.fields = fields
        self.injector.reset()

    def reset(self):
        """Clear every field and forget the current gesture."""
        self.fields.clear_all()
        self.injector.reset()
        logger.info("Fluid fields reset (%dx%d)", self.width, self.height)

    # ---------------------------------------------------------------------
    # Interaction
    # ---------------------------------------------------------------------

    def to_grid(self, position, window_size):
        """Convert a window-space position into grid coordinates."""
        return np.array([
            position[0] / window_size[0] * self.width,
            position[1] / window_size[1] * self.height,
        ], dtype=DTYPE)

    def add_force(self, position, window_size, params):
        """
        Inject force and dye at a window-space position.

        The dye colour comes from the palette at the current tick, scaled by
        ``params.color_multiplier``.
        """
        grid_pos = self.to_grid(position, window_size)
        color = params.color_palette.get_color(palette_time(self.tick_count))
        color = color * DTYPE(params.color_multiplier)
        return self.injector.inject(self.fields, grid_pos, params.force_multiplier,
                                    color, params.force_radius, params.delta_time)

    def end_interaction(self):
        self.injector.end_interaction()

    # ---------------------------------------------------------------------
    # Time stepping
    # ---------------------------------------------------------------------

    def step(self, params):
        """
        Advance the simulation by one tick using the parameter snapshot ``params``.

        Returns:
            StepReport(tick, recovered). ``recovered`` is True when
            ``params.guard_non_finite`` caught NaN/inf and reset the fields.
        """
        f = self.fields
        dt = params.delta_time
        iters = params.solver_iterations

        if params.vorticity_strength > 0:
            compute_vorticity(f.velocity.current, f.vorticity.current)
            apply_vorticity(f.vorticity.current, f.velocity.current,
                            params.vorticity_strength, dt)

        if params.viscosity > 0:
            diffuse(f.velocity, params.viscosity, dt, iters)

        project(f, iters)

        advect(f.velocity.current, f.velocity.current, f.velocity.temp, dt)
        f.swap("velocity")

        if params.diffusion > 0:
            diffuse(f.density, params.diffusion, dt, iters)

        advect(f.velocity.current, f.density.current, f.density.temp, dt)
        f.swap("density")

        fade_density(f.density.current, params.fade_speed)

        render_display(f, params.display_mode, params.brightness)
        self.tick_count += 1

        recovered = False
        if params.guard_non_finite:
            bad = self.non_finite_fields()
            if bad:
                logger.warning("Non-finite values in %s at tick %d, resetting fields",
                               ", ".join(bad), self.tick_count)
                self.reset()
                render_display(f, params.display_mode, params.brightness)
                recovered = True

        logger.debug("tick %d done", self.tick_count)
        return StepReport(self.tick_count, recovered)

    def non_finite_fields(self):
        """Names of the fields whose current buffer holds NaN or inf."""
        return [name for name in ("velocity", "density", "pressure")
                if not np.isfinite(self.fields[name].current).all()]

    def check_finite(self, raise_on_error=False):
        bad = self.non_finite_fields()
        if bad and raise_on_error:
            raise NonFiniteFieldError(bad)
        return not bad

    # ---------------------------------------------------------------------
    # Velocity queries
    # ---------------------------------------------------------------------

    def velocity_at(self, normalized_positions, dt):
        """
        Bilinearly sample the velocity field at normalised positions.

        Args:
            normalized_positions: (n, 2) array of x, y in [0, 1].
            dt: timestep the velocity is integrated over.

        Returns:
            (n, 2) displacement per tick, in normalised units.
        """
        pts = np.asarray(normalized_positions, dtype=np.float64).reshape(-1, 2)
        w, h = self.width, self.height
        x = np.clip(pts[:, 0] * w, 0.0, w - 1)
        y = np.clip(pts[:, 1] * h, 0.0, h - 1)
        vel = self.fields.velocity.current
        out = np.empty_like(pts)
        for c in range(2):
            out[:, c] = map_coordinates(vel[..., c], [y, x], order=1, mode="nearest")
        out *= dt
        out[:, 0] /= w
        out[:, 1] /= h
        return out

    def approximate_velocity_at(self, normalized_positions):
        """Damped last interaction force, the same for every position."""
        pts = np.asarray(normalized_positions, dtype=np.float64).reshape(-1, 2)
        damped = self.injector.last_input_force.astype(np.float64) * LAST_INPUT_DAMPING
        return np.tile(damped, (len(pts), 1))
