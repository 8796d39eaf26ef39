"""
Simulation parameters.

Parameters are passed to the solver as immutable snapshots, one per tick, so a
UI can mutate its own copy freely without touching a tick in progress.

Ranges below are the documented operating ranges. The solver never clamps
them itself; a caller that wants range enforcement uses ``clamped()``.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum

from .palette import ColorPalette

# --- Grid defaults ---
DEFAULT_RESOLUTION = 512
MAX_GRID_DIMENSION = 4096    # largest width/height the array backend accepts
MIN_SCALED_DIMENSION = 32    # floor when rendering at a reduced internal resolution


class DisplayMode(str, Enum):
    """Which field is written to the display buffer."""

    DENSITY = "density"
    VELOCITY = "velocity"
    SPEED = "speed"
    VORTICITY = "vorticity"
    PARTICLES_ONLY = "particles_only"

    @property
    def label(self):
        return _DISPLAY_LABELS[self]

    @classmethod
    def parse(cls, value):
        """Accept a member, its value ('speed') or its label ('Motion')."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for mode in cls:
            if text in (mode.value, mode.label.lower(), mode.name.lower()):
                return mode
        raise ValueError(f"unknown display mode: {value!r}")


_DISPLAY_LABELS = {
    DisplayMode.DENSITY: "Color",
    DisplayMode.VELOCITY: "Motion",
    DisplayMode.SPEED: "Speed",
    DisplayMode.VORTICITY: "Vorticity",
    DisplayMode.PARTICLES_ONLY: "Particles Only",
}


FLUID_RANGES = {
    "viscosity": (0.0, 0.01),
    "diffusion": (0.0, 0.0003),
    "delta_time": (0.1, 5.0),
    "vorticity_strength": (0.0, 50.0),
    "fade_speed": (0.0, 0.1),
    "solver_iterations": (1, 50),
    "force_multiplier": (0.0, 100.0),
    "color_multiplier": (0.0, 100.0),
    "brightness": (0.0, 2.0),
    "force_radius": (0.5, 50.0),
}

PARTICLE_RANGES = {
    "momentum": (0.0, 1.0),
    "fluid_force": (0.0, 1.0),
    "spawn_count": (1, 50),
    "spawn_radius": (0.0, 30.0),
    "fluid_decay_rate": (0.5, 10.0),
    "particle_size": (0.1, 5.0),
}


def clamp(x, lo, hi):
    return lo if x < lo else hi if x > hi else x


def _clamped(params, ranges):
    changes = {}
    for name, (lo, hi) in ranges.items():
        value = getattr(params, name)
        changes[name] = type(lo)(clamp(value, lo, hi))
    return dataclasses.replace(params, **changes)


@dataclass(frozen=True)
class FluidParams:
    """Per-tick snapshot of the grid solver configuration."""

    viscosity: float = 0.00015
    diffusion: float = 0.0
    delta_time: float = 0.5
    vorticity_strength: float = 0.0
    fade_speed: float = 0.002
    solver_iterations: int = 10
    force_multiplier: float = 24.0
    color_multiplier: float = 100.0
    brightness: float = 0.06
    force_radius: float = 5.0
    display_mode: DisplayMode = DisplayMode.DENSITY
    color_palette: ColorPalette = ColorPalette.RAINBOW
    # Reset all fields when a tick produces NaN/inf instead of propagating them.
    guard_non_finite: bool = False

    def __post_init__(self):
        object.__setattr__(self, "display_mode", DisplayMode.parse(self.display_mode))
        object.__setattr__(self, "color_palette", ColorPalette.parse(self.color_palette))

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)

    def clamped(self):
        return _clamped(self, FLUID_RANGES)


@dataclass(frozen=True)
class ParticleParams:
    """Snapshot of the particle tracer configuration."""

    momentum: float = 0.5
    fluid_force: float = 0.6
    # Exposed for parity with saved settings; the update uses a fixed 0.999
    # per-tick decay regardless of this value.
    fade_speed: float = 0.001
    spawn_count: int = 10
    spawn_radius: float = 15.0
    fluid_decay_rate: float = 3.0
    particle_size: float = 1.0
    link_to_viscosity: bool = True
    is_enabled: bool = True
    capacity: int = 50000
    margin: float = 50.0
    frame_seconds: float = 1.0 / 60.0
    # "field" samples the grid velocity, "last_input" uses the damped last
    # interaction force instead.
    velocity_sampling: str = "field"

    def __post_init__(self):
        if self.velocity_sampling not in ("field", "last_input"):
            raise ValueError(f"unknown velocity sampling mode: {self.velocity_sampling!r}")
        if self.capacity < 1:
            raise ValueError("particle capacity must be at least 1")

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)

    def clamped(self):
        return _clamped(self, PARTICLE_RANGES)
