"""Named parameter presets."""

import dataclasses
import logging
from dataclasses import dataclass

from .errors import UnknownPresetError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FluidPreset:
    name: str
    viscosity: float
    diffusion: float
    delta_time: float
    vorticity_strength: float
    fade_speed: float
    solver_iterations: int
    force_multiplier: float
    color_multiplier: float
    brightness: float
    do_vorticity_confinement: bool
    grid_resolution: int

    def apply_to(self, params):
        """
        Return ``params`` with this preset's numeric values assigned.

        Grid resolution is not part of FluidParams; callers decide whether
        to adopt ``grid_resolution``.
        """
        logger.info("Applying preset %r", self.name)
        return dataclasses.replace(
            params,
            viscosity=self.viscosity,
            diffusion=self.diffusion,
            delta_time=self.delta_time,
            vorticity_strength=self.vorticity_strength if self.do_vorticity_confinement else 0.0,
            fade_speed=self.fade_speed,
            solver_iterations=self.solver_iterations,
            force_multiplier=self.force_multiplier,
            color_multiplier=self.color_multiplier,
            brightness=self.brightness,
        )


PRESETS = (
    FluidPreset("Default", 0.00001, 0.0, 0.59, 0.0, 0.005, 15, 24.0, 100.0, 0.06, False, 177),
    FluidPreset("Viscous", 0.001, 0.0, 0.5, 0.0, 0.003, 20, 30.0, 80.0, 0.08, False, 150),
    FluidPreset("Turbulent", 0.00001, 0.0, 0.8, 25.0, 0.002, 10, 50.0, 120.0, 0.1, True, 200),
    FluidPreset("Smoke", 0.00005, 0.00001, 0.4, 10.0, 0.008, 15, 35.0, 60.0, 0.15, True, 128),
    FluidPreset("Water", 0.000001, 0.0, 1.0, 5.0, 0.001, 25, 40.0, 90.0, 0.07, True, 150),
    FluidPreset("Ink", 0.0001, 0.00005, 0.6, 15.0, 0.004, 18, 45.0, 150.0, 0.12, True, 180),
    FluidPreset("Fast Flow", 0.000001, 0.0, 2.0, 8.0, 0.01, 8, 60.0, 80.0, 0.05, True, 100),
    FluidPreset("High Detail", 0.00001, 0.0, 0.5, 12.0, 0.003, 30, 30.0, 100.0, 0.08, True, 256),
    FluidPreset("Paint", 0.0005, 0.0001, 0.3, 0.0, 0.0005, 20, 20.0, 200.0, 0.2, False, 150),
    FluidPreset("Minimal", 0.0, 0.0, 0.5, 0.0, 0.02, 5, 50.0, 50.0, 0.1, False, 80),
)


def preset_names():
    return [preset.name for preset in PRESETS]


def get_preset(name):
    """Look up a preset by name, ignoring case."""
    key = name.strip().lower()
    for preset in PRESETS:
        if preset.name.lower() == key:
            return preset
    raise UnknownPresetError(name)
