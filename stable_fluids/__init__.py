"""Real-time 2D stable-fluids simulation with particle tracers."""

from .config import DisplayMode, FluidParams, ParticleParams
from .errors import AllocationError, FluidSimError, NonFiniteFieldError, UnknownPresetError
from .fields import FieldPair, GridFields
from .palette import ColorPalette
from .particles import ParticleSystem, ParticleVertices
from .presets import PRESETS, FluidPreset, get_preset
from .render import to_rgba8
from .simulation import Frame, Simulation
from .solver import FluidSolver

__version__ = "0.1.0"

__all__ = [
    "AllocationError",
    "ColorPalette",
    "DisplayMode",
    "FieldPair",
    "FluidParams",
    "FluidPreset",
    "FluidSimError",
    "FluidSolver",
    "Frame",
    "GridFields",
    "NonFiniteFieldError",
    "ParticleParams",
    "ParticleSystem",
    "ParticleVertices",
    "PRESETS",
    "Simulation",
    "UnknownPresetError",
    "get_preset",
    "to_rgba8",
]
