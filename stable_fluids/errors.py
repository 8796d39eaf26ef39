"""Exceptions raised by the fluid simulation."""


class FluidSimError(Exception):
    """Base class for every error raised by stable_fluids."""


class AllocationError(FluidSimError, ValueError):
    """
    Grid fields could not be allocated.

    Raised for non-positive or non-integer dimensions, dimensions above the
    backend capacity, or when numpy runs out of memory. The caller keeps
    whatever allocation it had before the failed call.
    """

    def __init__(self, width, height, reason):
        self.width = width
        self.height = height
        self.reason = reason
        super().__init__(f"cannot allocate {width}x{height} grid: {reason}")


class UnknownPresetError(FluidSimError, KeyError):
    """No preset is registered under the requested name."""

    def __str__(self):
        return f"unknown preset: {self.args[0]!r}"


class NonFiniteFieldError(FluidSimError, FloatingPointError):
    """A simulation field contains NaN or infinite values."""

    def __init__(self, names):
        self.names = tuple(names)
        super().__init__("non-finite values in field(s): " + ", ".join(self.names))
