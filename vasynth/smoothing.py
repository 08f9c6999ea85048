"""Ramps, one-pole filters and smoothers used to de-zipper control signals."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable


class Lerper:
    """Linear ramp from a start value to a final value over a fixed number of steps."""

    def __init__(self) -> None:
        self._start = 0.0
        self._final = 0.0
        self._inc = 0.0
        self._steps = 0
        self._i = 0

    def configure(self, start_value: float, final_value: float, num_steps: int) -> None:
        """Start a new ramp; with no steps the ramp jumps straight to the final value."""
        self._start = float(start_value)
        self._final = float(final_value)
        self._steps = max(0, int(num_steps))
        if self._steps > 0:
            self._inc = (self._final - self._start) / self._steps
        else:
            self._inc = 0.0
            self._start = self._final
        self._i = 0

    @property
    def value(self) -> float:
        """The current position of the ramp."""
        return self._start + self._inc * self._i

    @property
    def final_value(self) -> float:
        """The value the ramp ends on."""
        return self._final

    def next_value(self) -> float:
        """Return the current value and advance one step, holding at the end."""
        y = self.value
        self._i = min(self._i + 1, self._steps)
        return y


class FilterMode(enum.Enum):
    """Response of a first-order IIR filter."""

    LOW_PASS = enum.auto()
    HIGH_PASS = enum.auto()


class IIRFilterFirstOrder:
    """A one-pole, one-zero IIR filter."""

    def __init__(self) -> None:
        self.a0 = 0.0
        self.a1 = 0.0
        self.b1 = 0.0
        self.z = 0.0

    def set_coefficients(self, sample_rate: float, cutoff_freq: float, mode: FilterMode) -> None:
        """Compute the coefficients for a cutoff frequency at a sample rate."""
        x = math.e ** (-(math.pi / 2) * min(cutoff_freq / sample_rate, 0.5))
        if mode is FilterMode.LOW_PASS:
            self.a0 = 1.0 - x
            self.a1 = 0.0
            self.b1 = x
        else:
            self.a0 = (1.0 + x) / 2.0
            self.a1 = -(1.0 + x) / 2.0
            self.b1 = x

    def process_sample(self, x: float) -> float:
        """Filter one sample."""
        y = x * self.a0 + self.z
        self.z = x * self.a1 + y * self.b1
        return y

    def process_buffer(self, samples: Iterable[float]) -> list[float]:
        """Filter a sequence of samples, returning the filtered values."""
        return [self.process_sample(x) for x in samples]


class ParamSmoother:
    """Exponential smoother that moves a fixed fraction towards its input each sample."""

    COEFFICIENT = 0.005

    def __init__(self, z: float = 0.0) -> None:
        self._z = float(z)

    @property
    def value(self) -> float:
        """The current smoothed value."""
        return self._z

    def process_sample(self, x: float) -> float:
        """Move towards x and return the new smoothed value."""
        self._z += (x - self._z) * self.COEFFICIENT
        return self._z

    def set(self, z: float) -> None:
        """Jump to a value without smoothing."""
        self._z = float(z)


class SmoothedParam:
    """A raw parameter value paired with a smoother that follows it."""

    def __init__(self, raw_value: float = 0.0) -> None:
        self.raw_value = float(raw_value)
        self._smoother = ParamSmoother(raw_value)

    def reset(self) -> None:
        """Make the smoothed value equal the raw value immediately."""
        self._smoother.set(self.raw_value)

    def tick(self) -> float:
        """Advance the smoother one sample towards the raw value."""
        return self._smoother.process_sample(self.raw_value)