"""Resonant biquad filter with selectable response and slope."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable


class FilterType(enum.IntEnum):
    """Response of the synth filter."""

    LOW_PASS = 0
    HIGH_PASS = 1
    BAND_PASS = 2
    BAND_STOP = 3
    BYPASS = 4


class FilterSlope(enum.IntEnum):
    """Roll-off of the synth filter: one or two cascaded biquad stages."""

    SLOPE_12 = 0
    SLOPE_24 = 1


class SynthFilter:
    """Two-pole (or four-pole) resonant filter derived by bilinear transform."""

    def __init__(self) -> None:
        self._rate = 44100.0
        self._nyquist = 22050.0
        self.reset()

    def set_sample_rate(self, rate: int) -> None:
        """Set the sample rate the cutoff frequency is relative to."""
        self._rate = float(rate)
        self._nyquist = self._rate / 2.0

    def reset(self) -> None:
        """Clear the filter's internal state."""
        self._d1 = self._d2 = self._d3 = self._d4 = 0.0

    def _coefficients(self, cutoff: float, res: float, filter_type: FilterType):
        cutoff = max(min(cutoff, self._nyquist * 0.99), 10.0)
        w = cutoff / self._rate
        r = max(0.001, 2.0 * (1.0 - res))
        k = math.tan(w * math.pi)
        k2 = k * k
        rk = r * k
        bh = 1.0 + rk + k2
        b1 = (2.0 * (k2 - 1.0)) / bh
        b2 = (1.0 - rk + k2) / bh
        if filter_type is FilterType.LOW_PASS:
            a0 = k2 / bh
            return a0, a0 * 2.0, a0, b1, b2
        if filter_type is FilterType.HIGH_PASS:
            a0 = 1.0 / bh
            return a0, -2.0 / bh, a0, b1, b2
        if filter_type is FilterType.BAND_PASS:
            return rk / bh, 0.0, -rk / bh, b1, b2
        a0 = (1.0 + k2) / bh
        return a0, b1, a0, b1, b2

    def process(
        self,
        samples: Iterable[float],
        cutoff: float,
        res: float,
        filter_type: FilterType,
        slope: FilterSlope,
    ) -> list[float]:
        """Filter samples with cutoff in Hz and resonance in [0, 1)."""
        filter_type = FilterType(filter_type)
        slope = FilterSlope(slope)
        samples = list(samples)
        if filter_type is FilterType.BYPASS:
            return samples

        a0, a1, a2, b1, b2 = self._coefficients(cutoff, res, filter_type)
        out = []
        for x in samples:
            y = a0 * x + self._d1
            self._d1 = self._d2 + a1 * x - b1 * y
            self._d2 = a2 * x - b2 * y
            if slope is FilterSlope.SLOPE_24:
                x = y
                y = a0 * x + self._d3
                self._d3 = self._d4 + a1 * x - b1 * y
                self._d4 = a2 * x - b2 * y
            out.append(y)
        return out