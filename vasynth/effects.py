"""Distortion (waveshaping) and soft limiting effect units."""

from __future__ import annotations

import math
from collections.abc import Iterable

from .smoothing import SmoothedParam

_ATTACK_TIME = 0.001
_RELEASE_TIME = 0.5
_THRESHOLD = 0.9


class Distortion:
    """Waveshaper raising the sample magnitude to a smoothed power below one."""

    def __init__(self) -> None:
        self._crunch = SmoothedParam(1.0)

    def set_crunch(self, value: float) -> None:
        """Set the amount of distortion; 0 leaves the signal unchanged."""
        self._crunch.raw_value = 1.0 - value

    def process(self, samples: Iterable[float]) -> list[float]:
        """Return the distorted samples."""
        out = []
        for x in samples:
            sign = -1.0 if x < 0 else 1.0
            c = self._crunch.tick()
            out.append(math.pow(x * sign, max(c, 0.01)) * sign)
        return out


class SoftLimiter:
    """Stereo peak limiter with a fast attack and slow release."""

    def __init__(self, rate: int = 44100) -> None:
        self.set_sample_rate(rate)

    def set_sample_rate(self, rate: int) -> None:
        """Recompute the time constants and clear the peak follower."""
        self._xpeak = 0.0
        self._attack = 1.0 - math.exp(-2.2 / (_ATTACK_TIME * rate))
        self._release = 1.0 - math.exp(-2.2 / (_RELEASE_TIME * rate))
        self._thresh = math.log(_THRESHOLD)

    def process(
        self, left: Iterable[float], right: Iterable[float]
    ) -> tuple[list[float], list[float]]:
        """Limit a pair of channels, returning the processed left and right samples."""
        out_l: list[float] = []
        out_r: list[float] = []
        for l, r in zip(left, right, strict=True):
            x = abs(l) + abs(r)
            if x > self._xpeak:
                self._xpeak = (1 - self._release) * self._xpeak + self._attack * (x - self._xpeak)
            else:
                self._xpeak = (1 - self._release) * self._xpeak
            if self._xpeak > 0:
                over = math.log(self._xpeak) - self._thresh
                gain = math.exp(-over) if over >= 0 else 1.0
                if over == 0:
                    gain = 1.0
            else:
                gain = 1.0
            out_l.append(l * gain)
            out_r.append(r * gain)
        return out_l, out_r