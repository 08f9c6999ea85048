"""Audio and control oscillator with sine, pulse, saw, noise and sample-and-hold outputs."""

from __future__ import annotations

import enum
import math

from .smoothing import Lerper

TWO_PI = 2.0 * math.pi


class Waveform(enum.IntEnum):
    """Output waveform of an oscillator."""

    SINE = 0
    PULSE = 1
    SAW = 2
    NOISE = 3
    RANDOM = 4


class _NoiseSource:
    """Linear congruential pseudo-random generator producing values in [-1, 1]."""

    _MASK = 0xFFFFFFFF

    def __init__(self, seed: int = 22222) -> None:
        self._state = seed

    def next(self) -> float:
        self._state = (self._state * 196314165 + 907633515) & self._MASK
        return self._state * (2.0 / self._MASK) - 1.0


# All oscillators draw from one generator, so noise voices never repeat each other.
_noise = _NoiseSource()


def _saw(rads: float, shape: float) -> float:
    t = math.fmod(rads, TWO_PI) / TWO_PI
    a = (shape + 1.0) / 2.0
    if t < a / 2:
        return 2 * t / a
    if t > 1 - a / 2:
        return (2 * t - 2) / a
    if a == 1.0:
        # The falling edge has zero width; take the midpoint of the jump.
        return 0.0
    return (1 - 2 * t) / (1 - a)


class Oscillator:
    """An oscillator producing one block of samples per call."""

    def __init__(self, rate: int = 44100) -> None:
        self._rads = 0.0
        self._random = 0.0
        self._random_count = 0
        self._waveform = Waveform.SINE
        self._frequency = Lerper()
        self._pulse_width = 0.0
        self._polarity = 1.0
        self._sync_frequency = 0.0
        self._sync_rads = 0.0
        self.sync_enabled = False
        self.set_sample_rate(rate)

    @property
    def waveform(self) -> Waveform:
        return self._waveform

    @waveform.setter
    def waveform(self, value: Waveform) -> None:
        self._waveform = Waveform(value)

    @property
    def polarity(self) -> float:
        return self._polarity

    def set_sample_rate(self, rate: int) -> None:
        """Set the sample rate in Hz."""
        self._rate = int(rate)
        self._twopi_rate = TWO_PI / self._rate

    def set_polarity(self, polarity: float) -> None:
        """Set the saw polarity: +1 for rising, -1 for falling."""
        if polarity not in (1.0, -1.0):
            raise ValueError(f"polarity must be +1 or -1, not {polarity!r}")
        self._polarity = float(polarity)

    def reset(self) -> None:
        """Restart the waveform at phase zero."""
        self._rads = 0.0

    def process(
        self, frames: int, freq_hz: float, pw: float, sync_freq: float = 0.0
    ) -> list[float]:
        """Generate `frames` samples, gliding to freq_hz over the block."""
        self._frequency.configure(
            self._frequency.final_value, min(freq_hz, self._rate / 2.0), frames
        )
        self._pulse_width = pw
        self._sync_frequency = sync_freq
        render = {
            Waveform.SINE: self._sine,
            Waveform.PULSE: self._square,
            Waveform.SAW: self._saw,
            Waveform.NOISE: self._noise,
            Waveform.RANDOM: self._sample_and_hold,
        }[self._waveform]
        return render(frames)

    def _sync(self, rads: float) -> float:
        if self.sync_enabled:
            self._sync_rads += self._twopi_rate * self._sync_frequency
            if self._sync_rads >= TWO_PI:
                self._sync_rads -= TWO_PI
                return 0.0
        return rads

    def _sine(self, frames: int) -> list[float]:
        out = []
        rads = self._rads
        for _ in range(frames):
            rads = self._sync(rads)
            rads += self._twopi_rate * self._frequency.next_value()
            out.append(math.sin(rads))
        self._rads = math.fmod(rads, TWO_PI)
        return out

    def _square(self, frames: int) -> list[float]:
        radsper = self._twopi_rate * self._frequency.final_value
        # Narrowing the pulse at high frequencies reduces aliasing.
        pwscale = 1.0 if radsper < 0.3 else 1.0 - (radsper - 0.3) / 2
        pwrads = math.pi + pwscale * math.pi * min(self._pulse_width, 0.9)

        out = []
        lrads = self._rads
        for _ in range(frames):
            lrads = self._sync(lrads)
            radinc = self._twopi_rate * self._frequency.next_value()
            nrads = lrads + radinc
            if nrads >= TWO_PI:
                nrads -= TWO_PI
                y = 2.0 * (nrads / radinc) - 1.0
            elif nrads <= pwrads:
                y = 1.0
            elif lrads <= pwrads:
                y = 1.0 - 2.0 * ((nrads - pwrads) / radinc)
            else:
                y = -1.0
            out.append(y)
            lrads = nrads
        self._rads = lrads
        return out

    def _saw(self, frames: int) -> list[float]:
        # Limit the steepest slope to reduce aliasing in high octaves.
        shape = min(
            self._pulse_width,
            self._pulse_width - 2.0 * self._frequency.final_value / self._rate,
        )
        out = []
        rads = self._rads
        for _ in range(frames):
            rads = self._sync(rads)
            rads += self._twopi_rate * self._frequency.next_value()
            out.append(_saw(rads, shape) * self._polarity)
        self._rads = math.fmod(rads, TWO_PI)
        return out

    def _noise(self, frames: int) -> list[float]:
        return [_noise.next() for _ in range(frames)]

    def _sample_and_hold(self, frames: int) -> list[float]:
        final = self._frequency.final_value
        # At zero frequency a new value is drawn on every sample.
        period = int(self._rate / final) if final > 0 else -1
        out = []
        for _ in range(frames):
            if self._random_count > period:
                self._random_count = 0
                self._random = _noise.next()
            self._random_count += 1
            out.append(self._random)
        return out