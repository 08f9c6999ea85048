"""Attack-decay-sustain-release envelope generator."""

from __future__ import annotations

import enum

from .smoothing import ParamSmoother

_MINIMUM_TIME = 0.0005
_UNBOUNDED = 2**32 - 1


class EnvelopeState(enum.Enum):
    """Stage of an ADSR envelope."""

    ATTACK = enum.auto()
    DECAY = enum.auto()
    SUSTAIN = enum.auto()
    RELEASE = enum.auto()
    OFF = enum.auto()


def _ramp(target: float, start: float, frames: int) -> float:
    # A zero-length stage is left before any increment is applied.
    return (target - start) / frames if frames else 0.0


class ADSR:
    """Linear ADSR envelope producing one control value per frame."""

    def __init__(self) -> None:
        self.sample_rate = 44100.0
        self.attack = 0.0
        self.decay = 0.0
        self.release = 0.0
        self._sustain = 1.0
        self._sustain_smoother = ParamSmoother(1.0)
        self.state = EnvelopeState.OFF
        self.value = 0.0
        self._inc = 0.0
        self._frames_left = _UNBOUNDED

    @property
    def sustain(self) -> float:
        """The sustain level; changing it during sustain takes effect at once."""
        return self._sustain

    @sustain.setter
    def sustain(self, value: float) -> None:
        self._sustain = float(value)
        if self.state is EnvelopeState.SUSTAIN:
            self.value = self._sustain

    @property
    def active(self) -> bool:
        """True unless the envelope is off."""
        return self.state is not EnvelopeState.OFF

    def trigger_on(self) -> None:
        """Begin the attack stage from the current value."""
        self.state = EnvelopeState.ATTACK
        self._frames_left = int(self.attack * self.sample_rate)
        target = self._sustain if self.decay <= _MINIMUM_TIME else 1.0
        self._inc = _ramp(target, self.value, self._frames_left)

    def trigger_off(self) -> None:
        """Begin the release stage from the current value."""
        self.state = EnvelopeState.RELEASE
        self._frames_left = int(self.release * self.sample_rate)
        self._inc = _ramp(0.0, self.value, self._frames_left)

    def reset(self) -> None:
        """Switch the envelope off immediately, skipping the release stage."""
        self.state = EnvelopeState.OFF
        self.value = 0.0
        self._inc = 0.0
        self._frames_left = _UNBOUNDED

    def process(self, frames: int) -> list[float]:
        """Generate the next `frames` envelope values."""
        out: list[float] = []
        while frames:
            count = min(frames, self._frames_left)
            if self.state is EnvelopeState.SUSTAIN:
                for _ in range(count):
                    out.append(self.value)
                    self.value = self._sustain_smoother.process_sample(self._sustain)
            else:
                for _ in range(count):
                    out.append(self.value)
                    self.value += self._inc
            self._frames_left -= count
            if self._frames_left == 0:
                self._advance_stage()
            frames -= count
        return out

    def _advance_stage(self) -> None:
        if self.state is EnvelopeState.ATTACK:
            self.state = EnvelopeState.DECAY
            self._frames_left = int(self.decay * self.sample_rate)
            self._inc = _ramp(self._sustain, self.value, self._frames_left)
        elif self.state is EnvelopeState.DECAY:
            self._sustain_smoother.set(self.value)
            self.state = EnvelopeState.SUSTAIN
            self._frames_left = _UNBOUNDED
            self._inc = 0.0
        elif self.state is EnvelopeState.SUSTAIN:
            self._frames_left = _UNBOUNDED
        else:
            self.reset()