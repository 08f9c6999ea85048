"""Synth parameters: their specifications, values, observers and display text."""

from __future__ import annotations

import enum
import math
import random
import re
from dataclasses import dataclass
from gettext import gettext as _


class Param(enum.IntEnum):
    """Identifier of every synth parameter, in bank-file order."""

    AMP_ENV_ATTACK = 0
    AMP_ENV_DECAY = 1
    AMP_ENV_SUSTAIN = 2
    AMP_ENV_RELEASE = 3
    OSCILLATOR1_WAVEFORM = 4
    FILTER_ENV_ATTACK = 5
    FILTER_ENV_DECAY = 6
    FILTER_ENV_SUSTAIN = 7
    FILTER_ENV_RELEASE = 8
    FILTER_RESONANCE = 9
    FILTER_ENV_AMOUNT = 10
    FILTER_CUTOFF = 11
    OSCILLATOR2_DETUNE = 12
    OSCILLATOR2_WAVEFORM = 13
    MASTER_VOLUME = 14
    LFO_FREQ = 15
    LFO_WAVEFORM = 16
    OSCILLATOR2_OCTAVE = 17
    OSCILLATOR_MIX = 18
    LFO_TO_OSCILLATORS = 19
    LFO_TO_FILTER_CUTOFF = 20
    LFO_TO_AMP = 21
    OSCILLATOR_MIX_RING_MOD = 22
    OSCILLATOR1_PULSEWIDTH = 23
    OSCILLATOR2_PULSEWIDTH = 24
    REVERB_ROOMSIZE = 25
    REVERB_DAMP = 26
    REVERB_WET = 27
    REVERB_WIDTH = 28
    AMP_DISTORTION = 29
    OSCILLATOR2_SYNC = 30
    PORTAMENTO_TIME = 31
    KEYBOARD_MODE = 32
    OSCILLATOR2_PITCH = 33
    FILTER_TYPE = 34
    FILTER_SLOPE = 35
    LFO_OSCILLATOR_SELECT = 36
    FILTER_KEY_TRACK_AMOUNT = 37
    FILTER_KEY_VELOCITY_AMOUNT = 38
    AMP_VELOCITY_AMOUNT = 39
    PORTAMENTO_MODE = 40


PARAMETER_COUNT = len(Param)


class ParameterLaw(enum.Enum):
    """How a parameter's value maps to the control value used by synthesis."""

    LINEAR = enum.auto()  # offset + base * value
    EXPONENTIAL = enum.auto()  # offset + base ** value
    POWER = enum.auto()  # offset + value ** base


@dataclass(frozen=True)
class ParameterSpec:
    """Static description of a parameter."""

    name: str
    default: float
    minimum: float
    maximum: float
    step: float
    law: ParameterLaw
    base: float
    offset: float
    label: str

    def control_value(self, value: float) -> float:
        """Map a parameter value to its control value according to the law."""
        if self.law is ParameterLaw.LINEAR:
            return self.offset + self.base * value
        if self.law is ParameterLaw.EXPONENTIAL:
            return self.offset + math.pow(self.base, value)
        return self.offset + math.pow(value, self.base)


_LIN = ParameterLaw.LINEAR
_EXP = ParameterLaw.EXPONENTIAL
_POW = ParameterLaw.POWER

SPECS: tuple[ParameterSpec, ...] = (
    ParameterSpec("amp_attack", 0.0, 0.0, 2.5, 0.0, _POW, 3.0, 0.0005, "s"),
    ParameterSpec("amp_decay", 0.0, 0.0, 2.5, 0.0, _POW, 3.0, 0.0005, "s"),
    ParameterSpec("amp_sustain", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("amp_release", 0.0, 0.0, 2.5, 0.0, _POW, 3.0, 0.0005, "s"),
    ParameterSpec("osc1_waveform", 2.0, 0.0, 4.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_attack", 0.0, 0.0, 2.5, 0.0, _POW, 3.0, 0.0005, "s"),
    ParameterSpec("filter_decay", 0.0, 0.0, 2.5, 0.0, _POW, 3.0, 0.0005, "s"),
    ParameterSpec("filter_sustain", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_release", 0.0, 0.0, 2.5, 0.0, _POW, 3.0, 0.0005, "s"),
    ParameterSpec("filter_resonance", 0.0, 0.0, 0.97, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_env_amount", 0.0, -16.0, 16.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_cutoff", 1.5, -0.5, 1.5, 0.0, _EXP, 16.0, 0.0, ""),
    ParameterSpec("osc2_detune", 0.0, -1.0, 1.0, 0.0, _EXP, 1.25, 0.0, ""),
    ParameterSpec("osc2_waveform", 2.0, 0.0, 4.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("master_vol", 0.67, 0.0, 1.0, 0.0, _POW, 2.0, 0.0, ""),
    ParameterSpec("lfo_freq", 0.0, 0.0, 7.5, 0.0, _POW, 2.0, 0.0, "Hz"),
    ParameterSpec("lfo_waveform", 0.0, 0.0, 6.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("osc2_range", 0.0, -3.0, 4.0, 1.0, _EXP, 2.0, 0.0, ""),
    ParameterSpec("osc_mix", 0.0, -1.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("freq_mod_amount", 0.0, 0.0, 1.25992105, 0.0, _POW, 3.0, -1.0, ""),
    ParameterSpec("filter_mod_amount", -1.0, -1.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("amp_mod_amount", -1.0, -1.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("osc_mix_mode", 0.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("osc1_pulsewidth", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("osc2_pulsewidth", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("reverb_roomsize", 0.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("reverb_damp", 0.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("reverb_wet", 0.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("reverb_width", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("distortion_crunch", 0.0, 0.0, 0.9, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("osc2_sync", 0.0, 0.0, 1.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("portamento_time", 0.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("keyboard_mode", 0.0, 0.0, 2.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("osc2_pitch", 0.0, -12.0, 12.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_type", 0.0, 0.0, 4.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_slope", 1.0, 0.0, 1.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("freq_mod_osc", 0.0, 0.0, 2.0, 1.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_kbd_track", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("filter_vel_sens", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("amp_vel_sens", 1.0, 0.0, 1.0, 0.0, _LIN, 1.0, 0.0, ""),
    ParameterSpec("portamento_mode", 0.0, 0.0, 1.0, 1.0, _LIN, 1.0, 0.0, ""),
)

_INDEX_BY_NAME = {spec.name: index for index, spec in enumerate(SPECS)}

_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _roundf(x: float) -> float:
    """Round half away from zero."""
    if math.isnan(x) or math.isinf(x):
        return x
    return math.copysign(math.floor(abs(x) + 0.5), x)


class ParameterObserver:
    """Receives notifications about a parameter.

    The default hooks remember the most recently changed parameter and which
    parameters are being edited; subclasses override the hooks they need.
    """

    last_changed_parameter: Param | None = None
    parameters_in_edit: frozenset[Param] = frozenset()

    def parameter_did_change(self, parameter: Parameter) -> None:
        """Called after the parameter's value changed."""
        self.last_changed_parameter = parameter.param_id

    def parameter_begin_edit(self, parameter: Parameter) -> None:
        """Called when a user starts editing the parameter."""
        self.parameters_in_edit = self.parameters_in_edit | {parameter.param_id}

    def parameter_end_edit(self, parameter: Parameter) -> None:
        """Called when a user finishes editing the parameter."""
        self.parameters_in_edit = self.parameters_in_edit - {parameter.param_id}


class Parameter:
    """The current value of one synth parameter, with change notification."""

    def __init__(self, param_id: int) -> None:
        self.param_id = Param(param_id)
        self.spec = SPECS[self.param_id]
        self._value = self.spec.default
        self._observers: list[ParameterObserver] = []

    def __repr__(self) -> str:
        return f"Parameter({self.name!r}, value={self._value!r})"

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        self.set_value(value)

    def set_value(self, value: float, sender: ParameterObserver | None = None) -> None:
        """Clamp and quantise a new value, notifying observers other than sender."""
        if value == self._value:
            return
        spec = self.spec
        new_value = min(max(value, spec.minimum), spec.maximum)
        if spec.step > 0.0:
            new_value = spec.minimum + _roundf((new_value - spec.minimum) / spec.step) * spec.step
        if new_value == self._value:
            return
        self._value = new_value
        for observer in list(self._observers):
            if observer is not sender:
                observer.parameter_did_change(self)

    @property
    def normalised_value(self) -> float:
        """The value scaled to [0, 1] over the parameter's range."""
        return (self._value - self.minimum) / (self.maximum - self.minimum)

    def set_normalised_value(self, value: float, sender: ParameterObserver | None = None) -> None:
        """Set the value from a position in [0, 1] over the parameter's range."""
        self.set_value(value * (self.maximum - self.minimum) + self.minimum, sender)

    @property
    def midi_value(self) -> int:
        """The value as a MIDI controller value in 0..127."""
        return int(_roundf(self.normalised_value * 127.0))

    def set_midi_value(self, value: int) -> None:
        """Set the value from a MIDI controller value in 0..127."""
        self.set_normalised_value(value / 127.0)

    @property
    def control_value(self) -> float:
        """The value the synthesis engine uses, after applying the parameter law."""
        return self.spec.control_value(self._value)

    @property
    def string_value(self) -> str:
        """The control value formatted with six significant digits."""
        return f"{self.control_value:g}"

    @staticmethod
    def value_from_string(text: str) -> float:
        """Parse a number independently of locale; NaN if the text is blank."""
        stripped = text.lstrip()
        if not stripped:
            return math.nan
        match = _FLOAT_PREFIX.match(stripped)
        if match is None:
            return 0.0
        return float(match.group(0))

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def label(self) -> str:
        return self.spec.label

    @property
    def default(self) -> float:
        return self.spec.default

    @property
    def minimum(self) -> float:
        return self.spec.minimum

    @property
    def maximum(self) -> float:
        return self.spec.maximum

    @property
    def step(self) -> float:
        return self.spec.step

    @property
    def steps(self) -> int:
        """The number of discrete steps in the range, or 0 for a continuous parameter."""
        if self.spec.step > 0.0:
            return int((self.spec.maximum - self.spec.minimum) / self.spec.step)
        return 0

    def add_observer(self, observer: ParameterObserver, notify: bool = True) -> None:
        """Register an observer, optionally sending it the current value at once."""
        if not any(existing is observer for existing in self._observers):
            self._observers.append(observer)
        if notify:
            observer.parameter_did_change(self)

    def remove_observer(self, observer: ParameterObserver) -> None:
        """Unregister an observer; unknown observers are ignored."""
        self._observers = [o for o in self._observers if o is not observer]

    def begin_edit(self) -> None:
        """Tell observers that an edit gesture has started."""
        for observer in list(self._observers):
            observer.parameter_begin_edit(self)

    def end_edit(self) -> None:
        """Tell observers that an edit gesture has finished."""
        for observer in list(self._observers):
            observer.parameter_end_edit(self)

    def randomise(self) -> None:
        """Set a random value within the parameter's range."""
        self.set_value(random.random() * (self.maximum - self.minimum) + self.minimum)


def get_parameter_properties(index: int) -> tuple[float, float, float, float]:
    """Return (minimum, maximum, default, step) of a parameter."""
    spec = SPECS[Param(index)]
    return spec.minimum, spec.maximum, spec.default, spec.step


def parameter_name_from_index(index: int) -> str | None:
    """The name of a parameter, or None if the index is out of range."""
    if 0 <= index < PARAMETER_COUNT:
        return SPECS[index].name
    return None


def parameter_index_from_name(name: str) -> Param | None:
    """The parameter with the given name, or None if there is none."""
    index = _INDEX_BY_NAME.get(name)
    return None if index is None else Param(index)


_VALUE_STRINGS: dict[Param, tuple[str, ...]] = {
    Param.OSCILLATOR1_WAVEFORM: (
        "sine", "square / pulse", "triangle / saw", "white noise", "noise + sample & hold",
    ),
    Param.OSCILLATOR2_WAVEFORM: (
        "sine", "square / pulse", "triangle / saw", "white noise", "noise + sample & hold",
    ),
    Param.LFO_WAVEFORM: (
        "sine", "square", "triangle", "noise", "noise + sample & hold",
        "sawtooth (up)", "sawtooth (down)",
    ),
    Param.KEYBOARD_MODE: ("poly", "mono", "legato"),
    Param.FILTER_TYPE: ("low pass", "high pass", "band pass", "notch", "bypass"),
    Param.FILTER_SLOPE: ("12 dB / octave", "24 dB / octave"),
    Param.LFO_OSCILLATOR_SELECT: ("osc 1+2", "osc 1", "osc 2"),
    Param.PORTAMENTO_MODE: ("always", "legato"),
}


def parameter_get_value_strings(index: int) -> tuple[str, ...] | None:
    """Names of a selector parameter's settings, or None if it has none."""
    if not 0 <= index < PARAMETER_COUNT:
        return None
    strings = _VALUE_STRINGS.get(Param(index))
    if strings is None:
        return None
    return tuple(_(s) for s in strings)


_TIME_PARAMS = {
    Param.AMP_ENV_ATTACK, Param.AMP_ENV_DECAY, Param.AMP_ENV_RELEASE,
    Param.FILTER_ENV_ATTACK, Param.FILTER_ENV_DECAY, Param.FILTER_ENV_RELEASE,
    Param.PORTAMENTO_TIME,
}

_PERCENT_PARAMS = {
    Param.AMP_ENV_SUSTAIN, Param.FILTER_RESONANCE, Param.FILTER_CUTOFF,
    Param.FILTER_ENV_SUSTAIN, Param.LFO_TO_OSCILLATORS, Param.LFO_TO_FILTER_CUTOFF,
    Param.LFO_TO_AMP, Param.REVERB_ROOMSIZE, Param.REVERB_DAMP, Param.REVERB_WET,
    Param.REVERB_WIDTH, Param.AMP_DISTORTION, Param.FILTER_KEY_TRACK_AMOUNT,
    Param.FILTER_KEY_VELOCITY_AMOUNT, Param.AMP_VELOCITY_AMOUNT,
}


def parameter_get_display(index: int, value: float) -> str:
    """Human-readable text for a parameter value; empty when there is none."""
    param = Param(index)
    spec = SPECS[param]
    cv = spec.control_value(value)
    normalised = (value - spec.minimum) / (spec.maximum - spec.minimum)

    if param in _TIME_PARAMS:
        if cv < 1.0:
            return "%.0f ms" % (cv * 1000)
        return "%.1f s" % cv
    if param is Param.LFO_FREQ:
        return "%.1f Hz" % cv
    if param is Param.OSCILLATOR2_DETUNE:
        return "%+.1f cents" % (1200.0 * math.log2(cv))
    if param is Param.OSCILLATOR2_PITCH:
        return "%+.0f semitone%s" % (cv, "" if abs(cv) < 2 else "s")
    if param is Param.OSCILLATOR2_OCTAVE:
        return "%+.0f octave%s" % (value, "" if abs(value) < 2 else "s")
    if param is Param.MASTER_VOLUME:
        db = 20.0 * math.log10(cv) if cv > 0 else -math.inf
        return "%+.1f dB" % db
    if param is Param.OSCILLATOR_MIX_RING_MOD:
        return "%d %%" % int(_roundf(cv * 100.0))
    if param is Param.FILTER_ENV_AMOUNT:
        return "%+d %%" % int(_roundf(cv / 16.0 * 100.0))
    if param in _PERCENT_PARAMS:
        return "%d %%" % int(_roundf(normalised * 100.0))
    if param is Param.FILTER_TYPE:
        strings = parameter_get_value_strings(param)
        return strings[int(cv)] if strings else ""

    if spec.minimum == 0.0:
        strings = parameter_get_value_strings(param)
        if strings and value <= spec.maximum:
            return strings[int(_roundf(value))]
        if spec.maximum == 1.0 and spec.step == 1.0:
            return "on" if int(_roundf(normalised)) else "off"
    return ""