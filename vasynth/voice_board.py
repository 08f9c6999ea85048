"""A single synth voice: oscillators, LFO, filter, envelopes and amplifier."""

from __future__ import annotations

import enum
import math

from .envelope import ADSR
from .filter import FilterSlope, FilterType, SynthFilter
from .oscillator import Oscillator, Waveform
from .parameter import Param
from .smoothing import FilterMode, IIRFilterFirstOrder, Lerper, ParamSmoother, SmoothedParam

_VCA_LOW_PASS_FREQ = 4000.0
_KEY_TRACK_BASE_FREQ = 261.626  # middle C


def _blend(x0: float, x1: float, m: float) -> float:
    return x0 * (1.0 - m) + x1 * m


def _round_half_away(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


class LFOWaveform(enum.IntEnum):
    """Shape of the low-frequency oscillator."""

    SINE = 0
    SQUARE = 1
    TRIANGLE = 2
    NOISE = 3
    RANDOMIZE = 4
    SAWTOOTH_UP = 5
    SAWTOOTH_DOWN = 6


# waveform, pulse width, polarity (None leaves the polarity as it is)
_LFO_SHAPES = {
    LFOWaveform.SINE: (Waveform.SINE, 0.0, None),
    LFOWaveform.SQUARE: (Waveform.PULSE, 0.0, None),
    LFOWaveform.TRIANGLE: (Waveform.SAW, 0.0, None),
    LFOWaveform.NOISE: (Waveform.NOISE, 0.0, None),
    LFOWaveform.RANDOMIZE: (Waveform.RANDOM, 0.0, None),
    LFOWaveform.SAWTOOTH_UP: (Waveform.SAW, 1.0, 1.0),
    LFOWaveform.SAWTOOTH_DOWN: (Waveform.SAW, 1.0, -1.0),
}

_IGNORED_PARAMS = frozenset({
    Param.MASTER_VOLUME, Param.REVERB_ROOMSIZE, Param.REVERB_DAMP, Param.REVERB_WET,
    Param.REVERB_WIDTH, Param.AMP_DISTORTION, Param.PORTAMENTO_TIME,
    Param.KEYBOARD_MODE, Param.PORTAMENTO_MODE,
})


class VoiceBoard:
    """One voice, playing a single note at a time."""

    MAX_PROCESS_BUFFER_SIZE = 64

    def __init__(self, rate: int = 44100) -> None:
        self._volume = ParamSmoother(0.0)

        self._frequency = Lerper()
        self._frequency_dirty = False
        self._frequency_start = 0.0
        self._frequency_target = 0.0
        self._frequency_time = 0.0

        self._key_velocity = 1.0
        self._pitch_bend = 1.0

        self._lfo = Oscillator()
        self._lfo_freq = 0.0
        self._lfo_pulse_width = 0.0

        self._osc1 = Oscillator()
        self._osc2 = Oscillator()
        self._freq_mod_amount = 0.0
        self._freq_mod_destination = 0
        self._osc1_pulse_width = 0.0
        self._osc2_pulse_width = 0.0
        self._osc_mix = SmoothedParam(0.0)
        self._ring_mod_amt = SmoothedParam(0.0)
        self._osc2_octave = 1.0
        self._osc2_detune = 1.0
        self._osc2_pitch = 0.0
        self._osc2_sync = False

        self._filter_env_amt = 0.0
        self._filter_mod_amt = 0.0
        self._filter_cutoff = 16.0
        self._filter_res = 0.0
        self._filter_kbd_track = 0.0
        self._filter_vel_sens = 0.0
        self._filter = SynthFilter()
        self._filter_type = FilterType.LOW_PASS
        self._filter_slope = FilterSlope.SLOPE_24
        self._filter_adsr = ADSR()

        self._vca_filter = IIRFilterFirstOrder()
        self._amp_mod_amount = SmoothedParam(-1.0)
        self._amp_vel_sens = SmoothedParam(1.0)
        self._amp_adsr = ADSR()

        self.set_sample_rate(rate)

    @property
    def frequency(self) -> float:
        """The note frequency the voice is currently at."""
        return self._frequency.value

    def update_parameter(self, param: Param, value: float) -> None:
        """Apply the control value of a synth parameter to this voice."""
        param = Param(param)
        match param:
            case Param.LFO_TO_AMP:
                self._amp_mod_amount.raw_value = (value + 1.0) / 2.0
            case Param.LFO_FREQ:
                self._lfo_freq = value
            case Param.LFO_WAVEFORM:
                waveform, pulse_width, polarity = _LFO_SHAPES[LFOWaveform(int(value))]
                self._lfo_pulse_width = pulse_width
                self._lfo.waveform = waveform
                if polarity is not None:
                    self._lfo.set_polarity(polarity)
            case Param.LFO_TO_OSCILLATORS:
                self._freq_mod_amount = value / 2.0 + 0.5
            case Param.LFO_OSCILLATOR_SELECT:
                self._freq_mod_destination = _round_half_away(value)
            case Param.OSCILLATOR1_WAVEFORM:
                self._osc1.waveform = Waveform(int(value))
            case Param.OSCILLATOR1_PULSEWIDTH:
                self._osc1_pulse_width = value
            case Param.OSCILLATOR2_WAVEFORM:
                self._osc2.waveform = Waveform(int(value))
            case Param.OSCILLATOR2_PULSEWIDTH:
                self._osc2_pulse_width = value
            case Param.OSCILLATOR2_OCTAVE:
                self._osc2_octave = value
            case Param.OSCILLATOR2_DETUNE:
                self._osc2_detune = value
            case Param.OSCILLATOR2_PITCH:
                self._osc2_pitch = math.pow(2.0, value / 12.0)
            case Param.OSCILLATOR2_SYNC:
                self._osc2_sync = _round_half_away(value) != 0
            case Param.LFO_TO_FILTER_CUTOFF:
                self._filter_mod_amt = (value + 1.0) / 2.0
            case Param.FILTER_ENV_AMOUNT:
                self._filter_env_amt = value
            case Param.FILTER_CUTOFF:
                self._filter_cutoff = value
            case Param.FILTER_RESONANCE:
                self._filter_res = value
            case Param.FILTER_ENV_ATTACK:
                self._filter_adsr.attack = value
            case Param.FILTER_ENV_DECAY:
                self._filter_adsr.decay = value
            case Param.FILTER_ENV_SUSTAIN:
                self._filter_adsr.sustain = value
            case Param.FILTER_ENV_RELEASE:
                self._filter_adsr.release = value
            case Param.FILTER_TYPE:
                self._filter_type = FilterType(int(value))
            case Param.FILTER_SLOPE:
                self._filter_slope = FilterSlope(int(value))
            case Param.FILTER_KEY_TRACK_AMOUNT:
                self._filter_kbd_track = value
            case Param.FILTER_KEY_VELOCITY_AMOUNT:
                self._filter_vel_sens = value
            case Param.OSCILLATOR_MIX_RING_MOD:
                self._ring_mod_amt.raw_value = value
            case Param.OSCILLATOR_MIX:
                self._osc_mix.raw_value = value
            case Param.AMP_ENV_ATTACK:
                self._amp_adsr.attack = value
            case Param.AMP_ENV_DECAY:
                self._amp_adsr.decay = value
            case Param.AMP_ENV_SUSTAIN:
                self._amp_adsr.sustain = value
            case Param.AMP_ENV_RELEASE:
                self._amp_adsr.release = value
            case Param.AMP_VELOCITY_AMOUNT:
                self._amp_vel_sens.raw_value = value
            case _ if param in _IGNORED_PARAMS:
                pass

    def set_pitch_bend(self, value: float) -> None:
        """Set the pitch bend as a frequency multiplier."""
        self._pitch_bend = value

    def process(self, frames: int, vol: float) -> list[float]:
        """Render `frames` samples of this voice at master volume `vol`."""
        if not 0 < frames <= self.MAX_PROCESS_BUFFER_SIZE:
            raise ValueError(
                f"frames must be between 1 and {self.MAX_PROCESS_BUFFER_SIZE}, not {frames}"
            )

        if self._frequency_dirty:
            self._frequency_dirty = False
            self._frequency.configure(
                self._frequency_start,
                self._frequency_target,
                int(self._frequency_time * self._sample_rate),
            )

        # Control signals
        lfo = self._lfo.process(frames, self._lfo_freq, self._lfo_pulse_width)

        frequency = self._frequency.next_value()
        for _ in range(frames - 1):
            self._frequency.next_value()

        base_freq = self._pitch_bend * frequency
        freq_mod = self._freq_mod_amount * (lfo[0] + 1.0) + 1.0 - self._freq_mod_amount

        osc1_freq = base_freq
        if self._freq_mod_destination in (0, 1):
            osc1_freq *= freq_mod

        osc2_freq = base_freq * self._osc2_detune * self._osc2_octave * self._osc2_pitch
        if self._freq_mod_destination in (0, 2):
            osc2_freq *= freq_mod

        env_f = self._filter_adsr.process(frames)[-1]
        cutoff_base = _blend(_KEY_TRACK_BASE_FREQ, frequency, self._filter_kbd_track)
        cutoff_vel_mult = _blend(1.0, self._key_velocity, self._filter_vel_sens)
        cutoff_lfo_mult = (lfo[0] * 0.5 + 0.5) * self._filter_mod_amt + 1 - self._filter_mod_amt
        cutoff = self._filter_cutoff * cutoff_base * cutoff_vel_mult * cutoff_lfo_mult
        if self._filter_env_amt > 0.0:
            cutoff += frequency * env_f * self._filter_env_amt
        else:
            cutoff += cutoff * (1.0 / 16.0) * self._filter_env_amt * env_f

        # Oscillators; sync only ever worked with a sine or saw master oscillator.
        self._osc2.sync_enabled = self._osc2_sync and self._osc1.waveform in (
            Waveform.SINE,
            Waveform.SAW,
        )
        osc1 = self._osc1.process(frames, osc1_freq, self._osc1_pulse_width)
        osc2 = self._osc2.process(frames, osc2_freq, self._osc2_pulse_width, osc1_freq)

        mixed = []
        for a, b in zip(osc1, osc2):
            ring_mod = self._ring_mod_amt.tick()
            osc_mix = self._osc_mix.tick()
            osc1_vol = (1.0 - ring_mod) * (1.0 - osc_mix) / 2.0
            osc2_vol = (1.0 - ring_mod) * (1.0 + osc_mix) / 2.0
            mixed.append(osc1_vol * a + osc2_vol * b + ring_mod * a * b)

        filtered = self._filter.process(
            mixed, cutoff, self._filter_res, self._filter_type, self._filter_slope
        )

        # Amplifier
        amp_env = self._amp_adsr.process(frames)
        out = []
        for sample, env, lfo_value in zip(filtered, amp_env, lfo):
            amp_mod = self._amp_mod_amount.tick()
            # The velocity sensitivity smoother advances twice per frame.
            vel_sens_a = self._amp_vel_sens.tick()
            vel_sens_b = self._amp_vel_sens.tick()
            velocity_gain = (1.0 - vel_sens_a) + self._key_velocity * vel_sens_b
            amplitude = env * velocity_gain * ((lfo_value * 0.5 + 0.5) * amp_mod + 1 - amp_mod)
            gain = self._vca_filter.process_sample(
                amplitude * self._volume.process_sample(vol)
            )
            out.append(sample * gain)
        return out

    def set_sample_rate(self, rate: int) -> None:
        """Set the sample rate of every component of the voice."""
        self._sample_rate = float(rate)
        for osc in (self._lfo, self._osc1, self._osc2):
            osc.set_sample_rate(rate)
        self._filter.set_sample_rate(rate)
        self._filter_adsr.sample_rate = float(rate)
        self._amp_adsr.sample_rate = float(rate)
        self._vca_filter.set_coefficients(rate, _VCA_LOW_PASS_FREQ, FilterMode.LOW_PASS)

    def is_silent(self) -> bool:
        """True once the amplitude envelope is off and the amplifier has settled."""
        return not self._amp_adsr.active and self._vca_filter.z < 0.0000001

    def trigger_on(self, reset: bool) -> None:
        """Start the envelopes, optionally snapping the smoothed controls to their targets."""
        if reset:
            for smoothed in (self._osc_mix, self._ring_mod_amt, self._amp_mod_amount,
                             self._amp_vel_sens):
                smoothed.reset()
        self._amp_adsr.trigger_on()
        self._filter_adsr.trigger_on()

    def trigger_off(self) -> None:
        """Release the envelopes."""
        self._amp_adsr.trigger_off()
        self._filter_adsr.trigger_off()

    def reset(self) -> None:
        """Stop the envelopes and clear oscillator and filter state."""
        self._amp_adsr.reset()
        self._filter_adsr.reset()
        self._osc1.reset()
        self._osc2.reset()
        self._filter.reset()
        self._lfo.reset()

    def set_frequency(
        self, start_frequency: float, target_frequency: float, time: float = 0.0
    ) -> None:
        """Glide from one frequency to another over `time` seconds, from the next block."""
        self._frequency_start = start_frequency
        self._frequency_target = target_frequency
        self._frequency_time = time
        self._frequency_dirty = True

    def set_velocity(self, velocity: float) -> None:
        """Set the key velocity in [0, 1]."""
        if velocity > 1.0:
            raise ValueError(f"velocity must not exceed 1, not {velocity!r}")
        self._key_velocity = velocity