"""Assigns notes to voices, mixes them and applies the master effects."""

from __future__ import annotations

import enum
import os

from .effects import Distortion, SoftLimiter
from .parameter import Param, Parameter, ParameterObserver
from .tuning import TuningMap
from .voice_board import VoiceBoard

_NOTE_COUNT = 128

_GLOBAL_PARAMS = frozenset({
    Param.REVERB_ROOMSIZE, Param.REVERB_DAMP, Param.REVERB_WET, Param.REVERB_WIDTH,
})


class KeyboardMode(enum.IntEnum):
    """How notes are assigned to voices."""

    POLY = 0
    MONO = 1
    LEGATO = 2


class PortamentoMode(enum.IntEnum):
    """When portamento glides between notes."""

    ALWAYS = 0
    LEGATO = 1


class VoiceAllocationUnit(ParameterObserver):
    """Owns one voice per MIDI note and turns MIDI events into sound."""

    def __init__(self) -> None:
        self.max_voices = 0
        self.portamento_time = 0.0
        self.portamento_mode = PortamentoMode.ALWAYS
        self.key_pressed = [False] * _NOTE_COUNT
        self.sustain = False
        self.active = [False] * _NOTE_COUNT
        self.keyboard_mode = KeyboardMode.POLY
        self.key_presses = [0] * _NOTE_COUNT
        self.key_press_counter = 0
        self.voices = [VoiceBoard() for _ in range(_NOTE_COUNT)]
        self.limiter = SoftLimiter()
        self.distortion = Distortion()
        self.master_vol = 1.0
        self.pan_gain_left = 1.0
        self.pan_gain_right = 1.0
        self.pitch_bend_range_semitones = 2.0
        self.pitch_bend_value = 1.0
        self.last_note_frequency = 0.0
        self.tuning_map = TuningMap()
        self.set_sample_rate(44100)

    def set_sample_rate(self, rate: int) -> None:
        """Set the sample rate of the limiter and every voice."""
        self.limiter.set_sample_rate(rate)
        for voice in self.voices:
            voice.set_sample_rate(rate)

    def _most_recent_key(self, held_only: bool = False) -> tuple[int, int]:
        note, latest = -1, 0
        for i, press in enumerate(self.key_presses):
            if latest < press and (not held_only or self.key_pressed[i] or self.sustain):
                latest, note = press, i
        return note, latest

    def _oldest_voice(self, released_only: bool) -> int:
        candidates = [
            i for i in range(_NOTE_COUNT)
            if self.active[i] and not (released_only and self.key_pressed[i])
        ]
        if not candidates:
            return -1
        return min(candidates, key=lambda i: (self.key_presses[i], i))

    def handle_midi_note_on(self, note: int, velocity: float) -> None:
        """Start a note with velocity in [0, 1]."""
        if not 0 <= note < _NOTE_COUNT:
            raise ValueError(f"note must be in 0..127, not {note}")
        if not self.should_play_note(note):
            return
        pitch = self.note_to_pitch(note)
        if pitch is None or pitch < 0:
            return

        portamento_time = self.portamento_time
        if self.portamento_mode is PortamentoMode.LEGATO and not any(self.key_pressed):
            portamento_time = 0.0

        self.key_pressed[note] = True

        if self.keyboard_mode is KeyboardMode.POLY:
            if self.max_voices and sum(self.active) >= self.max_voices:
                # Steal the oldest released voice, or failing that the oldest voice.
                idx = self._oldest_voice(released_only=True)
                if idx < 0:
                    idx = self._oldest_voice(released_only=False)
                self.active[idx] = False

            self.key_press_counter += 1
            self.key_presses[note] = self.key_press_counter

            voice = self.voices[note]
            if self.last_note_frequency > 0.0:
                voice.set_frequency(self.last_note_frequency, pitch, portamento_time)
            else:
                voice.set_frequency(pitch, pitch, 0.0)
            if voice.is_silent():
                voice.reset()
            voice.set_velocity(velocity)
            voice.trigger_on(True)
            self.active[note] = True
        else:
            previous_note, _ = self._most_recent_key()
            self.key_press_counter += 1
            self.key_presses[note] = self.key_press_counter

            voice = self.voices[0]
            voice.set_velocity(velocity)
            voice.set_frequency(voice.frequency, pitch, portamento_time)
            if self.keyboard_mode is KeyboardMode.MONO or previous_note == -1:
                voice.trigger_on(not self.active[0])
            self.active[0] = True

        self.last_note_frequency = pitch

    def handle_midi_note_off(self, note: int, velocity: float = 0.0) -> None:
        """Release a note, unless the sustain pedal holds it."""
        if not self.should_play_note(note):
            return
        self.key_pressed[note] = False
        if self.sustain:
            return

        if self.keyboard_mode is KeyboardMode.POLY:
            self.voices[note].trigger_off()
            return

        current_note, latest_press = self._most_recent_key()
        self.key_presses[note] = 0
        next_note, _ = self._most_recent_key(held_only=True)
        if not latest_press:
            self.key_press_counter = 0
        if note != current_note:
            return

        voice = self.voices[0]
        next_pitch = self.note_to_pitch(next_note) if next_note >= 0 else None
        if next_pitch is not None:
            voice.set_frequency(voice.frequency, next_pitch, self.portamento_time)
            if self.keyboard_mode is KeyboardMode.MONO:
                voice.trigger_on(False)
        else:
            voice.trigger_off()

    def handle_midi_pitch_wheel(self, value: float) -> None:
        """Set the pitch wheel position in [-1, 1]."""
        self.pitch_bend_value = 2.0 ** (value * self.pitch_bend_range_semitones / 12.0)

    def handle_midi_pitch_wheel_sensitivity(self, semitones: int) -> None:
        """Set the pitch wheel range in semitones."""
        self.pitch_bend_range_semitones = float(semitones)

    def handle_midi_all_sound_off(self) -> None:
        """Silence every voice immediately."""
        self.reset_all_voices()

    def handle_midi_all_notes_off(self) -> None:
        """Stop every note immediately."""
        self.reset_all_voices()

    def handle_midi_sustain_pedal(self, value: int) -> None:
        """Press (value > 0) or release the sustain pedal, releasing held notes."""
        self.sustain = value > 0
        if self.sustain:
            return
        for note in range(len(self.voices)):
            if not self.key_pressed[note] and self.key_presses[note] > 0:
                self.handle_midi_note_off(note, 0.0)

    def handle_midi_pan(self, left: float, right: float) -> None:
        """Set the gains of the left and right output channels."""
        self.pan_gain_left = left
        self.pan_gain_right = right

    def reset_all_voices(self) -> None:
        """Stop all voices and forget every key press and the pedal."""
        for i, voice in enumerate(self.voices):
            self.active[i] = False
            self.key_pressed[i] = False
            self.key_presses[i] = 0
            voice.reset()
        self.key_press_counter = 0
        self.sustain = False

    def set_keyboard_mode(self, mode: KeyboardMode) -> None:
        """Change the keyboard mode, resetting all voices if it differs."""
        mode = KeyboardMode(mode)
        if mode is not self.keyboard_mode:
            self.keyboard_mode = mode
            self.reset_all_voices()

    def process(self, frames: int) -> tuple[list[float], list[float]]:
        """Render up to 64 frames, returning the left and right channels."""
        if not 0 <= frames <= VoiceBoard.MAX_PROCESS_BUFFER_SIZE:
            raise ValueError(
                f"frames must be between 0 and {VoiceBoard.MAX_PROCESS_BUFFER_SIZE}, not {frames}"
            )
        if frames == 0:
            return [], []

        mix = [0.0] * frames
        for i, voice in enumerate(self.voices):
            if not self.active[i]:
                continue
            if voice.is_silent():
                self.active[i] = False
                continue
            voice.set_pitch_bend(self.pitch_bend_value)
            mix = [a + b for a, b in zip(mix, voice.process(frames, self.master_vol))]

        mix = self.distortion.process(mix)
        left = [x * self.pan_gain_left for x in mix]
        right = [x * self.pan_gain_right for x in mix]
        return self.limiter.process(left, right)

    def parameter_did_change(self, parameter: Parameter) -> None:
        """Apply a changed parameter to the global state or to every voice."""
        param = parameter.param_id
        value = parameter.control_value
        match param:
            case Param.MASTER_VOLUME:
                self.master_vol = value
            case Param.AMP_DISTORTION:
                self.distortion.set_crunch(value)
            case Param.PORTAMENTO_TIME:
                self.portamento_time = value
            case Param.KEYBOARD_MODE:
                self.set_keyboard_mode(KeyboardMode(int(value)))
            case Param.PORTAMENTO_MODE:
                self.portamento_mode = PortamentoMode(int(value))
            case _ if param in _GLOBAL_PARAMS:
                pass
            case _:
                for voice in self.voices:
                    voice.update_parameter(param, value)

    def should_play_note(self, note: int) -> bool:
        """True if the tuning's active range includes the note."""
        return self.tuning_map.in_active_range(note)

    def note_to_pitch(self, note: int) -> float | None:
        """The frequency of a note under the current tuning, or None if unmapped."""
        return self.tuning_map.note_to_pitch(note)

    def load_scale(self, filename: str | os.PathLike) -> None:
        """Load a Scala scale file into the tuning."""
        self.tuning_map.load_scale(filename)

    def load_key_map(self, filename: str | os.PathLike) -> None:
        """Load a Scala keyboard mapping file into the tuning."""
        self.tuning_map.load_key_map(filename)