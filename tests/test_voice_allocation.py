import pytest

from vasynth.parameter import Param, Parameter
from vasynth.tuning import TuningError
from vasynth.voice_allocation import KeyboardMode, PortamentoMode, VoiceAllocationUnit


@pytest.fixture
def vau():
    return VoiceAllocationUnit()


def test_process_silence_without_notes(vau):
    left, right = vau.process(32)
    assert left == [0.0] * 32
    assert right == [0.0] * 32


def test_note_on_produces_sound(vau):
    vau.handle_midi_note_on(69, 1.0)
    assert vau.active[69]
    assert vau.key_pressed[69]
    left, right = vau.process(64)
    assert len(left) == 64
    assert any(abs(x) > 0 for x in left)


def test_note_off_clears_key(vau):
    vau.handle_midi_note_on(60, 1.0)
    vau.handle_midi_note_off(60, 0.0)
    assert not vau.key_pressed[60]


def test_invalid_note_raises(vau):
    with pytest.raises(ValueError):
        vau.handle_midi_note_on(128, 1.0)


def test_process_too_many_frames(vau):
    with pytest.raises(ValueError):
        vau.process(65)


def test_voice_stealing(vau):
    vau.max_voices = 2
    for note in (60, 61, 62):
        vau.handle_midi_note_on(note, 1.0)
    assert sum(vau.active) == 2
    assert not vau.active[60]
    vau.handle_midi_note_off(61, 0.0)
    vau.handle_midi_note_on(63, 1.0)
    assert not vau.active[61]
    assert vau.active[62] and vau.active[63]


def test_pitch_wheel(vau):
    vau.handle_midi_pitch_wheel(0.0)
    assert vau.pitch_bend_value == pytest.approx(1.0)
    vau.handle_midi_pitch_wheel_sensitivity(12)
    vau.handle_midi_pitch_wheel(1.0)
    assert vau.pitch_bend_value == pytest.approx(2.0)


def test_sustain_holds_note(vau):
    vau.handle_midi_note_on(60, 1.0)
    vau.handle_midi_sustain_pedal(127)
    vau.handle_midi_note_off(60, 0.0)
    vau.process(64)
    assert not vau.voices[60].is_silent()
    assert vau.active[60]


def test_sustain_release_releases_note(vau):
    vau.handle_midi_note_on(60, 1.0)
    vau.handle_midi_sustain_pedal(127)
    vau.handle_midi_note_off(60, 0.0)
    vau.handle_midi_sustain_pedal(0)
    assert not vau.sustain
    vau.process(64)
    assert vau.voices[60].is_silent()


def test_all_notes_off(vau):
    for note in (60, 64, 67):
        vau.handle_midi_note_on(note, 1.0)
    vau.handle_midi_all_notes_off()
    assert not any(vau.active)
    assert not any(vau.key_pressed)
    assert vau.key_press_counter == 0


def test_mono_returns_to_held_note(vau):
    vau.set_keyboard_mode(KeyboardMode.MONO)
    vau.handle_midi_note_on(60, 1.0)
    vau.handle_midi_note_on(62, 1.0)
    vau.handle_midi_note_off(62, 0.0)
    vau.process(1)
    assert vau.active[0]
    assert vau.voices[0].frequency == pytest.approx(vau.note_to_pitch(60))


def test_keyboard_mode_change_resets(vau):
    vau.handle_midi_note_on(60, 1.0)
    parameter = Parameter(Param.KEYBOARD_MODE)
    parameter.set_value(1.0)
    vau.parameter_did_change(parameter)
    assert vau.keyboard_mode is KeyboardMode.MONO
    assert not any(vau.active)


def test_parameter_did_change_master_volume(vau):
    parameter = Parameter(Param.MASTER_VOLUME)
    parameter.set_value(0.5)
    vau.parameter_did_change(parameter)
    assert vau.master_vol == pytest.approx(parameter.control_value)


def test_parameter_did_change_portamento_mode(vau):
    parameter = Parameter(Param.PORTAMENTO_MODE)
    parameter.set_value(1.0)
    vau.parameter_did_change(parameter)
    assert vau.portamento_mode is PortamentoMode.LEGATO


def test_pan_hard_left(vau):
    vau.handle_midi_pan(1.0, 0.0)
    vau.handle_midi_note_on(69, 1.0)
    left, right = vau.process(64)
    assert all(x == 0 for x in right)
    assert any(abs(x) > 0 for x in left)


def test_note_outside_key_map_range_ignored(vau, tmp_path):
    path = tmp_path / "range.kbm"
    path.write_text("< 60 72\n0\n0\n127\n60\n69\n440.0\n1\n12\n")
    path.write_text("< 60 72\n12\n0\n127\n60\n69\n440.0\n12\n0\n1\n2\n3\n4\n5\n6\n7\n8\n9\n10\n11\n")
    vau.load_key_map(path)
    vau.handle_midi_note_on(10, 1.0)
    assert not vau.active[10]
    vau.handle_midi_note_on(65, 1.0)
    assert vau.active[65]


def test_load_scale_error(vau, tmp_path):
    path = tmp_path / "bad.scl"
    path.write_text("Bad\n2\n3/2\n")
    with pytest.raises(TuningError):
        vau.load_scale(path)


def test_note_to_pitch_reference(vau):
    assert vau.note_to_pitch(69) == pytest.approx(440.0)
    assert vau.should_play_note(0)