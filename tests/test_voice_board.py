import pytest

from vasynth.parameter import Param, SPECS, Parameter
from vasynth.voice_board import VoiceBoard


def configured_voice():
    voice = VoiceBoard(44100)
    for param in Param:
        voice.update_parameter(param, Parameter(param).control_value)
    return voice


def test_new_voice_is_silent():
    assert VoiceBoard().is_silent() is True


def test_untriggered_voice_outputs_zeros():
    voice = configured_voice()
    voice.set_frequency(440.0, 440.0)
    out = voice.process(32, 1.0)
    assert out == [0.0] * 32


def test_triggered_voice_is_audible_and_not_silent():
    voice = configured_voice()
    voice.set_frequency(220.0, 220.0)
    voice.trigger_on(True)
    assert voice.is_silent() is False
    out = []
    for _ in range(20):
        out += voice.process(64, 1.0)
    assert len(out) == 1280
    assert max(abs(x) for x in out) > 0.0


def test_voice_becomes_silent_after_release():
    voice = configured_voice()
    voice.set_frequency(220.0, 220.0)
    voice.trigger_on(True)
    for _ in range(10):
        voice.process(64, 1.0)
    voice.trigger_off()
    for _ in range(40):
        voice.process(64, 1.0)
    assert voice.is_silent() is True


def test_zero_sustain_stays_quiet():
    voice = configured_voice()
    voice.update_parameter(Param.AMP_ENV_SUSTAIN, 0.0)
    voice.set_frequency(220.0, 220.0)
    voice.trigger_on(True)
    out = []
    for _ in range(5):
        out += voice.process(64, 1.0)
    assert max(abs(x) for x in out) == 0.0


@pytest.mark.parametrize("frames", [0, VoiceBoard.MAX_PROCESS_BUFFER_SIZE + 1])
def test_process_rejects_bad_block_sizes(frames):
    with pytest.raises(ValueError):
        VoiceBoard().process(frames, 1.0)


def test_velocity_above_one_rejected():
    with pytest.raises(ValueError):
        VoiceBoard().set_velocity(1.5)


def test_frequency_jumps_without_glide_time():
    voice = configured_voice()
    voice.set_frequency(220.0, 440.0, 0.0)
    voice.process(8, 1.0)
    assert voice.frequency == pytest.approx(440.0)


def test_frequency_glides_with_time():
    voice = configured_voice()
    voice.set_frequency(100.0, 200.0, 0.5)
    voice.process(64, 1.0)
    assert 100.0 < voice.frequency < 200.0


def test_invalid_lfo_waveform_rejected():
    voice = VoiceBoard()
    lfo_max = SPECS[Param.LFO_WAVEFORM].maximum
    with pytest.raises(ValueError):
        voice.update_parameter(Param.LFO_WAVEFORM, lfo_max + 1)


def test_unknown_parameter_rejected():
    with pytest.raises(ValueError):
        VoiceBoard().update_parameter(len(Param) + 5, 0.0)


def test_reset_after_release_stops_envelope():
    voice = configured_voice()
    voice.set_frequency(220.0, 220.0)
    voice.trigger_on(True)
    voice.reset()
    out = voice.process(64, 1.0)
    assert out == [0.0] * 64
    assert voice.is_silent() is True