import pytest

from vasynth.envelope import ADSR, EnvelopeState


def make_env(attack=0.01, decay=0.01, sustain=0.5, release=0.01):
    env = ADSR()
    env.sample_rate = 1000
    env.attack = attack
    env.decay = decay
    env.sustain = sustain
    env.release = release
    return env


def test_initially_off_and_silent():
    env = ADSR()
    assert not env.active
    assert env.process(16) == [0.0] * 16


def test_attack_rises_to_peak_then_decays_to_sustain():
    env = make_env()
    env.trigger_on()
    assert env.state is EnvelopeState.ATTACK
    attack = env.process(10)
    assert attack[0] == 0.0
    assert all(a < b for a, b in zip(attack, attack[1:]))
    assert env.value == pytest.approx(1.0)
    assert env.state is EnvelopeState.DECAY
    decay = env.process(10)
    assert all(a > b for a, b in zip(decay, decay[1:]))
    assert env.state is EnvelopeState.SUSTAIN
    sustain = env.process(50)
    assert all(v == pytest.approx(0.5) for v in sustain)


def test_release_reaches_off():
    env = make_env()
    env.trigger_on()
    env.process(40)
    env.trigger_off()
    assert env.state is EnvelopeState.RELEASE
    rel = env.process(10)
    assert all(a > b for a, b in zip(rel, rel[1:]))
    assert not env.active
    assert env.value == 0.0
    assert env.process(5) == [0.0] * 5


def test_short_decay_attacks_straight_to_sustain():
    env = make_env(decay=0.0)
    env.trigger_on()
    env.process(10)
    assert env.value == pytest.approx(0.5)


def test_changing_sustain_in_sustain_stage_is_immediate():
    env = make_env()
    env.trigger_on()
    env.process(30)
    assert env.state is EnvelopeState.SUSTAIN
    env.sustain = 0.25
    assert env.value == 0.25


def test_reset_turns_off():
    env = make_env()
    env.trigger_on()
    env.process(5)
    env.reset()
    assert env.state is EnvelopeState.OFF
    assert env.value == 0.0


def test_chunked_processing_matches_single_block():
    a = make_env()
    b = make_env()
    a.trigger_on()
    b.trigger_on()
    whole = a.process(64)
    parts = b.process(7) + b.process(20) + b.process(37)
    assert parts == pytest.approx(whole)


def test_zero_times_do_not_fail():
    env = make_env(attack=0.0, decay=0.0, sustain=1.0, release=0.0)
    env.trigger_on()
    out = env.process(4)
    assert len(out) == 4
    assert env.state is EnvelopeState.SUSTAIN
    env.trigger_off()
    env.process(1)
    assert not env.active