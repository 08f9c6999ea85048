import pytest

from vasynth.smoothing import (
    FilterMode,
    IIRFilterFirstOrder,
    Lerper,
    ParamSmoother,
    SmoothedParam,
)


def test_lerper_starts_at_start_and_ends_at_final():
    lerper = Lerper()
    lerper.configure(0.0, 10.0, 5)
    values = [lerper.next_value() for _ in range(8)]
    assert values[0] == 0.0
    assert values[5] == pytest.approx(10.0)
    assert values[-1] == pytest.approx(10.0)
    assert all(a <= b for a, b in zip(values, values[1:]))


def test_lerper_zero_steps_jumps_to_final():
    lerper = Lerper()
    lerper.configure(3.0, 7.0, 0)
    assert lerper.value == 7.0
    assert lerper.next_value() == 7.0
    assert lerper.final_value == 7.0


def test_lerper_value_does_not_advance_without_next():
    lerper = Lerper()
    lerper.configure(1.0, 2.0, 4)
    first = lerper.value
    second = lerper.value
    assert first == 1.0
    assert second == 1.0
    assert lerper.next_value() == 1.0
    assert lerper.value == pytest.approx(1.25)


def test_lowpass_passes_dc():
    f = IIRFilterFirstOrder()
    f.set_coefficients(44100, 1000, FilterMode.LOW_PASS)
    assert f.a0 + f.b1 == pytest.approx(1.0)
    out = f.process_buffer([1.0] * 5000)
    assert out[-1] == pytest.approx(1.0, abs=1e-6)


def test_highpass_blocks_dc():
    f = IIRFilterFirstOrder()
    f.set_coefficients(44100, 1000, FilterMode.HIGH_PASS)
    out = f.process_buffer([1.0] * 5000)
    assert abs(out[-1]) < 1e-6
    assert out[0] > out[-1]


def test_process_buffer_matches_process_sample():
    a = IIRFilterFirstOrder()
    b = IIRFilterFirstOrder()
    for f in (a, b):
        f.set_coefficients(48000, 4000, FilterMode.LOW_PASS)
    data = [0.5, -0.2, 0.9, 0.0, 0.3]
    assert a.process_buffer(data) == [b.process_sample(x) for x in data]


def test_param_smoother_moves_towards_target_without_overshoot():
    s = ParamSmoother(0.0)
    values = [s.process_sample(1.0) for _ in range(2000)]
    assert all(0.0 < v < 1.0 for v in values)
    assert all(a < b for a, b in zip(values, values[1:]))
    assert values[-1] == pytest.approx(1.0, abs=1e-3)


def test_param_smoother_set_jumps():
    s = ParamSmoother(0.0)
    s.set(0.75)
    assert s.value == 0.75
    assert s.process_sample(0.75) == 0.75


def test_smoothed_param_tick_and_reset():
    p = SmoothedParam(1.0)
    assert p.tick() == 1.0
    p.raw_value = 0.5
    first = p.tick()
    assert 0.5 < first < 1.0
    p.reset()
    assert p.tick() == 0.5