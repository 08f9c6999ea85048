# vasynth

`vasynth` holds the building blocks of a two-oscillator subtractive
synthesizer, written in pure Python with no dependencies outside the
standard library: DSP units, a complete voice, polyphonic voice
allocation, parameters, presets and preset banks, and Scala-format
microtonal tuning. Audio is passed around as plain lists of floats.

## What is inside

| Module | Contents |
| --- | --- |
| `vasynth.smoothing` | `Lerper`, `IIRFilterFirstOrder`, `FilterMode`, `ParamSmoother`, `SmoothedParam`: ramps and smoothers for gliding values and de-zippering parameter changes |
| `vasynth.envelope` | `ADSR` envelope generator and its `EnvelopeState` |
| `vasynth.effects` | `Distortion` (waveshaping) and `SoftLimiter` (stereo peak limiter) |
| `vasynth.filter` | `SynthFilter`: a resonant biquad low-pass, high-pass, band-pass, notch or bypass filter (`FilterType`) at 12 or 24 dB/octave (`FilterSlope`) |
| `vasynth.parameter` | `Param`, `Parameter`, `ParameterSpec`, `ParameterLaw`, `ParameterObserver` and lookup and display helpers |
| `vasynth.oscillator` | `Oscillator` with sine, pulse, saw, noise and sample-and-hold `Waveform`s, plus hard sync |
| `vasynth.voice_board` | `VoiceBoard`: one voice with an LFO (`LFOWaveform`), two oscillators, filter, two envelopes and an amplifier |
| `vasynth.tuning` | `TuningMap`: Scala `.scl` scales and `.kbm` keyboard maps; invalid files raise `TuningError` |
| `vasynth.voice_allocation` | `VoiceAllocationUnit`: poly, mono and legato allocation (`KeyboardMode`), portamento (`PortamentoMode`), sustain pedal, pitch bend, pan, distortion and limiting |
| `vasynth.preset` | `Preset`: a named set of parameter values with a text form; malformed text raises `PresetFormatError` |
| `vasynth.preset_controller` | `PresetController`, `BankInfo`, `read_bank_file`, `is_bank_file`: banks of 128 presets on disk, undo and redo, import and export |

## Parameters

Every sound-shaping control is a `Parameter` identified by a `Param`.
Each has a range, a default, an optional step and a `ParameterLaw`
(linear, exponential or power) that turns its stored value into the
`control_value` used by the DSP code. Setting a value clamps it to the
range, quantises it to the step and notifies the registered
`ParameterObserver`s.

```python
from vasynth.parameter import (
    Param,
    Parameter,
    get_parameter_properties,
    parameter_get_display,
    parameter_get_value_strings,
    parameter_index_from_name,
    parameter_name_from_index,
)

parameter_name_from_index(0)                    # "amp_attack"
index = parameter_index_from_name("filter_type")  # Param.FILTER_TYPE
parameter_get_value_strings(index)              # ("low pass", "high pass", ...)
parameter_get_display(index, 0.0)               # "low pass"
get_parameter_properties(index)                 # (minimum, maximum, default, step)

cutoff = Parameter(Param.FILTER_CUTOFF)
cutoff.set_normalised_value(0.5)
cutoff.midi_value                               # 64
```

An unknown name gives `None` from `parameter_index_from_name`, and an
out-of-range index gives `None` from `parameter_name_from_index` and
`parameter_get_value_strings`.

## Playing notes

A `VoiceAllocationUnit` owns one `VoiceBoard` per MIDI note number. It is
a `ParameterObserver`, so registering it with a `Preset` pushes every
parameter value into the voices and keeps them up to date:

```python
from vasynth.preset import Preset
from vasynth.voice_allocation import VoiceAllocationUnit

engine = VoiceAllocationUnit()
engine.set_sample_rate(48000)

preset = Preset("init")
preset.add_observer(engine)

engine.handle_midi_note_on(69, 1.0)     # A4 at full velocity
left, right = engine.process(64)        # at most 64 frames per call
engine.handle_midi_note_off(69)
```

`handle_midi_pitch_wheel`, `handle_midi_sustain_pedal`, `handle_midi_pan`,
`handle_midi_all_notes_off` and the other handlers take already-decoded
values, not raw MIDI bytes. `max_voices` limits polyphony (0 means no
limit); when the limit is reached the oldest released voice is stolen,
or failing that the oldest voice.

## Presets and banks

A `Preset` holds one value per parameter. `to_string()` writes a short
text form beginning with `amSynth1.0preset`, and `from_string()` reads it
back. `set_parameter_locked()` and `set_locked_parameter_names()` lock
parameters so that `assign_from()` leaves them untouched.

A `PresetController` keeps a bank of 128 presets in memory, backed by an
`amSynth` bank file. It is given the directories to look for banks in:

```python
from vasynth.preset_controller import PresetController

controller = PresetController(user_banks_dir="banks")
controller.load_presets("banks/default")
controller.select_preset(3)
controller.current_preset.parameter("filter_cutoff").set_value(0.5)
controller.save_current_preset()
```

It offers undo and redo for edits recorded through
`Parameter.begin_edit()` and for `randomise_current_preset()`, and
`export_preset()` / `import_preset()` for single preset files.
`read_bank_file()` and `is_bank_file()` read bank files directly.

## Tuning

`TuningMap` starts as twelve-tone equal temperament with MIDI note 69 at
440 Hz. `load_scale()` reads a Scala scale and `load_key_map()` a
keyboard mapping; `note_to_pitch(note)` then gives the frequency in Hz,
or `None` for an unmapped key, and `in_active_range(note)` tells whether
the mapping lets the note sound. `VoiceAllocationUnit` has its own
`tuning_map` and `load_scale()` / `load_key_map()` methods.

## Building blocks on their own

The DSP units work independently of the engine:

```python
from vasynth.envelope import ADSR
from vasynth.oscillator import Oscillator, Waveform

env = ADSR()
env.attack = 0.01
env.trigger_on()
block = env.process(64)

osc = Oscillator(rate=44100)
osc.waveform = Waveform.SAW
samples = osc.process(64, 220.0, 0.0)
```

## What the package does not do

- It does not parse raw MIDI byte streams or map MIDI controller numbers
  to parameters; callers decode MIDI themselves and call the
  `VoiceAllocationUnit` handlers.
- There is no single top-level synthesizer object that splits a buffer
  around timed MIDI events or saves and restores whole engine state.
- It has no reverb: the reverb parameters exist and are stored in presets,
  but `VoiceAllocationUnit` ignores them.
- It does not open audio or MIDI devices and has no command-line program.

## Running the tests

Install the `test` extra and run `pytest`.