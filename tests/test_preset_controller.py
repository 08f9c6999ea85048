import pytest

from vasynth.parameter import Param
from vasynth.preset import Preset, PresetFormatError
from vasynth.preset_controller import (
    PRESET_COUNT,
    PresetController,
    is_bank_file,
    read_bank_file,
)


def write_bank(path, names, sustain="0.5"):
    body = "".join(
        f"<preset> <name> {name}\n<parameter> amp_sustain {sustain}\n" for name in names
    )
    path.write_text("amSynth\n" + body + "EOF\n")
    return path


class Recorder:
    def __init__(self):
        self.count = 0

    def current_preset_did_change(self):
        self.count += 1


@pytest.fixture
def user_dir(tmp_path):
    directory = tmp_path / "user"
    directory.mkdir()
    return directory


def test_read_bank_file_fills_missing_presets(tmp_path):
    path = write_bank(tmp_path / "x.bank", ["Lead", "Bass"])
    presets = read_bank_file(path)
    assert len(presets) == PRESET_COUNT
    assert [p.name for p in presets[:2]] == ["Lead", "Bass"]
    assert presets[0].parameter(Param.AMP_ENV_SUSTAIN).value == 0.5
    assert all(p.name == "" for p in presets[2:])


def test_read_bank_file_value_forms(tmp_path):
    path = tmp_path / "x.bank"
    path.write_text(
        "amSynth\n<preset> <name> A\n<parameter> amp_sustain 2.5e-1\n"
        "<parameter> osc_mix -0.5\n"
    )
    preset = read_bank_file(path)[0]
    assert preset.parameter(Param.AMP_ENV_SUSTAIN).value == 0.25
    assert preset.parameter(Param.OSCILLATOR_MIX).value == -0.5


def test_read_bank_file_ignores_unterminated_last_line(tmp_path):
    path = tmp_path / "x.bank"
    path.write_text("amSynth\n<preset> <name> A\n<parameter> amp_sustain 0.5")
    preset = read_bank_file(path)[0]
    assert preset.name == "A"
    assert preset.parameter(Param.AMP_ENV_SUSTAIN).value == preset.parameter(
        Param.AMP_ENV_SUSTAIN
    ).default


def test_read_bank_file_errors(tmp_path):
    bad = tmp_path / "bad.bank"
    bad.write_text("notabank\n")
    with pytest.raises(PresetFormatError):
        read_bank_file(bad)
    orphan = tmp_path / "orphan.bank"
    orphan.write_text("amSynth\n<parameter> amp_sustain 0.5\n")
    with pytest.raises(PresetFormatError):
        read_bank_file(orphan)
    too_many = write_bank(tmp_path / "many.bank", [f"p{i}" for i in range(PRESET_COUNT + 1)])
    with pytest.raises(PresetFormatError):
        read_bank_file(too_many)


def test_is_bank_file(tmp_path):
    good = write_bank(tmp_path / "good.bank", ["A"])
    bad = tmp_path / "bad.txt"
    bad.write_text("hello")
    assert is_bank_file(good)
    assert not is_bank_file(bad)
    assert not is_bank_file(tmp_path)
    assert not is_bank_file(tmp_path / "missing")


def test_save_presets_format_and_round_trip(tmp_path):
    controller = PresetController()
    controller.preset(0).name = "First"
    controller.preset(0).parameter(Param.REVERB_WET).set_value(0.25)
    controller.preset(1).name = "unused"
    path = tmp_path / "out.bank"
    controller.save_presets(path)
    text = path.read_text()
    assert text.startswith("amSynth\n<preset> <name> First\n")
    assert text.endswith("EOF\n")
    assert text.count("<preset>") == PRESET_COUNT - 1
    presets = read_bank_file(path)
    assert presets[0].name == "First"
    assert presets[0].parameter(Param.REVERB_WET).value == 0.25
    assert controller.file_path == str(path)


def test_bank_scanning_and_default_selection(tmp_path, user_dir):
    factory = tmp_path / "factory"
    factory.mkdir()
    write_bank(factory / "my_sounds.bank", ["Factory"])
    write_bank(user_dir / "default", ["Mine"])
    (user_dir / "notes.txt").write_text("not a bank")
    controller = PresetController(user_dir, factory)
    banks = controller.preset_banks()
    assert [(b.name, b.read_only) for b in banks] == [("User bank", False), ("my sounds", True)]
    assert controller.current_preset_number == 0
    assert controller.current_preset.name == "Mine"
    assert controller.current_bank_number == 0


def test_falls_back_to_read_only_bank(tmp_path):
    factory = tmp_path / "factory"
    factory.mkdir()
    write_bank(factory / "f.bank", ["Only"])
    controller = PresetController(None, factory)
    assert controller.current_preset.name == "Only"


def test_no_banks():
    controller = PresetController()
    assert controller.preset_banks() == ()
    assert controller.current_preset_number == -1
    assert not controller.is_current_preset_modified
    with pytest.raises(IndexError):
        controller.commit_preset()


def test_select_preset_range_and_notify(user_dir):
    write_bank(user_dir / "a.bank", ["One", "Two"])
    controller = PresetController(user_dir)
    recorder = Recorder()
    controller.add_observer(recorder)
    controller.select_preset(1)
    assert controller.current_preset.name == "Two"
    assert recorder.count == 1
    with pytest.raises(IndexError):
        controller.select_preset(PRESET_COUNT)
    controller.remove_observer(recorder)
    controller.select_preset(0)
    assert recorder.count == 1
    assert controller.contains_preset_with_name("Two")
    assert not controller.contains_preset_with_name("Three")


def test_modified_and_commit(user_dir):
    write_bank(user_dir / "a.bank", ["One"])
    controller = PresetController(user_dir)
    assert not controller.is_current_preset_modified
    controller.current_preset.parameter(Param.REVERB_WET).set_value(0.25)
    assert controller.is_current_preset_modified
    controller.commit_preset()
    assert not controller.is_current_preset_modified
    assert controller.preset(0).parameter(Param.REVERB_WET).value == 0.25


def test_save_current_preset_writes_file(user_dir):
    path = write_bank(user_dir / "a.bank", ["One"])
    controller = PresetController(user_dir)
    controller.current_preset.parameter(Param.REVERB_WET).set_value(0.25)
    controller.save_current_preset()
    assert read_bank_file(path)[0].parameter(Param.REVERB_WET).value == 0.25


def test_clear_preset(user_dir):
    path = write_bank(user_dir / "a.bank", ["One"])
    controller = PresetController(user_dir)
    controller.clear_preset()
    assert controller.current_preset.name == ""
    saved = read_bank_file(path)[0]
    assert saved.is_equal(Preset())


def test_undo_redo_parameter_change():
    controller = PresetController()
    parameter = controller.current_preset.parameter(Param.AMP_ENV_SUSTAIN)
    original = parameter.value
    parameter.begin_edit()
    parameter.set_value(0.25)
    controller.undo_change()
    assert parameter.value == original
    controller.redo_change()
    assert parameter.value == 0.25
    controller.redo_change()
    assert parameter.value == 0.25


def test_undo_redo_randomise():
    controller = PresetController()
    before = controller.current_preset.to_string()
    controller.randomise_current_preset()
    randomised = controller.current_preset.to_string()
    assert randomised != before
    controller.undo_change()
    assert controller.current_preset.to_string() == before
    controller.redo_change()
    assert controller.current_preset.to_string() == randomised


def test_export_import(tmp_path):
    source = PresetController()
    source.current_preset.name = "Pad"
    source.current_preset.parameter(Param.OSCILLATOR_MIX).set_value(0.25)
    path = tmp_path / "pad.amSynthPreset"
    source.export_preset(path)
    target = PresetController()
    target.import_preset(path)
    assert target.current_preset.name == "Imported: Pad"
    assert target.current_preset.parameter(Param.OSCILLATOR_MIX).value == 0.25


def test_import_bad_file(tmp_path):
    path = tmp_path / "bad"
    path.write_text("garbage")
    with pytest.raises(PresetFormatError):
        PresetController().import_preset(path)


def test_select_bank(user_dir):
    write_bank(user_dir / "a.bank", ["Alpha"])
    write_bank(user_dir / "b.bank", ["Beta"])
    controller = PresetController(user_dir)
    assert controller.current_preset.name == "Alpha"
    banks = controller.preset_banks()
    controller.select_bank(1)
    assert controller.current_bank_number == 1
    assert controller.preset(0).name == "Beta"
    assert controller.file_path == banks[1].file_path
    controller.select_bank(5)
    assert controller.current_bank_number == 1


def test_create_user_bank(user_dir):
    controller = PresetController(user_dir)
    assert controller.create_user_bank("fresh")
    assert not controller.create_user_bank("fresh")
    assert is_bank_file(user_dir / "fresh.bank")
    controller.rescan_preset_banks()
    assert [b.name for b in controller.preset_banks()] == ["fresh"]
    with pytest.raises(ValueError):
        PresetController().create_user_bank("x")