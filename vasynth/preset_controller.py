"""Banks of presets stored in files, the preset being edited, and its undo history."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from gettext import gettext as _

from .parameter import Param, Parameter, ParameterObserver
from .preset import Preset, PresetFormatError

PRESET_COUNT = 128
BANK_HEADER = b"amSynth\n"
_PRESET_PREFIX = "<preset> <name> "
_PARAMETER_PREFIX = "<parameter> "


def _mtime(path: str) -> int:
    try:
        return os.stat(path).st_mtime_ns
    except (OSError, ValueError):
        return 0


def _float_from_string(text: str) -> float:
    """Parse a bank value: sign, digits and a decimal point, other characters ignored."""
    if "e" in text:
        return Parameter.value_from_string(text)
    result, factor = 0.0, 1.0
    if text.startswith("-"):
        text = text[1:]
        factor = -1.0
    point_seen = False
    for ch in text:
        if ch == ".":
            point_seen = True
            continue
        if "0" <= ch <= "9":
            if point_seen:
                factor /= 10.0
            result = result * 10.0 + (ord(ch) - ord("0"))
    return result * factor


def is_bank_file(path: str | os.PathLike) -> bool:
    """True if the file starts with the bank file header."""
    try:
        with open(path, "rb") as file:
            return file.read(len(BANK_HEADER)) == BANK_HEADER
    except OSError:
        return False


def read_bank_file(path: str | os.PathLike) -> list[Preset]:
    """Read the 128 presets of a bank file; missing presets are blank."""
    with open(path, "rb") as file:
        data = file.read()
    end = data.find(b"\0")
    if end >= 0:
        data = data[:end]
    if not data.startswith(BANK_HEADER):
        raise PresetFormatError(f"{os.fspath(path)} is not a bank file")

    # A final line without a newline is not part of the bank.
    lines = data[len(BANK_HEADER):].decode("utf-8", "surrogateescape").split("\n")[:-1]
    presets: list[Preset] = []
    for line in lines:
        if line.startswith(_PRESET_PREFIX):
            if len(presets) == PRESET_COUNT:
                raise PresetFormatError(f"{os.fspath(path)} holds more than {PRESET_COUNT} presets")
            presets.append(Preset(line[len(_PRESET_PREFIX):]))
        elif line.startswith(_PARAMETER_PREFIX):
            name, sep, value = line[len(_PARAMETER_PREFIX):].partition(" ")
            if not sep:
                continue
            if not presets:
                raise PresetFormatError("parameter found before any preset")
            try:
                parameter = presets[-1].parameter(name)
            except KeyError:
                raise PresetFormatError(f"unknown parameter {name!r}") from None
            parameter.set_value(_float_from_string(value))
    presets.extend(Preset() for _ in range(PRESET_COUNT - len(presets)))
    return presets


def _bank_display_name(file_name: str) -> str:
    name = _("User bank") if file_name == "default" else file_name.split(".", 1)[0]
    return name.replace("_", " ")


@dataclass
class BankInfo:
    """A bank file found on disk and the presets it holds."""

    name: str
    file_path: str
    read_only: bool
    presets: list[Preset] = field(
        default_factory=lambda: [Preset() for _ in range(PRESET_COUNT)]
    )


@dataclass
class _ParamChange:
    param: Param
    value: float


@dataclass
class _RandomiseChange:
    preset: Preset


class PresetController(ParameterObserver):
    """Holds a bank of presets, the preset being edited and its undo history.

    Observers are objects with a current_preset_did_change() method.
    """

    def __init__(
        self,
        user_banks_dir: str | os.PathLike | None = None,
        factory_banks_dir: str | os.PathLike | None = None,
    ) -> None:
        self.user_banks_dir = None if user_banks_dir is None else os.fspath(user_banks_dir)
        self.factory_banks_dir = (
            None if factory_banks_dir is None else os.fspath(factory_banks_dir)
        )
        self.file_path = ""
        self.current_bank_number = -1
        self.current_preset_number = -1
        self._observers: list[object] = []
        self._presets = [Preset() for _ in range(PRESET_COUNT)]
        self._current = Preset()
        self._blank = Preset()
        self._last_mtime = 0
        self._undo: list[_ParamChange | _RandomiseChange] = []
        self._redo: list[_ParamChange | _RandomiseChange] = []
        self._banks: list[BankInfo] = []

        # Start on the first writable bank, falling back to the first read-only one.
        banks = self.preset_banks()
        if banks:
            bank = next((b for b in banks if not b.read_only), banks[0])
            self.load_presets(bank.file_path)
            self.select_preset(0)

        self._current.add_observer(self)

    @property
    def current_preset(self) -> Preset:
        """The preset being edited."""
        return self._current

    @property
    def is_current_preset_modified(self) -> bool:
        """True if the edited preset differs from the one it was selected from."""
        number = self.current_preset_number
        return number != -1 and not self._current.is_equal(self._presets[number])

    def _check_number(self, number: int) -> int:
        if not 0 <= number < PRESET_COUNT:
            raise IndexError(f"preset number out of range: {number}")
        return number

    def select_preset(self, number: int) -> None:
        """Make a preset of the bank the one being edited."""
        self._check_number(number)
        self.current_preset_number = number
        self._current.assign_from(self._presets[number])
        self.notify()
        self._clear_history()

    def set_current_preset(self, preset: Preset) -> None:
        """Edit a copy of a preset without changing the selected preset number."""
        self._current.assign_from(preset)

    def preset(self, number: int) -> Preset:
        """A preset of the bank in memory."""
        return self._presets[self._check_number(number)]

    def contains_preset_with_name(self, name: str) -> bool:
        """True if any preset in the bank has this name."""
        return any(preset.name == name for preset in self._presets)

    def commit_preset(self) -> None:
        """Store the edited preset into the bank in memory."""
        if not 0 <= self.current_preset_number < PRESET_COUNT:
            raise IndexError("no preset is selected")
        self._presets[self.current_preset_number].assign_from(self._current)
        self.notify()

    def save_current_preset(self) -> None:
        """Commit the edited preset and write the bank file."""
        self.load_presets()  # pick up changes made by other instances
        self.commit_preset()
        self.save_presets()

    def clear_preset(self) -> None:
        """Reset the edited preset to defaults with no name, and save the bank."""
        self.load_presets()
        self._current.assign_from(self._blank)
        self.commit_preset()
        self.save_presets()
        self._clear_history()

    def parameter_begin_edit(self, parameter: Parameter) -> None:
        """Record the value a parameter had before an edit, for undo."""
        self._undo.append(_ParamChange(parameter.param_id, parameter.value))
        self._redo.clear()

    def _snapshot(self) -> Preset:
        return Preset().assign_from(self._current)

    def _apply(self, change: _ParamChange | _RandomiseChange, record: list) -> None:
        if isinstance(change, _ParamChange):
            parameter = self._current.parameter(change.param)
            record.append(_ParamChange(change.param, parameter.value))
            parameter.set_value(change.value)
        else:
            record.append(_RandomiseChange(self._snapshot()))
            self._current.assign_from(change.preset)

    def undo_change(self) -> None:
        """Revert the most recent change; nothing happens if there is none."""
        if self._undo:
            self._apply(self._undo.pop(), self._redo)

    def redo_change(self) -> None:
        """Reapply the most recently undone change; nothing happens if there is none."""
        if self._redo:
            self._apply(self._redo.pop(), self._undo)

    def randomise_current_preset(self) -> None:
        """Randomise the edited preset, recording it for undo."""
        self._undo.append(_RandomiseChange(self._snapshot()))
        self._redo.clear()
        self._current.randomise()

    def _clear_history(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def export_preset(self, filename: str | os.PathLike) -> None:
        """Write the edited preset to a file."""
        with open(filename, "w", encoding="utf-8", errors="surrogateescape") as file:
            file.write(self._current.to_string())

    def import_preset(self, filename: str | os.PathLike) -> None:
        """Read a preset file into the edited preset."""
        with open(filename, encoding="utf-8", errors="surrogateescape") as file:
            text = file.read()
        self._current.from_string(text)
        self._current.name = "Imported: " + self._current.name
        self.notify()
        self._clear_history()

    def load_presets(self, filename: str | os.PathLike | None = None) -> None:
        """Read a bank file, unless it is the current one and has not changed."""
        path = self.file_path if filename is None else os.fspath(filename)
        mtime = _mtime(path)
        if path == self.file_path and self._last_mtime == mtime:
            return
        self._presets = read_bank_file(path)
        self.current_bank_number = next(
            (i for i, bank in enumerate(self.preset_banks()) if bank.file_path == path), -1
        )
        self._last_mtime = mtime
        self.file_path = path

    def save_presets(self, filename: str | os.PathLike | None = None) -> None:
        """Write the bank to a file; presets named "unused" are left out."""
        path = self.file_path if filename is None else os.fspath(filename)
        lines = ["amSynth"]
        for preset in self._presets:
            if preset.name == "unused":
                continue
            lines.append(f"{_PRESET_PREFIX}{preset.name}")
            lines.extend(f"{_PARAMETER_PREFIX}{p.name} {p.value:g}" for p in preset)
        lines.append("EOF")
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as file:
            file.write("\n".join(lines) + "\n")
        self._last_mtime = _mtime(path)
        self.file_path = path

    def select_bank(self, bank_number: int) -> None:
        """Switch to a scanned bank; unknown or current bank numbers are ignored."""
        banks = self.preset_banks()
        if not 0 <= bank_number < len(banks) or bank_number == self.current_bank_number:
            return
        bank = banks[bank_number]
        for mine, theirs in zip(self._presets, bank.presets):
            mine.assign_from(theirs)
        self.current_bank_number = bank_number
        self.file_path = bank.file_path
        self._last_mtime = _mtime(bank.file_path)

    def add_observer(self, observer: object) -> None:
        """Register an object to be told when the current preset changes."""
        if not any(o is observer for o in self._observers):
            self._observers.append(observer)

    def remove_observer(self, observer: object) -> None:
        """Unregister an observer; unknown observers are ignored."""
        self._observers = [o for o in self._observers if o is not observer]

    def notify(self) -> None:
        """Tell every observer that the current preset changed."""
        for observer in list(self._observers):
            observer.current_preset_did_change()

    def preset_banks(self) -> tuple[BankInfo, ...]:
        """The bank files found in the user and factory directories, user banks first."""
        if not self._banks:
            self.rescan_preset_banks()
        return tuple(self._banks)

    def rescan_preset_banks(self) -> None:
        """Look for bank files again."""
        banks: list[BankInfo] = []
        if self.user_banks_dir is not None:
            banks.extend(self._scan_directory(self.user_banks_dir, read_only=False))
        if self.factory_banks_dir is not None and self.factory_banks_dir != self.user_banks_dir:
            banks.extend(self._scan_directory(self.factory_banks_dir, read_only=True))
        self._banks = banks

    @staticmethod
    def _scan_directory(directory: str, read_only: bool) -> list[BankInfo]:
        try:
            names = sorted(os.listdir(directory))
        except OSError:
            return []
        banks = []
        for name in names:
            path = os.path.join(directory, name)
            if not is_bank_file(path):
                continue
            try:
                presets = read_bank_file(path)
            except (OSError, PresetFormatError):
                continue
            banks.append(BankInfo(_bank_display_name(name), path, read_only, presets))
        return banks

    def create_user_bank(self, name: str) -> bool:
        """Create an empty bank file in the user directory; False if it exists or fails."""
        if self.user_banks_dir is None:
            raise ValueError("no user bank directory is configured")
        path = os.path.join(self.user_banks_dir, name + ".bank")
        if os.path.exists(path):
            return False
        try:
            with open(path, "x", encoding="utf-8", newline="\n") as file:
                file.write("amSynth\nEOF\n")
        except OSError:
            return False
        return True