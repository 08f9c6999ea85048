"""Microtonal tuning from Scala scale (.scl) and keyboard mapping (.kbm) files."""

from __future__ import annotations

import os
import re

_NOTE_COUNT = 128

_INT = re.compile(r"\s*([+-]?\d+)")
_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_RATIO = re.compile(r"\s*([+-]?\d+)\s*/\s*([+-]?\d+)")


class TuningError(ValueError):
    """Raised when a scale or keyboard mapping file cannot be read or is invalid."""


def _scan_int(text: str) -> tuple[int, str] | None:
    match = _INT.match(text)
    if match is None:
        return None
    return int(match.group(1)), text[match.end():]


def _scan_float(text: str) -> float | None:
    match = _FLOAT.match(text)
    return None if match is None else float(match.group(1))


def _parse_scala_line(line: str) -> float:
    """Convert one scale degree to a frequency ratio relative to 1/1; -1 if unreadable."""
    if "." not in line:
        match = _RATIO.match(line)
        if match is None:
            return -1.0
        numerator, denominator = int(match.group(1)), int(match.group(2))
        if numerator <= 0 or denominator <= 0:
            return -1.0
        return numerator / denominator
    cents = _scan_float(line)
    if cents is None:
        return -1.0
    return 2.0 ** (cents / 1200.0)


def _read_lines(filename: str | os.PathLike) -> list[str]:
    try:
        with open(filename, encoding="utf-8", errors="replace") as file:
            return file.read().split("\n")
    except OSError as exc:
        raise TuningError(f"cannot read {os.fspath(filename)}: {exc}") from exc


class TuningMap:
    """Maps MIDI note numbers to frequencies through a key map and a scale.

    The key map takes MIDI notes to scale degrees; the scale takes degrees to
    pitches. The default is twelve-tone equal temperament with A4 at 440 Hz.
    """

    def __init__(self) -> None:
        self.scale_file = ""
        self.key_map_file = ""
        self._scale: list[float] = []
        self._mapping: list[int | None] = []
        self._zero_note = 0
        self._ref_note = 69
        self._ref_pitch = 440.0
        self._map_repeat_inc = 1
        self._active = [False] * _NOTE_COUNT
        self._base_pitch = 1.0
        self.default_scale()
        self.default_key_map()

    @property
    def is_default(self) -> bool:
        """True if neither a scale nor a key map has been loaded from a file."""
        return not self.scale_file and not self.key_map_file

    def default_scale(self) -> None:
        """Use twelve-tone equal temperament."""
        self._scale = [2.0 ** (i / 12.0) for i in range(1, 13)]
        self._update_base_pitch()

    def default_key_map(self) -> None:
        """Map every key to consecutive scale degrees, with note 69 at 440 Hz."""
        self._zero_note = 0
        self._ref_note = 69
        self._ref_pitch = 440.0
        self._map_repeat_inc = 1
        self._mapping = [0]
        self._activate_range(0, _NOTE_COUNT - 1)
        self._update_base_pitch()

    def _update_base_pitch(self) -> None:
        if not self._mapping:
            return
        self._base_pitch = 1.0
        self._base_pitch = self._ref_pitch / self.note_to_pitch(self._ref_note)

    def _activate_range(self, low: int, high: int) -> None:
        for note in range(low, high + 1):
            self._active[note] = True

    @staticmethod
    def _check_note(note: int) -> None:
        if not 0 <= note < _NOTE_COUNT:
            raise ValueError(f"note must be in 0..127, not {note}")

    def note_to_pitch(self, note: int) -> float | None:
        """The frequency in Hz of a MIDI note, or None if the key is unmapped."""
        self._check_note(note)
        repeats, map_index = divmod(note - self._zero_note, len(self._mapping))
        mapped = self._mapping[map_index]
        if mapped is None:
            return None
        degree = repeats * self._map_repeat_inc + mapped
        octaves, scale_index = divmod(degree, len(self._scale))
        pitch = self._base_pitch * self._scale[-1] ** octaves
        if scale_index:
            pitch *= self._scale[scale_index - 1]
        return pitch

    def in_active_range(self, note: int) -> bool:
        """True if the key map lets this note sound."""
        self._check_note(note)
        return self._active[note]

    def load_scale(self, filename: str | os.PathLike) -> None:
        """Load a Scala scale file, raising TuningError if it is invalid."""
        got_description = False
        scale_size: int | None = None
        new_scale: list[float] = []

        for line in _read_lines(filename):
            stripped = line.lstrip()
            if stripped.startswith("!"):
                continue
            if not stripped and got_description:
                continue
            if not got_description:
                got_description = True
            elif scale_size is None:
                scanned = _scan_int(line)
                if scanned is None or scanned[0] < 0:
                    raise TuningError(f"invalid note count in {os.fspath(filename)}: {line!r}")
                scale_size = scanned[0]
            else:
                new_scale.append(_parse_scala_line(line))

        if not got_description or scale_size is None or len(new_scale) != scale_size:
            raise TuningError(f"{os.fspath(filename)} does not hold a complete scale")
        if not new_scale:
            raise TuningError(f"{os.fspath(filename)} defines a scale with no notes")

        self.scale_file = os.fspath(filename)
        self._scale = new_scale
        self._update_base_pitch()

    def load_key_map(self, filename: str | os.PathLike) -> None:
        """Load a Scala keyboard mapping file, raising TuningError if it is invalid.

        The active note range is cleared before the file is read.
        """
        name = os.fspath(filename)
        self._active = [False] * _NOTE_COUNT
        range_declared = False

        int_field = (lambda low, high: lambda text: _checked_int(text, low, high))
        fields = (
            ("map size", int_field(0, None)),
            ("first note", int_field(0, _NOTE_COUNT - 1)),
            ("last note", int_field(0, _NOTE_COUNT - 1)),
            ("zero note", int_field(0, _NOTE_COUNT - 1)),
            ("reference note", int_field(0, _NOTE_COUNT - 1)),
            ("reference frequency", _checked_positive_float),
            ("octave degree", int_field(0, None)),
        )
        header: list[float] = []
        new_mapping: list[int | None] = []

        for line in _read_lines(filename):
            stripped = line.lstrip()
            if not stripped or stripped.startswith("!"):
                continue
            if stripped.startswith("<"):
                low, high = _parse_range(stripped)
                if low is None or not (0 <= low <= high < _NOTE_COUNT):
                    raise TuningError(f"invalid note range in {name}: {line!r}")
                range_declared = True
                self._activate_range(low, high)
            elif len(header) < len(fields):
                field_name, parse = fields[len(header)]
                value = parse(line)
                if value is None:
                    raise TuningError(f"invalid {field_name} in {name}: {line!r}")
                header.append(value)
            elif stripped[0].lower() == "x":
                new_mapping.append(None)
            else:
                entry = _checked_int(line, 0, None)
                if entry is None:
                    raise TuningError(f"invalid mapping entry in {name}: {line!r}")
                new_mapping.append(entry)

        if len(header) < len(fields):
            raise TuningError(f"{name} does not hold a complete keyboard mapping")

        map_size, _first, _last, zero_note, ref_note, ref_pitch, repeat_inc = header
        map_size, zero_note, ref_note, repeat_inc = (
            int(map_size), int(zero_note), int(ref_note), int(repeat_inc)
        )

        if map_size == 0:
            # An empty map means a linear mapping of keys to scale degrees.
            if new_mapping:
                raise TuningError(f"{name} has mapping entries but a map size of 0")
            self.key_map_file = name
            self._zero_note = zero_note
            self._ref_note = ref_note
            self._ref_pitch = ref_pitch
            self._map_repeat_inc = 1
            self._mapping = [0]
            self._update_base_pitch()
            return

        # Surplus entries are ignored; missing ones are unmapped.
        new_mapping = (new_mapping + [None] * map_size)[:map_size]
        if new_mapping[(ref_note - zero_note) % map_size] is None:
            raise TuningError(f"the reference note of {name} is not mapped")

        self.key_map_file = name
        self._zero_note = zero_note
        self._ref_note = ref_note
        self._ref_pitch = ref_pitch
        self._map_repeat_inc = repeat_inc if repeat_inc else map_size
        if not range_declared:
            self._activate_range(0, _NOTE_COUNT - 1)
        self._mapping = new_mapping
        self._update_base_pitch()


def _checked_int(text: str, low: int, high: int | None) -> int | None:
    scanned = _scan_int(text)
    if scanned is None:
        return None
    value = scanned[0]
    if value < low or (high is not None and value > high):
        return None
    return value


def _checked_positive_float(text: str) -> float | None:
    value = _scan_float(text)
    return value if value is not None and value > 0 else None


def _parse_range(text: str) -> tuple[int | None, int]:
    parts = text.split(None, 1)
    rest = parts[1] if len(parts) > 1 else ""
    first = _scan_int(rest)
    if first is None:
        return None, 0
    second = _scan_int(first[1])
    if second is None:
        return None, 0
    return first[0], second[0]