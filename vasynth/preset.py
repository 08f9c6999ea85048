"""Named sets of parameter values, their text form and parameter locking."""

from __future__ import annotations

from collections.abc import Iterator

from .parameter import (
    PARAMETER_COUNT,
    Param,
    Parameter,
    ParameterObserver,
    parameter_index_from_name,
    parameter_name_from_index,
)

PRESET_HEADER = "amSynth1.0preset"


class PresetFormatError(ValueError):
    """Raised when preset or bank text cannot be read."""


# Locked parameters keep their value when another preset is assigned.
_locked = [False] * PARAMETER_COUNT


def _check_index(index: int) -> int:
    index = int(index)
    if not 0 <= index < PARAMETER_COUNT:
        raise IndexError(f"parameter index out of range: {index}")
    return index


def is_parameter_locked(index: int) -> bool:
    """True if the parameter keeps its value when presets change."""
    return _locked[_check_index(index)]


def set_parameter_locked(index: int, locked: bool) -> None:
    """Lock or unlock a parameter."""
    _locked[_check_index(index)] = bool(locked)


def locked_parameter_names() -> str:
    """The names of the locked parameters, separated by spaces, in index order."""
    return " ".join(
        parameter_name_from_index(index) for index, locked in enumerate(_locked) if locked
    )


def set_locked_parameter_names(names: str) -> None:
    """Lock exactly the named parameters; unknown names are ignored."""
    for index in range(PARAMETER_COUNT):
        _locked[index] = False
    for name in names.split():
        index = parameter_index_from_name(name)
        if index is not None:
            _locked[index] = True


class Preset:
    """A name and one value for every synth parameter."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._parameters = tuple(Parameter(param) for param in Param)

    def __repr__(self) -> str:
        return f"Preset({self.name!r})"

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def assign_from(self, other: Preset) -> Preset:
        """Copy the name and every unlocked parameter value from another preset."""
        for index, (mine, theirs) in enumerate(zip(self._parameters, other._parameters)):
            if not _locked[index]:
                mine.set_value(theirs.value)
        self.name = other.name
        return self

    def is_equal(self, other: Preset) -> bool:
        """True if the names and all unlocked parameter values match."""
        for index, (mine, theirs) in enumerate(zip(self._parameters, other._parameters)):
            if _locked[index]:
                continue
            if mine.normalised_value != theirs.normalised_value:
                return False
        return self.name == other.name

    def parameter(self, key: int | str) -> Parameter:
        """Look a parameter up by index or by name."""
        if isinstance(key, str):
            index = parameter_index_from_name(key)
            if index is None:
                raise KeyError(key)
            return self._parameters[index]
        return self._parameters[_check_index(key)]

    def randomise(self) -> None:
        """Give every parameter except the master volume a random value."""
        for parameter in self._parameters:
            if parameter.param_id is not Param.MASTER_VOLUME:
                parameter.randomise()

    def add_observer(self, observer: ParameterObserver, notify: bool = True) -> None:
        """Register an observer with every parameter."""
        for parameter in self._parameters:
            parameter.add_observer(observer, notify)

    def to_string(self) -> str:
        """The preset in its text form."""
        lines = [PRESET_HEADER, f"<preset> <name> {self.name}"]
        lines.extend(f"<parameter> {p.name} {p.value:g}" for p in self._parameters)
        return "\n".join(lines) + "\n"

    def from_string(self, text: str) -> None:
        """Read the name and parameter values from the text form."""
        tokens = iter(text.split())
        if next(tokens, None) != PRESET_HEADER:
            raise PresetFormatError("text does not start with a preset header")
        if next(tokens, None) != "<preset>":
            return
        next(tokens, None)  # "<name>"

        name_parts = []
        token = next(tokens, None)
        while token is not None and token != "<parameter>":
            name_parts.append(token)
            token = next(tokens, None)
        self.name = " ".join(name_parts)

        while token == "<parameter>":
            name = next(tokens, None)
            value = next(tokens, None)
            if name is None or value is None:
                raise PresetFormatError("truncated parameter entry")
            if name != "unused":
                try:
                    parameter = self.parameter(name)
                except KeyError:
                    raise PresetFormatError(f"unknown parameter {name!r}") from None
                parameter.set_value(Parameter.value_from_string(value))
            token = next(tokens, None)