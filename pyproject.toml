[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vasynth"
version = "0.1.0"
description = "Building blocks of a polyphonic virtual-analogue synthesizer: oscillators, filters, envelopes, voices, voice allocation, presets and microtonal tuning."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "synthesizer",
    "audio",
    "dsp",
    "oscillator",
    "filter",
    "envelope",
    "presets",
    "scala",
    "microtonal",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vasynth"]

[tool.hatch.build.targets.sdist]
include = ["vasynth", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
