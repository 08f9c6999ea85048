"""Synthesizer building blocks: DSP units, voices, voice allocation, presets and tuning."""

__version__ = "0.1.0"