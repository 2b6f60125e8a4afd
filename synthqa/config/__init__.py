"""Configuration for SynthQA runs."""

from synthqa.config.settings import RunOptions, SynthConfig, load_config

__all__ = ["RunOptions", "SynthConfig", "load_config"]
