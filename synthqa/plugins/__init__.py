"""Plugin system for SynthQA - per-journey metrics, tracing and capture."""

from synthqa.plugins.browser_console import BrowserConsole
from synthqa.plugins.manager import PluginManager
from synthqa.plugins.network import NetworkManager
from synthqa.plugins.performance import PerformanceManager
from synthqa.plugins.tracing import Tracing, filter_filmstrips
from synthqa.plugins.types import (
    BrowserMessage,
    FilmStrip,
    NetworkInfo,
    PluginKind,
    PluginOutput,
    StepInfo,
)

__all__ = [
    "BrowserConsole",
    "BrowserMessage",
    "FilmStrip",
    "NetworkInfo",
    "NetworkManager",
    "PerformanceManager",
    "PluginKind",
    "PluginManager",
    "PluginOutput",
    "StepInfo",
    "Tracing",
    "filter_filmstrips",
]
