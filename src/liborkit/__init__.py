"""LIBOR market model toolkit."""

from __future__ import annotations

import importlib
from typing import Dict

import jax

jax.config.update("jax_enable_x64", True)

__all__ = [
    "config",
    "core",
    "dates",
    "errors",
    "lmm",
    "market",
    "math",
    "models",
]

_MODULE_ALIASES: Dict[str, str] = {
    "config": "liborkit.core.config",
    "core": "liborkit.core",
    "dates": "liborkit.core.utils.dates",
    "errors": "liborkit.errors",
    "lmm": "liborkit.models.lmm",
    "market": "liborkit.market",
    "math": "liborkit.math",
    "models": "liborkit.models",
}


def __getattr__(name: str):
    if name in _MODULE_ALIASES:
        module = importlib.import_module(_MODULE_ALIASES[name])
        globals()[name] = module
        return module
    raise AttributeError(f"module 'liborkit' has no attribute '{name}'")


def __dir__():
    return sorted(set(globals().keys()) | set(__all__))


__version__ = "0.1.0"
