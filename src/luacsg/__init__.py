# -*- coding: utf-8 -*-
"""
luacsg: Lua-scripted constructive solid geometry on implicit surfaces.

A script is evaluated in a sandboxed Lua runtime; the geometry functions it
calls build a tree of implicit-surface nodes that a renderer or tessellator
can sample through ``evaluate(point)`` and ``bbox()``.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("luacsg")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from .bbox import BoundingBox, INFINITY, NEG_INFINITY
from .console import Receiver, Sender, channel
from .errors import ConstructionError, CsgError, SandboxStateError, ScriptError
from .handle import Handle
from .objects import ImplicitObject
from .sandbox import (
    EvaluationResult,
    Sandbox,
    SandboxState,
    evaluate,
    evaluate_or_raise,
)

__all__ = [
    'BoundingBox',
    'INFINITY',
    'NEG_INFINITY',
    'channel',
    'Sender',
    'Receiver',
    'CsgError',
    'ScriptError',
    'ConstructionError',
    'SandboxStateError',
    'Handle',
    'ImplicitObject',
    'EvaluationResult',
    'Sandbox',
    'SandboxState',
    'evaluate',
    'evaluate_or_raise',
]
