"""
Sandbox: owns a Lua runtime, binds the geometry DSL into it and runs scripts.

A script runs with a private environment table as its ``_ENV``.  That table
holds a whitelist of harmless Lua builtins, the native factories, the alias
wrappers, ``print`` (captured, see :attr:`EvaluationResult.output`) and
``build(obj)``, which hands the finished object back to the host.  There is
no ``load``, ``require``, ``io``, ``os`` or ``debug`` and no route to Python
beyond the bound functions.

Usage:
    from luacsg import channel, Sandbox

    sender, receiver = channel()
    sandbox = Sandbox(console=sender)
    result = sandbox.execute('build(Box(1, 2, 3):translate(0, 0, 1))')
    if result.success:
        value = result.root.evaluate((0, 0, 1))
    for message in receiver.drain():
        print(message)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import lupa

from .aliases import check_env_name, install_aliases
from .config import Settings
from .console import LoggingSender
from .errors import CsgError, SandboxStateError, ScriptError
from .factories import NativeFactories
from .handle import Handle
from .objects import ImplicitObject

logger = logging.getLogger(__name__)

SCRIPT_NAME = "script"

_ENV_FACTORY = r'''
return function (write, build)
    local env = {}
    for _, name in ipairs({"assert", "error", "ipairs", "next", "pairs", "pcall",
                           "select", "tonumber", "tostring", "type", "xpcall"}) do
        env[name] = _G[name]
    end
    env.unpack = table.unpack or unpack
    for _, name in ipairs({"math", "string", "table"}) do
        local copy = {}
        for k, v in pairs(_G[name]) do
            copy[k] = v
        end
        env[name] = copy
    end
    env.print = function (...)
        local parts = {}
        for i = 1, select("#", ...) do
            parts[#parts + 1] = tostring((select(i, ...)))
        end
        write(table.concat(parts, "\t"))
    end
    env.build = build
    return env
end
'''

_RUNNER = r'''
return function (src, env, name)
    local chunk, err = load(src, "=" .. name, "t", env)
    if not chunk then
        error(err, 0)
    end
    return chunk()
end
'''

# errors raised by bound Python callables surface as themselves
_SCRIPT_FAILURES = (lupa.LuaError, CsgError, AttributeError, TypeError, ValueError)

## a script that outgrows the interpreter fails like any other script
_RESOURCE_FAILURES = (RecursionError, MemoryError)


def _error_text(error: Exception) -> str:
    """The error message without the Lua stack traceback lupa appends."""
    text = str(error)
    head, sep, _ = text.partition("\nstack traceback:")
    return head.rstrip() if sep else text


def _script_getattr(methods: Dict[str, Callable]) -> Callable[[Any, Any], Any]:
    def getattr_(obj: Any, name: Any) -> Any:
        if isinstance(obj, Handle) and name in methods:
            return methods[name]
        raise AttributeError(f"'{type(obj).__name__}' object has no attribute {name!r}")
    return getattr_


def _script_setattr(obj: Any, name: Any, value: Any) -> None:
    raise AttributeError(f"cannot set {name!r} on '{type(obj).__name__}' object")


class SandboxState(Enum):
    """Lifecycle of a sandbox."""
    UNINITIALIZED = "uninitialized"
    BOUND = "bound"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class EvaluationResult:
    """Result of evaluating a script."""
    success: bool
    handle: Optional[Handle] = None
    output: str = ""
    error_message: Optional[str] = None

    @property
    def root(self) -> Optional[ImplicitObject]:
        """The built object tree, or ``None`` if nothing was built."""
        if self.handle is None:
            return None
        return self.handle.o


class Sandbox:
    """
    One Lua runtime bound to the geometry DSL.

    A sandbox evaluates one script; call :meth:`reset` to evaluate another
    with a fresh runtime.
    """

    def __init__(self, console=None, env_name: Optional[str] = None,
                 settings: Optional[Settings] = None):
        """
        Args:
            console: diagnostic sender (anything with ``send(str)``); messages
                go to the log when omitted
            env_name: name of the script environment table
            settings: overrides for the defaults in :class:`Settings`
        """
        self.settings = settings or Settings()
        self.env_name = check_env_name(env_name or self.settings.env_name)
        self.console = console if console is not None else LoggingSender()
        self.state = SandboxState.UNINITIALIZED
        self._lua: Optional["lupa.LuaRuntime"] = None
        self._env = None
        self._output: List[str] = []
        self._built: Optional[Handle] = None

    def _write(self, line: str) -> None:
        self._output.append(f"{line}\n")

    def _build(self, o: Any = None) -> None:
        if not isinstance(o, Handle):
            raise ScriptError("build expects an object")
        self._built = o

    def bind(self) -> None:
        """Create the runtime and register factories and aliases."""
        if self.state is not SandboxState.UNINITIALIZED:
            raise SandboxStateError(f"cannot bind a sandbox in state {self.state.value}")

        factories = NativeFactories(self.console, mesh_warning=self.settings.mesh_warning)
        lua = lupa.LuaRuntime(
            register_eval=False,
            register_builtins=False,
            unpack_returned_tuples=True,
            attribute_handlers=(_script_getattr(factories.script_methods()), _script_setattr),
        )
        env = lua.execute(_ENV_FACTORY)(self._write, self._build)
        lua.globals()[self.env_name] = env

        factories.export(lua, env)
        install_aliases(lua, self.env_name)

        self._lua = lua
        self._env = env
        self.state = SandboxState.BOUND
        logger.debug("sandbox bound into environment %r", self.env_name)

    def execute(self, script: str) -> EvaluationResult:
        """Run ``script`` and extract the object it built."""
        if self.state is SandboxState.UNINITIALIZED:
            self.bind()
        if self.state is not SandboxState.BOUND:
            raise SandboxStateError(
                f"cannot execute in state {self.state.value}; reset() the sandbox first")

        self.state = SandboxState.EXECUTING
        run = self._lua.execute(_RUNNER)
        try:
            returned = run(script, self._env, SCRIPT_NAME)
        except _SCRIPT_FAILURES as e:
            self.state = SandboxState.FAILED
            logger.info("script failed: %s", e)
            return EvaluationResult(
                success=False,
                output="".join(self._output),
                error_message=_error_text(e),
            )
        except _RESOURCE_FAILURES as e:
            self.state = SandboxState.FAILED
            logger.warning("script exhausted interpreter resources: %r", e)
            return EvaluationResult(
                success=False,
                output="".join(self._output),
                error_message=f"script ran out of resources: {type(e).__name__}: {e}",
            )
        except Exception:
            self.state = SandboxState.FAILED
            raise

        handle = self._built
        if handle is None and isinstance(returned, Handle):
            handle = returned
        if handle is None:
            logger.info("script finished without building an object")

        self.state = SandboxState.SUCCEEDED
        return EvaluationResult(
            success=True,
            handle=handle,
            output="".join(self._output),
        )

    def reset(self) -> None:
        """Drop the runtime so that the sandbox can be bound again."""
        self._lua = None
        self._env = None
        self._output = []
        self._built = None
        self.state = SandboxState.UNINITIALIZED


def evaluate(script: str, console=None, env_name: Optional[str] = None,
             settings: Optional[Settings] = None) -> EvaluationResult:
    """Evaluate ``script`` in a fresh sandbox."""
    return Sandbox(console=console, env_name=env_name, settings=settings).execute(script)


def evaluate_or_raise(script: str, console=None, env_name: Optional[str] = None,
                      settings: Optional[Settings] = None) -> Optional[ImplicitObject]:
    """Like :func:`evaluate`, but return the root or raise :class:`ScriptError`."""
    result = evaluate(script, console=console, env_name=env_name, settings=settings)
    if not result.success:
        raise ScriptError(result.error_message, SCRIPT_NAME)
    return result.root
