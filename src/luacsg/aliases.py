"""
DSL alias layer: Lua wrappers with named arguments and argument checks.

Each alias validates the shape and type of its arguments and then calls the
hidden native constructor bound by :class:`luacsg.factories.NativeFactories`.
A failed check raises a Lua error at the caller's line (``error(msg, 2)``),
which aborts the script.  The aliases are defined as Lua globals, where the
hidden natives are visible, and then copied into the script environment,
where they are not.
"""

import re

ALIAS_NAMES = ("Box", "Cylinder", "Plane3Points", "PlaneHessian")

ALIAS_SOURCE = r'''
function Box (x, y, z, smooth)
    if type(x) ~= "number" or type(y) ~= "number" or type(z) ~= "number" then
        error("all arguments must be numbers", 2)
    end
    local s = 0
    if type(smooth) == "number" then
        s = smooth
    end
    return __Box(x, y, z, s)
end

function Cylinder (arg)
    if type(arg) ~= "table" then
        error("Cylinder expects a table argument", 2)
    end
    if type(arg.l) ~= "number" then
        error("l must be a valid number", 2)
    end
    local r1, r2
    if type(arg.r) == "number" then
        r1 = arg.r
        r2 = arg.r
    elseif type(arg.r1) == "number" and type(arg.r2) == "number" then
        r1 = arg.r1
        r2 = arg.r2
    else
        error("specify either r or r1 and r2", 2)
    end
    local s = 0
    if type(arg.s) == "number" then
        s = arg.s
    end
    return __Cylinder(arg.l, r1, r2, s)
end

function Plane3Points (a, b, c)
    if type(a) ~= "table" or type(b) ~= "table" or type(c) ~= "table" or
        #a ~= 3 or #b ~= 3 or #c ~= 3 then
        error("all three arguments must be tables of len 3", 2)
    end
    for i = 1, 3 do
        if type(a[i]) ~= "number" or type(b[i]) ~= "number" or type(c[i]) ~= "number" then
            error("all table elements must be numbers", 2)
        end
    end
    return __Plane3Points(a[1], a[2], a[3],
                          b[1], b[2], b[3],
                          c[1], c[2], c[3])
end

function PlaneHessian (n, p)
    if type(n) ~= "table" or #n ~= 3 or
        type(n[1]) ~= "number" or type(n[2]) ~= "number" or type(n[3]) ~= "number" then
        error("first argument (normal) must be a table of 3 numbers", 2)
    end
    if type(p) ~= "number" then
        error("second argument must be a number (p in hessian form)", 2)
    end
    return __PlaneHessian(n[1], n[2], n[3], p)
end
'''

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

## names an environment table may not take over
_RESERVED = frozenset((
    "and", "break", "do", "else", "elseif", "end", "false", "for", "function",
    "global", "goto", "if", "in", "local", "nil", "not", "or", "repeat",
    "return", "then", "true", "until", "while",
    "_G", "_ENV", "python", "coroutine", "debug", "io", "math", "os",
    "package", "string", "table", "utf8",
    "assert", "error", "getmetatable", "ipairs", "load", "next", "pairs",
    "pcall", "print", "rawget", "rawset", "require", "select",
    "setmetatable", "tonumber", "tostring", "type", "xpcall",
) + ALIAS_NAMES)


def check_env_name(env_name: str) -> str:
    """Return ``env_name`` if it is usable as a Lua global name."""
    if (not isinstance(env_name, str) or not _IDENTIFIER.match(env_name)
            or env_name.startswith("__") or env_name in _RESERVED):
        raise ValueError(f"environment name must be an unreserved Lua identifier, got {env_name!r}")
    return env_name


def install_aliases(lua, env_name: str) -> None:
    """Define the aliases and publish them in the global table ``env_name``."""
    env_name = check_env_name(env_name)
    exports = "\n".join(f"{env_name}.{name} = {name}" for name in ALIAS_NAMES)
    lua.execute(ALIAS_SOURCE + exports)
