r"""
Handler resolution: flags, handler references and implicit accessors.

This module is pure decision logic plus the two implicit handler factories. It
does not touch any class; the property compiler feeds it a declaration and
installs whatever it decides.

Specifiers
- access modes: "read", "write" (at least one is mandatory)
- modifiers: "getter", "setter" (mutually exclusive), "name" (independent)

Resolution rules (first match wins)
1. handler=  → both sides take that reference, the body is discarded.
2. exactly one of getter=/setter= → it takes its reference, the other side
   takes the body (or stays unresolved without a body).
3. both getter= and setter= → both references, the body is discarded.
4. none → the "getter"/"setter" modifier says which side takes the body;
   the other side stays unresolved. A body without either modifier is dropped
   and flagged `unattributed`: the compiler then requires every declared side
   to find an existing get_/set_ method.

References
- callable → used as-is.
- "method" → looked up on the declaring class and its ancestors.
- "Other.method" → looked up from the declaring class's module globals.
- "package.module:Other.method" → module imported first.
"""
import importlib
import re
import sys
from enum import StrEnum
from typing import NamedTuple

from .faults import FaultCode, DeclarationError, HandlerResolutionError
from .utils import Unset, rename, resolve


class Access(StrEnum):
    """
    Access mode of a property (and dispatch mode of an accessor call).
    """
    READ = "read"
    WRITE = "write"

    @property
    def side(self):
        return "getter" if self is Access.READ else "setter"

    def slot(self, name, /):
        """
        Conventional handler slot for property `name` (get_<name> / set_<name>).
        """
        return ("get_" if self is Access.READ else "set_") + name


MODIFIERS = frozenset({"getter", "setter", "name"})

_REFERENCE = re.compile(r"(?:(?!\d)\w+(?:\.(?!\d)\w+)*:)?(?!\d)\w+(?:\.(?!\d)\w+)*")


class Resolution(NamedTuple):
    getter: object
    setter: object
    shared: bool
    unattributed: bool = False

    def side(self, access, /):
        return self.getter if access is Access.READ else self.setter


def parse_flags(flags, /, *, subject="property"):
    """
    Split declared specifiers into access modes and modifiers.

    Returns
    - (frozenset[Access], frozenset[str])

    Raises
    - DeclarationError: non-string or unknown specifier, duplicated specifier,
      both "getter" and "setter", no access mode.
    """
    access = set()
    modifiers = set()
    for flag in flags:
        if not isinstance(flag, str):
            raise DeclarationError(
                f"{subject} specifiers must be strings",
                code=FaultCode.INVALID_SPECIFIER,
                specifier=flag,
                hint="use 'read', 'write', 'getter', 'setter' or 'name'"
            )
        if (flag := flag.strip()) in access | modifiers:
            raise DeclarationError(
                f"{subject} specifier {flag!r} is duplicated",
                code=FaultCode.INVALID_SPECIFIER,
                specifier=flag,
                hint="declare every specifier once"
            )
        if flag in Access:
            access.add(Access(flag))
        elif flag in MODIFIERS:
            modifiers.add(flag)
        else:
            raise DeclarationError(
                f"{subject} specifier {flag!r} is invalid",
                code=FaultCode.INVALID_SPECIFIER,
                specifier=flag,
                hint="use 'read', 'write', 'getter', 'setter' or 'name'"
            )

    if {"getter", "setter"} <= modifiers:
        raise DeclarationError(
            f"{subject} cannot declare both 'getter' and 'setter' modifiers",
            code=FaultCode.CONFLICTING_MODIFIERS,
            hint="the body can serve one side only; pass the other handler with getter= or setter="
        )
    if not access:
        raise DeclarationError(
            f"{subject} must declare at least one access mode",
            code=FaultCode.MISSING_ACCESS_MODE,
            hint="add 'read' and/or 'write'"
        )
    return frozenset(access), frozenset(modifiers)


def sanitize_reference(reference, /, *, parameter, subject="property"):
    """
    Validate a handler reference given as getter=/setter=/handler=.
    """
    if reference is Unset or callable(reference):
        return reference
    if not isinstance(reference, str):
        raise DeclarationError(
            f"{subject} {parameter!r} must be a callable or a method name",
            code=FaultCode.INVALID_PARAMETER,
            parameter=parameter
        )
    if not _REFERENCE.fullmatch(reference := reference.strip()):
        raise DeclarationError(
            f"{subject} {parameter!r} reference {reference!r} is not a valid method name",
            code=FaultCode.INVALID_PARAMETER,
            parameter=parameter,
            hint="use 'method', 'Class.method' or 'package.module:Class.method'"
        )
    return reference


def resolve_handlers(modifiers, body=Unset, /, getter=Unset, setter=Unset, handler=Unset):
    """
    Decide which reference (or the body) serves each side.

    Unresolved sides come back as Unset; the compiler gives them the pre-existing
    slot method or the implicit handler.
    """
    if handler is not Unset:
        return Resolution(handler, handler, True)

    match getter is not Unset, setter is not Unset:
        case True, True:
            return Resolution(getter, setter, False)
        case True, False:
            return Resolution(getter, body, False)
        case False, True:
            return Resolution(body, setter, False)

    if "getter" in modifiers:
        return Resolution(body, Unset, False)
    if "setter" in modifiers:
        return Resolution(Unset, body, False)
    # The body serves no side: both stay unresolved and must fall back to existing slots.
    return Resolution(Unset, Unset, False, body is not Unset)


def lookup_reference(cls, reference, /, *, name, side):
    """
    Turn a handler reference into a callable, at installation time.

    Raises
    - HandlerResolutionError when nothing callable is found.
    """
    if callable(reference):
        return reference

    def fail():
        return HandlerResolutionError(
            f"undefined {side} {reference!r} for property {name!r} in {cls.__qualname__}",
            property=name,
            owner=cls,
            reference=reference,
            hint="define the method before the property or pass the callable itself"
        )

    module, _, path = reference.rpartition(":")
    head, *tail = path.split(".")

    if not module and not tail:
        _, object = resolve(cls, head)
        if object is Unset:
            raise fail()
        return object

    try:
        if module:
            object = getattr(importlib.import_module(module), head)
        else:
            object = vars(sys.modules[cls.__module__])[head]
        for segment in tail:
            object = getattr(object, segment)
    except (ImportError, KeyError, AttributeError):
        raise fail() from None

    if not callable(object):
        raise fail()
    return object


def implicit_getter(name, /):
    """
    Implicit read handler for property `name`: returns the stored value (None when absent).

    The dispatcher passes the property name as `key`; a direct call reads `name`.
    """
    @rename("get_" + name)
    def getter(self, /, *, key=name):
        return self.__storage__.get(key)

    getter.__implicit__ = Access.READ
    return getter


def implicit_setter(name, /):
    """
    Implicit write handler for property `name`: stores exactly one value and returns the instance.

    The dispatcher passes the property name as `key`; a direct call writes `name`.
    """
    @rename("set_" + name)
    def setter(self, value, /, *, key=name):
        self.__storage__[key] = value
        return self

    setter.__implicit__ = Access.WRITE
    return setter


def is_implicit(handler, /):
    return isinstance(getattr(handler, "__implicit__", None), Access)


__all__ = (
    "Access",
    "MODIFIERS",
    "Resolution",
    "parse_flags",
    "sanitize_reference",
    "resolve_handlers",
    "lookup_reference",
    "implicit_getter",
    "implicit_setter",
    "is_implicit",
)
