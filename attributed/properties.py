r"""
Attributed property declarations and the property compiler.

Overview
- Property: declaration spec (specifiers + handler references + default value
  + optional body). Sanitized on construction, read-only afterwards.
- @prop(...): build a Property and bind the decorated function as its body.
  Without decoration the returned object can be assigned directly in a class
  body (count = prop("read", "write", value=0)).
- PropertyDescriptor: the compiled record of one property on one class.
- compile_property(cls, name, declaration): run handler resolution, install
  get_<name>/set_<name>, register the default and install the Accessor.
- define_property(cls, name, *flags, body=..., **params): functional builder
  for classes that already exist.

Quick example:
    >>> class Human(Attributed):
    ...     @prop("read", "write", "setter", value="Joe")
    ...     def name(self, value):
    ...         if not value.strip():
    ...             raise ValueError("invalid name")
    ...         self["name"] = value
    ...         return self
    ...
    ...     age = prop("read", value=0)
    ...
    >>> Human().name("Lisa").name()
    'Lisa'
"""
import logging
from types import MethodType

from .accessors import Accessor
from .faults import FaultCode, DeclarationError
from .handlers import (
    Access,
    parse_flags,
    sanitize_reference,
    resolve_handlers,
    lookup_reference,
    implicit_getter,
    implicit_setter,
    is_implicit,
)
from .registry import registry
from .utils import *

logger = logging.getLogger(__name__)


class Property(metaclass=IntrospectiveType):
    """
    Property declaration specification.

    Highlights
    - access: frozenset of Access (read and/or write), at least one.
    - modifiers: frozenset of "getter" | "setter" | "name".
    - getter / setter / handler: callables or method-name references (Unset when absent).
    - value: default value (Unset when absent); every instance gets a deep copy.
    - body: the decorated function, if any.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "access",
        "modifiers",
        "getter",
        "setter",
        "handler",
        "value",
        "body",
    )

    def __new__(cls, *flags, getter=Unset, setter=Unset, handler=Unset, value=Unset):
        """
        Construct a Property spec.

        Parameters
        - flags: "read", "write", "getter", "setter", "name"
        - getter, setter: handler for one side (callable or method name).
        - handler: handler for both sides; takes precedence over getter/setter.
        - value: default value, deep-copied into every new instance.

        Raises
        - DeclarationError on invalid/duplicated/conflicting specifiers, no access
          mode, or malformed handler references.
        """
        access, modifiers = parse_flags(flags, subject=cls.__typename__)

        metadata = {
            "access": access,
            "modifiers": modifiers,
            "getter": sanitize_reference(getter, parameter="getter", subject=cls.__typename__),
            "setter": sanitize_reference(setter, parameter="setter", subject=cls.__typename__),
            "handler": sanitize_reference(handler, parameter="handler", subject=cls.__typename__),
            "value": value,
            "body": Unset,  # Bound by @prop() later.
        }

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __property__(self):
        """
        Introspection hook: identify this spec as a Property.
        """
        return self


class PropertyDescriptor(metaclass=IntrospectiveType):
    """
    Compiled property of one class.

    - getter/setter: the handlers installed at get_<name>/set_<name>.
    - implicit: sides served by an implicit handler.
    - injected: sides whose handler receives the property name (implicit handlers as `key`).
    - shared: both sides come from a single handler= reference.
    - default: declared default value, or Unset.
    """

    __introspectable__ = (
        "name",
        "owner",
        "access",
        "modifiers",
        "getter",
        "setter",
        "implicit",
        "injected",
        "shared",
        "default",
        "body",
    )

    __displayable__ = (
        "name",
        "owner",
        "access",
        "modifiers",
        "implicit",
        "injected",
        "shared",
        "default",
    )

    def __new__(cls, name, owner, declaration, handlers, implicit, injected, shared, /):
        metadata = {
            "name": name,
            "owner": owner,
            "access": declaration._access,
            "modifiers": declaration._modifiers,
            "getter": handlers[Access.READ],
            "setter": handlers[Access.WRITE],
            "implicit": frozenset(implicit),
            "injected": frozenset(injected),
            "shared": shared,
            "default": declaration._value,
            "body": declaration._body,
        }
        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def handler(self, mode, /):
        """
        Installed handler for a side (Access.READ -> getter, Access.WRITE -> setter).
        """
        return self._getter if Access(mode) is Access.READ else self._setter


def _resolve_declaration(x, /):
    """
    Return the concrete Property from anything implementing __property__().
    """
    if not hasattr(x, "__property__") or not callable(x.__property__):
        raise TypeError("property declaration must implement __property__()")
    if not isinstance(declaration := x.__property__(), Property):
        raise TypeError("__property__() non-property returned")
    return declaration


def _inherits_injection(origin, name, mode, handler, /):
    """
    True when `handler` was adopted from a slot whose own declaration injected the name.
    """
    if origin is Unset:
        return False
    declared = registry.descriptor(origin, name)
    return declared is not Unset and declared.handler(mode) is handler and mode in declared._injected


def compile_property(cls, name, declaration, /):
    """
    Compile one property declaration into `cls`.

    Steps
    - resolve which reference (or the body) serves each side;
    - per side: install the reference, else adopt an existing get_/set_ slot
      (own class or ancestors), else install the implicit handler; a body that
      no modifier attributes requires a slot for every declared side;
    - record name-injection for the sides proven to accept it;
    - register (or drop) the class's own default for the name;
    - install the Accessor at `name`, replacing the declaration.

    Returns
    - PropertyDescriptor

    Raises
    - DeclarationError / HandlerResolutionError (class-definition time).
    """
    if not isinstance(cls, type):
        raise TypeError("compile_property() first argument must be a class")
    if not isinstance(name, str) or not name.isidentifier():
        raise DeclarationError(
            f"property name {name!r} of {cls.__qualname__} must be an identifier",
            code=FaultCode.INVALID_PARAMETER,
            owner=cls
        )
    declaration = _resolve_declaration(declaration)

    resolution = resolve_handlers(
        declaration._modifiers,
        declaration._body,
        getter=declaration._getter,
        setter=declaration._setter,
        handler=declaration._handler
    )

    resolved = {}
    for mode in Access:
        if (reference := resolution.side(mode)) is not Unset:
            resolved[mode] = Unset, lookup_reference(cls, reference, name=name, side=mode.side)
            continue
        origin, handler = resolve(cls, mode.slot(name))
        if handler is Unset:
            if resolution.unattributed and mode in declaration._access:
                raise DeclarationError(
                    f"body of property {name!r} of {cls.__qualname__} cannot be attributed to a {mode.side} "
                    f"and no {mode.slot(name)}() exists to fall back to",
                    code=FaultCode.UNATTRIBUTABLE_BODY,
                    owner=cls,
                    property=name,
                    hint="add the 'getter' or 'setter' modifier, or pass getter=/setter="
                )
            handler = implicit_getter(name) if mode is Access.READ else implicit_setter(name)
        resolved[mode] = origin, handler

    handlers = {}
    implicit = set()
    injected = set()
    for mode, (origin, handler) in resolved.items():
        if is_implicit(handler):
            implicit.add(mode)
        if "name" in declaration._modifiers or mode in implicit or _inherits_injection(origin, name, mode, handler):
            injected.add(mode)

        handlers[mode] = define(cls, mode.slot(name), handler)

    defaults = registry.defaults.setdefault(cls, {})
    if declaration._value is not Unset:
        defaults[name] = declaration._value
    else:
        defaults.pop(name, None)

    descriptor = PropertyDescriptor(name, cls, declaration, handlers, implicit, injected, resolution.shared)
    registry.descriptors.setdefault(cls, {})[name] = descriptor
    registry.invalidate()
    define(cls, name, Accessor(descriptor))

    logger.debug(
        "compiled property %s.%s access=%s implicit=%s injected=%s",
        cls.__qualname__, name, sorted(descriptor._access), sorted(implicit), sorted(injected)
    )
    return descriptor


def prop(*flags, **params):
    """
    Decorator/factory for declaring a property.

    Usage
    - With a body (the body serves the side picked by the "getter"/"setter" modifier):
        @prop("read", "write", "setter")
        def name(self, value): ...

    - Without a body:
        count = prop("read", "write", value=0)

    Behavior
    - Validates that it decorates a callable and enforces single application.
    - Returns the configured Property; the class machinery compiles it.
    """
    declaration = Property(*flags, **params)

    @rename("prop")
    def wrapper(body, /):
        if not callable(body):
            raise TypeError("@prop() must be applied to a callable")
        if declaration._body is not Unset:
            raise TypeError("@prop() must be applied only once")
        declaration._body = body
        return declaration

    # Undecorated use: the wrapper itself stands in the class body.
    wrapper.__property__ = MethodType(rename(lambda self: declaration, "__property__"), wrapper)
    return wrapper


def define_property(cls, name, /, *flags, body=Unset, **params):
    """
    Declare a property on an existing class (builder form of @prop).
    """
    declaration = Property(*flags, **params)
    if body is not Unset:
        if not callable(body):
            raise TypeError("define_property() 'body' must be callable")
        declaration._body = body
    return compile_property(cls, name, declaration)


def properties(cls, /):
    """
    Read-only mapping of every property visible on `cls` (most derived declaration wins).
    """
    return registry.properties(cls)


def defaults(cls, /):
    """
    Deep copy of the merged default-value table of `cls`.
    """
    return clone(registry.template(cls))


__all__ = (
    "Property",
    "PropertyDescriptor",
    "prop",
    "compile_property",
    "define_property",
    "properties",
    "defaults",
)
