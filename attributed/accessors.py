"""
Accessor dispatcher: the callable installed under a property's name.

Calling shapes
- obj.count()        -> read
- obj.count(value)   -> write (one or more values are forwarded)
- Counter.count.read(obj) / Counter.count.write(obj, value)
                     -> explicit mode, no arity inference

Dispatch
1. deny the call when the property was not declared with the requested mode;
2. reject a write without values;
3. resolve get_<name>/set_<name> through the *runtime* class's ancestor order,
   so a subclass that redeclares the property is reached even through an
   accessor installed on an ancestor;
4. pass the property name to handlers that expect it: after the instance for
   custom handlers, as the `key` keyword for implicit ones;
5. call the handler and return its result unmodified.

Resolutions are cached per (runtime class, property, mode) in the registry.
"""
import functools
import logging
from types import MethodType

from .faults import AccessDeniedError, UndefinedHandlerError
from .handlers import Access, is_implicit
from .registry import registry
from .utils import Unset, resolve

logger = logging.getLogger(__name__)


def _bind(handler, instance, /):
    if hasattr(handler, "__get__"):
        return handler.__get__(instance, type(instance))
    return functools.partial(handler, instance)


def _handler(cls, descriptor, mode, /):
    """
    Resolve (handler, inject) for property `descriptor.name` on runtime class `cls`.
    """
    cache = registry.handlers.setdefault(cls, {})
    try:
        return cache[descriptor.name, mode]
    except KeyError:
        pass

    owner, handler = resolve(cls, slot := mode.slot(descriptor.name))
    if handler is Unset:
        raise UndefinedHandlerError(
            f"undefined {mode} handler {slot!r} for property {descriptor.name!r} in {cls.__qualname__}",
            property=descriptor.name,
            owner=cls,
            mode=mode,
            hint="redeclare the property instead of deleting its handler"
        )

    # Handlers installed by a declaration carry that declaration's injection; anything else is custom.
    declared = registry.descriptor(owner, descriptor.name)
    if declared is not Unset and declared.handler(mode) is handler:
        inject = mode in declared._injected
    else:
        inject = is_implicit(handler) or "name" in descriptor._modifiers

    logger.debug("resolved %s for %s.%s (%s, inject=%s)", slot, cls.__qualname__, descriptor.name, owner.__qualname__, inject)
    cache[descriptor.name, mode] = handler, inject
    return handler, inject


class Accessor:
    """
    Non-data descriptor dispatching reads and writes of one property.

    Bound through an instance it behaves like a method; looked up on the class
    it returns itself, so Base.count(obj) and Base.count.write(obj, 1) work too.
    """

    def __init__(self, descriptor, /):
        self._descriptor = descriptor
        self.__name__ = descriptor.name
        self.__qualname__ = f"{descriptor.owner.__qualname__}.{descriptor.name}"
        self.__module__ = descriptor.owner.__module__
        self.__doc__ = descriptor.body.__doc__ if descriptor.body is not Unset else None

    @property
    def descriptor(self):
        return self._descriptor

    def __get__(self, instance, owner=None, /):
        if instance is None:
            return self
        return MethodType(self, instance)

    def __call__(self, instance, /, *values):
        return self.dispatch(instance, Access.WRITE if values else Access.READ, values)

    def read(self, instance, /):
        return self.dispatch(instance, Access.READ)

    def write(self, instance, /, *values):
        return self.dispatch(instance, Access.WRITE, values)

    def dispatch(self, instance, mode, values=(), /):
        descriptor = self._descriptor
        mode = Access(mode)

        if mode not in descriptor._access:
            allowed, = descriptor._access
            raise AccessDeniedError(
                f"{descriptor.name!r} is {allowed}-only, {mode} access denied",
                property=descriptor.name,
                owner=descriptor.owner,
                mode=mode,
                hint=f"call {mode.slot(descriptor.name)}() directly to bypass the access check"
            )

        if mode is Access.WRITE and not values:
            raise TypeError(f"{descriptor.name}() write access takes at least one value (0 given)")

        handler, inject = _handler(type(instance), descriptor, mode)
        bound = _bind(handler, instance)
        if inject and is_implicit(handler):
            return bound(*values, key=descriptor.name)
        if inject:
            values = (descriptor.name, *values)
        return bound(*values)

    def __repr__(self):
        return f"<accessor {self.__qualname__} ({", ".join(sorted(self._descriptor._access))})>"

    def __rich_repr__(self):
        yield "name", self._descriptor.name
        yield "owner", self._descriptor.owner
        yield "access", frozenset(self._descriptor._access)


__all__ = (
    "Accessor",
)
