"""
Per-class registries shared by the compilers and the runtime.

Every table is keyed by class identity (weakly, so throw-away classes built in
tests or factories do not leak) and is populated while classes are defined:

- descriptors[cls][name]                -> PropertyDescriptor declared on cls
- defaults[cls][name]                   -> default value declared on cls
- initializers[cls][constructor][owner] -> list of InitializerEntry (one layer per ancestor)
- handlers[cls][(name, mode)]           -> (handler, inject) resolved for runtime class cls

Classes are expected to be fully declared before their first instantiation;
any new declaration drops the resolved-handler cache.
"""
import itertools
from types import MappingProxyType
from weakref import WeakKeyDictionary

from .utils import Unset, linearize


class Registry:
    __slots__ = ("descriptors", "defaults", "initializers", "handlers")

    def __init__(self):
        self.descriptors = WeakKeyDictionary()
        self.defaults = WeakKeyDictionary()
        self.initializers = WeakKeyDictionary()
        self.handlers = WeakKeyDictionary()

    def descriptor(self, cls, name, /):
        """
        Descriptor declared for `name` on `cls` itself, or Unset.
        """
        return self.descriptors.get(cls, {}).get(name, Unset)

    def properties(self, cls, /):
        """
        Merged descriptors along the ancestor order (most derived wins).
        """
        merged = {}
        for klass in reversed(linearize(cls)):
            merged |= self.descriptors.get(klass, {})
        return MappingProxyType(merged)

    def template(self, cls, /):
        """
        Merged default-value table along the ancestor order (most derived wins).

        The returned dict holds the registered objects themselves: callers clone it.
        """
        merged = {}
        for klass in reversed(linearize(cls)):
            merged |= self.defaults.get(klass, {})
        return merged

    def table(self, cls, constructor, /):
        """
        Layered initializer table of the nearest class (in ancestor order) that has one.
        """
        for klass in linearize(cls):
            if constructor in (tables := self.initializers.get(klass, {})):
                return tables[constructor]
        return {}

    def layer(self, classes, constructor, owner, default=(), /):
        """
        Initializer layer of `owner` as seen from the first of `classes` holding it.

        An emptied layer is still a layer: `default` only comes back when no
        class in `classes` knows `owner` at all.
        """
        for klass in classes:
            table = self.initializers.get(klass, {}).get(constructor, {})
            if owner in table:
                return table[owner]
        return default

    def effective(self, cls, constructor, /):
        """
        Effective initializer list: ancestor layers root to self, then the own layer.
        """
        return tuple(itertools.chain.from_iterable(self.table(cls, constructor).values()))

    def invalidate(self):
        self.handlers.clear()


registry = Registry()


__all__ = (
    "Registry",
    "registry",
)
