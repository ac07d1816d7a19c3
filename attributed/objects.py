"""
Attributed objects: the metaclass that compiles declarations and the base class.

Class definition
- Every namespace entry implementing __property__() is compiled into a
  property (in namespace order); every entry implementing __constructor__() has
  its initializers compiled and the constructor wrapped.
- Handler references are resolved once the class object exists, so a method
  defined below the property that names it is found.

Construction
- X(*args, **kwargs) or X.create(*args, **kwargs):
  1. allocate; storage starts as a deep copy of the merged defaults;
  2. call __init__ (its initializer layer runs first when it has one);
  3. mark the instance constructed.
"""
import logging

from .initializers import attach
from .properties import compile_property
from .registry import registry
from .utils import *

logger = logging.getLogger(__name__)


def _hook(object, name, /):
    return not isinstance(object, type) and callable(getattr(object, name, None))


class AttributedType(type):
    """
    Metaclass of Attributed classes.

    Notes
    - Declarations are compiled after type.__new__, against the finished class.
    - Declaration errors propagate: the class statement fails as a whole.
    """

    def __new__(mcs, name, bases, namespace, **options):
        cls = super().__new__(mcs, name, bases, namespace, **options)

        for key, value in namespace.items():
            if _hook(value, "__property__"):
                compile_property(cls, key, value)
            elif _hook(value, "__constructor__"):
                constructor = value.__constructor__()
                attach(cls, key, constructor.function, constructor.entries)

        logger.debug("defined attributed class %s", cls.__qualname__)
        return cls

    def __call__(cls, *args, **kwargs):
        self = cls.__new__(cls, *args, **kwargs)
        if isinstance(self, cls):
            self.__init__(*args, **kwargs)
            self.__constructed__ = True
        return self


class Attributed(metaclass=AttributedType):
    """
    Base class of objects with attributed properties.

    - Storage: instance[name] reads, writes and deletes the stored value of a
      property directly (no accessor involved).
    - Construction: see the module documentation; constructors are not
      chained automatically, call super().__init__(...) explicitly.
    """
    __slots__ = ("__storage__", "__constructed__")

    def __new__(cls, *args, **kwargs):
        self = super().__new__(cls)
        self.__storage__ = clone(registry.template(cls))
        self.__constructed__ = False
        return self

    def __init__(self, *args, **kwargs):
        pass

    @classmethod
    def create(cls, *args, **kwargs):
        """
        Construct an instance (same as calling the class).
        """
        return cls(*args, **kwargs)

    def __getitem__(self, name, /):
        return self.__storage__[name]

    def __setitem__(self, name, value, /):
        self.__storage__[name] = value

    def __delitem__(self, name, /):
        del self.__storage__[name]

    def __contains__(self, name, /):
        return name in self.__storage__

    def __iter__(self):
        return iter(self.__storage__)

    def __len__(self):
        return len(self.__storage__)

    def __bool__(self):
        return True

    def __repr__(self):
        return f"<{type(self).__qualname__} {self.__storage__!r}>"

    def __rich_repr__(self):
        yield from self.__storage__.items()


__all__ = (
    "AttributedType",
    "Attributed",
)
