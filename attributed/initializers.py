r"""
Attributed member initialization (constructor initializer lists).

Declaration forms
- @initialize("count(start_at)")   → call the member's write path with the values
                                     produced by the argument list (zero or more;
                                     a property given none is left untouched).
- @initialize("count=start_at")    → store the value directly, bypassing accessors.
- @initialize("count", callback)   → closure form; callback(self, *args, **kwargs)
                                     returns the value (direct=True to store it).

Expressions are compiled once, at class-definition time, and evaluated at every
construction in the declaring module's globals plus:
- self: the instance under construction;
- args / kwargs: mutable copies of the constructor's arguments;
- every constructor parameter by name, defaults applied.
All entries of one construction share that scope; the constructor body always
receives the original arguments.

Layers
- Entries are grouped by constructor name, then layered by owning class. The
  first declaration for (class, constructor) snapshots every ancestor's layer;
  each declaration appends to the class's own layer and deletes same-named
  entries from every ancestor layer.
- A wrapped constructor runs only its own class's layer, as seen from the
  runtime class. Ancestor layers run when the ancestor constructor is called
  (super().__init__(...)); nothing is chained automatically.
- Once the instance is constructed, constructors run without initializers.

Quick example:
    >>> class Counter(Attributed):
    ...     count = prop("read", "write")
    ...
    ...     @initialize("count(start_at)")
    ...     def __init__(self, start_at=0):
    ...         pass
    ...
    >>> Counter(5).count()
    5
"""
import ast
import functools
import inspect
import logging
import re
import sys
from collections.abc import Callable
from typing import NamedTuple

from .accessors import Accessor
from .faults import FaultCode, DeclarationError, UndefinedHandlerError, ExpressionEvaluationError
from .registry import registry
from .utils import *

logger = logging.getLogger(__name__)

_CALL = re.compile(r"\s*(?P<name>(?!\d)\w+)\s*\((?P<expression>.*)\)\s*", re.DOTALL)
_ASSIGN = re.compile(r"\s*(?P<name>(?!\d)\w+)\s*=(?!=)(?P<expression>.*)", re.DOTALL)


class InitializerEntry(NamedTuple):
    constructor: str
    owner: type
    name: str
    expression: Callable
    direct: bool
    source: str


def _values(*values):
    return values


def is_constructed(instance, /):
    """
    True once the top-level construction call of `instance` has returned.
    """
    return getattr(instance, "__constructed__", False)


def _malformed(source, reason, /):
    return DeclarationError(
        f"unable to parse initializer {source!r}: {reason}",
        code=FaultCode.MALFORMED_INITIALIZER,
        source=source,
        hint="use 'member(expression, ...)' or 'member=expression'"
    )


def _compile_call(source, body, /):
    try:
        tree = ast.parse(f"__values__({body})", mode="eval")
    except SyntaxError as exception:
        raise _malformed(source, exception.msg) from None

    call = tree.body
    if not isinstance(call, ast.Call) or not isinstance(call.func, ast.Name) or call.func.id != "__values__":
        raise _malformed(source, "the argument list is not a single call")
    if call.keywords:
        raise _malformed(source, "keyword arguments are not accepted")

    code = compile(tree, f"<initializer {source}>", "eval")

    def expression(context):
        return eval(code, context.namespace)
    return expression


def _compile_assignment(source, body, /):
    try:
        code = compile(ast.parse(body.strip(), mode="eval"), f"<initializer {source}>", "eval")
    except SyntaxError as exception:
        raise _malformed(source, exception.msg) from None

    def expression(context):
        return eval(code, context.namespace),
    return expression


def parse(declaration, expression=Unset, /, *, direct=False):
    """
    Build an (unbound) InitializerEntry from one declaration.

    Forms
    - parse("name(expr, ...)")          → via the member's write path
    - parse("name=expr")                → direct storage assignment
    - parse("name", callback)           → closure form (direct=True for storage)

    Raises
    - DeclarationError when the declaration matches neither shape.
    """
    if not isinstance(declaration, str):
        raise DeclarationError(
            "initializer declaration must be a string",
            code=FaultCode.MALFORMED_INITIALIZER,
            source=declaration
        )

    if expression is not Unset:
        if not (name := declaration.strip()).isidentifier():
            raise _malformed(declaration, "the member name must be an identifier")
        if not callable(expression):
            raise _malformed(declaration, "the expression must be callable")

        def evaluate(context):
            return expression(context.instance, *context.args, **context.kwargs),

        label = getattr(expression, "__qualname__", type(expression).__qualname__)
        source = f"{name}={label}(...)" if direct else f"{name}({label}(...))"
        return InitializerEntry(Unset, Unset, name, evaluate, bool(direct), source)

    if match := _CALL.fullmatch(declaration):
        return InitializerEntry(
            Unset, Unset, match["name"], _compile_call(declaration, match["expression"]), False, declaration.strip()
        )
    if match := _ASSIGN.fullmatch(declaration):
        return InitializerEntry(
            Unset, Unset, match["name"], _compile_assignment(declaration, match["expression"]), True, declaration.strip()
        )
    raise _malformed(declaration, "expected 'member(expression)' or 'member=expression'")


def compile_initializer(cls, constructor, entry, /):
    """
    Merge one entry into the layered table of (cls, constructor).

    Returns
    - True when this was the first declaration for the pair (the constructor
      must then be wrapped), False otherwise.
    """
    tables = registry.initializers.setdefault(cls, {})
    if first := constructor not in tables:
        ancestors = linearize(cls)[1:]
        layers = {}
        for ancestor in reversed(ancestors):
            if (layer := registry.layer(ancestors, constructor, ancestor, Unset)) is not Unset:
                layers[ancestor] = clone(layer)
        layers[cls] = []
        tables[constructor] = layers

    layers = tables[constructor]
    layers[cls].append(entry := entry._replace(constructor=constructor, owner=cls))
    for owner, layer in layers.items():
        if owner is not cls:
            layer[:] = [x for x in layer if x.name != entry.name]

    logger.debug(
        "compiled initializer %s.%s: %s (%s)",
        cls.__qualname__, constructor, entry.source, "direct" if entry.direct else "via method"
    )
    return first


class InitializerContext:
    """
    Evaluation scope shared by the entries of one construction.
    """

    def __init__(self, instance, owner, function, args, kwargs, /):
        self.instance = instance
        self.owner = owner
        self.args = list(args)
        self.kwargs = dict(kwargs)
        bound = inspect.signature(function).bind(instance, *args, **kwargs)
        bound.apply_defaults()
        self.arguments = dict(bound.arguments)

    @functools.cached_property
    def namespace(self):
        module = sys.modules.get(self.owner.__module__)
        return (dict(vars(module)) if module else {}) | self.arguments | {
            "self": self.instance,
            "args": self.args,
            "kwargs": self.kwargs,
            "__values__": _values,
        }


def _write(instance, entry, values, /):
    """
    Push values through the member's write path (method-form entries).
    """
    member = inspect.getattr_static(type(instance), entry.name, Unset)
    if isinstance(member, Accessor):
        # An empty argument list leaves the property at its current value.
        if not values:
            return instance
        return member.write(instance, *values)
    if member is Unset:
        raise UndefinedHandlerError(
            f"initializer {entry.source!r} targets undefined member {entry.name!r} of {type(instance).__qualname__}",
            property=entry.name,
            owner=type(instance),
            constructor=entry.constructor,
            hint="declare the property or define the method before constructing"
        )
    return getattr(instance, entry.name)(*values)


def run(instance, owner, constructor, function, args, kwargs, /):
    """
    Execute the layer of `owner` for `constructor`, as seen from the runtime class.
    """
    entries = registry.layer(linearize(type(instance)), constructor, owner)
    if not entries:
        return

    context = InitializerContext(instance, owner, function, args, kwargs)
    for entry in entries:
        try:
            values = entry.expression(context)
        except Exception as exception:
            raise ExpressionEvaluationError(
                f"initializer {entry.source!r} of {owner.__qualname__}.{constructor} failed: {exception}",
                property=entry.name,
                owner=owner,
                constructor=constructor,
                source=entry.source
            ) from exception

        if entry.direct:
            match values:
                case ():
                    instance.__storage__[entry.name] = None
                case (value,):
                    instance.__storage__[entry.name] = value
                case _:
                    instance.__storage__[entry.name] = tuple(values)
        else:
            _write(instance, entry, values)

    logger.debug("ran %d initializer(s) of %s.%s for %s", len(entries), owner.__qualname__, constructor, type(instance).__qualname__)


def wrap(owner, constructor, function, /):
    """
    Wrap a constructor so its initializer layer runs before the body, until the instance is constructed.
    """
    @functools.wraps(function)
    def wrapper(self, /, *args, **kwargs):
        if not is_constructed(self):
            run(self, owner, constructor, function, args, kwargs)
        return function(self, *args, **kwargs)

    logger.debug("wrapped constructor %s.%s", owner.__qualname__, constructor)
    return wrapper


class Constructor:
    """
    Constructor carrying pending initializer declarations (produced by @initialize).

    The class machinery compiles the declarations and replaces this object with
    the wrapped function; until then it behaves like the function it holds.
    """

    def __init__(self, function, /):
        self.function = function
        self.entries = []
        functools.update_wrapper(self, function)

    def __constructor__(self):
        """
        Introspection hook: identify this object as a constructor declaration.
        """
        return self

    def __get__(self, instance, owner=None, /):
        return self.function.__get__(instance, owner)

    def __call__(self, *args, **kwargs):
        return self.function(*args, **kwargs)


def attach(cls, name, function, entries, /):
    """
    Compile entries for constructor `name` of `cls`, wrapping `function` on the first declaration.
    """
    first = False
    for entry in entries:
        first |= compile_initializer(cls, name, entry)
    if first:
        define(cls, name, wrap(cls, name, function))
    return registry.effective(cls, name)


def initialize(declaration, expression=Unset, /, *, direct=False):
    """
    Decorator declaring one initializer on a constructor.

    Usage
        @initialize("name(args[0] if args else 'Joe')")
        @initialize("age=0")
        def __init__(self, *args): ...

    Stacked decorators keep their top-to-bottom order.
    """
    entry = parse(declaration, expression, direct=direct)

    @rename("initialize")
    def wrapper(function, /):
        if isinstance(function, Constructor):
            constructor = function
        elif callable(function):
            constructor = Constructor(function)
        else:
            raise TypeError("@initialize() must be applied to a callable")
        # Decorators apply bottom-up; prepend to keep reading order.
        constructor.entries.insert(0, entry)
        return constructor

    return wrapper


def define_initializer(cls, constructor, declaration, expression=Unset, /, *, direct=False):
    """
    Declare an initializer on a constructor of an existing class (builder form of @initialize).
    """
    entry = parse(declaration, expression, direct=direct)
    if not isinstance(cls, type):
        raise TypeError("define_initializer() first argument must be a class")
    if not callable(function := vars(cls).get(constructor)):
        raise DeclarationError(
            f"constructor {constructor!r} is not defined in {cls.__qualname__}",
            code=FaultCode.UNDEFINED_CONSTRUCTOR,
            owner=cls,
            constructor=constructor
        )
    return attach(cls, constructor, function, [entry])


def initializers(cls, constructor="__init__", /):
    """
    Effective initializer list of `cls` for `constructor`: ancestor layers root to self, then the own layer.
    """
    return registry.effective(cls, constructor)


__all__ = (
    "InitializerEntry",
    "Constructor",
    "is_constructed",
    "compile_initializer",
    "initialize",
    "define_initializer",
    "initializers",
)
