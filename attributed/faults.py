"""
Attributed faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every fault the core can
  raise. Codes are grouped by phase (class definition vs. call time) to keep
  logs and searches predictable.
- AttributedException: base type that carries message + options and knows how
  to render itself with rich.
- DeclarationError / HandlerResolutionError: raised while a class is being
  defined; fatal to loading that class.
- AccessDeniedError / UndefinedHandlerError / ExpressionEvaluationError: raised
  while objects are used or constructed.
- report(): print a fault to the stderr console without raising it.

Host configuration
- __styles__ in __main__: style overrides for the rich rendering.
- __codes__ in __main__: relabel fault codes (FaultCode -> str).
- __prog__ in __main__: program name shown in the fault header.

Nothing here swallows or retries: faults are raised where they are detected and
propagate synchronously to the caller.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - declaration (211xx): flags, parameters and initializer syntax
    - resolution (212xx): handler references
    - access (221xx): call-time dispatch
    - construction (222xx): initializer evaluation
    """
    # --- declaration errors (211xx) ---
    INVALID_SPECIFIER           = 21101
    CONFLICTING_MODIFIERS       = 21102
    MISSING_ACCESS_MODE         = 21103
    INVALID_PARAMETER           = 21104
    UNATTRIBUTABLE_BODY         = 21105
    MALFORMED_INITIALIZER       = 21111
    UNDEFINED_CONSTRUCTOR       = 21112

    # --- resolution errors (212xx) ---
    UNRESOLVED_HANDLER          = 21201

    # --- access errors (221xx) ---
    ACCESS_DENIED               = 22101
    UNDEFINED_HANDLER           = 22102

    # --- construction errors (222xx) ---
    EXPRESSION_FAILURE          = 22201

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class AttributedException(Exception):
    """
    Base class of every fault raised by the package.

    - message: one sentence, lowercase, naming the property/class involved.
    - options: read-only mapping with the fault context (code, title, hint and
      keys such as property, owner, mode, reference, constructor). Rendering
      switches (colorful, fancy, ratio) live here too.
    """
    code = Unset
    title = "attributed fault"

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).code, "title": type(self).title} | options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        code = self.options["code"]
        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", "attributed"), styler("prog-name")),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "-", styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        body = [message]
        if hint := self.options.get("hint"):
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            width = None
            if ratio := self.options.get("ratio"):
                width = int((console.width - 4) * ratio)
            return Panel(Group(*body), title=header, title_align="left", width=width)

        return Group(header, *body)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DeclarationError(AttributedException):
    code = FaultCode.INVALID_SPECIFIER
    title = "invalid declaration"


class HandlerResolutionError(AttributedException):
    code = FaultCode.UNRESOLVED_HANDLER
    title = "unresolved handler"


class AccessDeniedError(AttributedException):
    code = FaultCode.ACCESS_DENIED
    title = "access denied"


class UndefinedHandlerError(AttributedException):
    code = FaultCode.UNDEFINED_HANDLER
    title = "undefined handler"


class ExpressionEvaluationError(AttributedException):
    code = FaultCode.EXPRESSION_FAILURE
    title = "initializer failed"


def report(fault, /, **options):
    """
    print a fault on the stderr console (rich-rendered) without raising it.

    options are merged into the fault's own before rendering, e.g.
    report(error, fancy=True, colorful=False).
    """
    if not isinstance(fault, AttributedException):
        raise TypeError("report() argument must be an attributed fault")
    console.print(fault.__replace__(**options))


__all__ = (
    "FaultCode",
    "AttributedException",
    "DeclarationError",
    "HandlerResolutionError",
    "AccessDeniedError",
    "UndefinedHandlerError",
    "ExpressionEvaluationError",
    "report",
)
