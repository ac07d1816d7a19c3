__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'attributed'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from . import properties, initializers, objects, faults

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "Access",
    "Accessor",
    "Unset",
)

# Load the exposed API of the properties
__all__ += properties.__all__  # type: ignore[attr-defined]
# Load the exposed API of the initializers
__all__ += initializers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the objects
__all__ += objects.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]

# Star imports come last: properties() and initializers() shadow their modules.
from .accessors import Accessor
from .handlers import Access
from .utils import Unset
from .properties import *
from .initializers import *
from .objects import *
from .faults import *
