__title__ = 'bindery'
__license__ = 'MIT'
__version__ = "0.1.0"

from .faults import *
from .targets import *
from .schema import *
from .tokens import *
from .runner import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
))

version_info = VersionInfo(0, 1, 0, "final", 0)

# Library logging stays silent unless the host (or configure_logging) adds handlers.
__import__("logging").getLogger(__name__).addHandler(__import__("logging").NullHandler())

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info",
)

# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the targets
__all__ += targets.__all__  # type: ignore[attr-defined]
# Load the exposed API of the schema
__all__ += schema.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokens
__all__ += tokens.__all__  # type: ignore[attr-defined]
# Load the exposed API of the runners
__all__ += runner.__all__  # type: ignore[attr-defined]
