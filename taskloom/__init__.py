__title__ = 'taskloom'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

__import__("logging").getLogger(__name__).addHandler(__import__("logging").NullHandler())

from .utils import *
from .faults import *
from .arguments import *
from .actions import *
from .definitions import *
from .builders import *
from .binding import *
from .chain import *
from .tasks import *
from .plugins import *
from .environment import *
from .commands import *

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
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the parameter specs
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the actions
__all__ += actions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the definitions
__all__ += definitions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the builders
__all__ += builders.__all__  # type: ignore[attr-defined]
# Load the exposed API of the argument resolver
__all__ += binding.__all__  # type: ignore[attr-defined]
# Load the exposed API of the execution chain
__all__ += chain.__all__  # type: ignore[attr-defined]
# Load the exposed API of the registry
__all__ += tasks.__all__  # type: ignore[attr-defined]
# Load the exposed API of the plugins
__all__ += plugins.__all__  # type: ignore[attr-defined]
# Load the exposed API of the environment
__all__ += environment.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command-line front-end
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
