"""Public package surface for certharvest.

Importing `certharvest` exposes the high-level API function (`harvest`) and
package version, keeping internals hidden by default.
"""

from .core import harvest
from .version import __version__

__all__ = ["harvest", "__version__"]
