# Takeoff measurement and cost-derivation engine

from .constants import ENGINE_VERSION as __version__

__all__ = ["__version__"]
