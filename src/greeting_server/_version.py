"""Version information for the greeting server."""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("greeting-operator")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0+dev"
