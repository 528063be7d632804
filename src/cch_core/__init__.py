"""Secret scanning and transcript blob redaction for developer tool caches."""
from .version import __version__

__all__ = ["__version__"]
