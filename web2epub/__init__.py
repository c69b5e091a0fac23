"""Convert web articles into EPUB e-books."""

from .config import VERSION as __version__

__all__ = ["__version__"]
