"""Read and edit Android device properties, live or from property files."""

from .exceptions import ConfigurationError, DevPropsError, PropertyParseError
from .live import LiveProperties
from .propfile import FileProperties
from .store import PropertyCache, PropertyStore

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "PropertyCache",
    "PropertyStore",
    "LiveProperties",
    "FileProperties",
    "DevPropsError",
    "PropertyParseError",
    "ConfigurationError",
]
