"""moviecatalog - Movie catalog data-access layer with paginated queries."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("moviecatalog")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]
