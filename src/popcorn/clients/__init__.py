from .base import CatalogError, CatalogTransportError, MovieCatalog, MovieNotFoundError
from .omdb import OMDbClient, omdb_client

__all__ = [
    "CatalogError",
    "CatalogTransportError",
    "MovieCatalog",
    "MovieNotFoundError",
    "OMDbClient",
    "omdb_client",
]
