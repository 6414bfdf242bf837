"""Search the OMDb catalog and keep a rated list of watched movies."""

__version__ = "0.1.0"

__all__ = ["__version__"]
