"""Memcached text-protocol helpers, server selection, stats value parsing and Prometheus metric rendering."""

__version__ = "0.1.0"
__all__ = ["__version__"]