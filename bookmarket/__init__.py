# bookmarket/__init__.py
"""Book marketplace: catalog listing, search and per-owner book listings."""

__version__ = "1.0.0"
