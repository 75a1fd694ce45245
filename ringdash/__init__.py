"""ringdash -- live terminal dashboard for a consistent-hash key-value ring."""

__version__ = "0.3.0"
