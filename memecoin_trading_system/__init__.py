"""Core package for the memecoin launch paper-trading system."""

from importlib import metadata

try:
    __version__ = metadata.version('memecoin_trading_system')
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = '0.1.0-dev'

__all__ = ['__version__']
