"""ClientDesk: client records manager."""

__version__ = "0.1.0"
