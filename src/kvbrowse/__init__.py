"""Terminal browser and editor for LMDB key-value stores."""

__version__ = "0.1.0"
