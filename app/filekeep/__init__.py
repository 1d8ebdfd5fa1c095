"""filekeep - storage browser with a recoverable recycle bin."""

__version__ = "0.1.0"
