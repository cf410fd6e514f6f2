"""Per-session message window engine."""

from importlib.metadata import version as _v

try:
    __version__ = _v("msgwindow")
except Exception:
    __version__ = "0.0.0"
