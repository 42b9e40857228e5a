"""Control plane routers."""

from . import editor, units, ws

__all__ = ["editor", "units", "ws"]
