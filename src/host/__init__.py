"""Host process: binds the command protocol to the document adapter."""

from .controller import HostController

__all__ = ["HostController"]
