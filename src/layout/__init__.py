"""Auto-layout for visuals placed inside a dashboard frame."""

from .engine import LayoutEngine

__all__ = ["LayoutEngine"]
