"""Backends that render runtime output for a concrete target (CSS, ...)."""

from .css_grid import generate_css, save_css_file

__all__ = ["generate_css", "save_css_file"]
