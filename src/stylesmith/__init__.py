"""StyleSmith: style-definition compiler for typed accessors, palettes and icon atlases."""

__version__ = "0.3.0"
