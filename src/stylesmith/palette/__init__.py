"""Palette layout, executable runtime model and theme export."""
