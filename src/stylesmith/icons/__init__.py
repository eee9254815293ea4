"""Icon atlas building and raster modifiers."""
