"""File, image and model I/O."""
