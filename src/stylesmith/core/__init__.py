"""Core model types and scale helpers."""
