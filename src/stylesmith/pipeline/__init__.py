"""Compilation pipeline."""
