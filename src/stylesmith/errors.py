"""Custom exception hierarchy for StyleSmith.

Every error carries a stable numeric ``code`` and the ``subject`` (path
or name) it concerns, so the diagnostic sink can report it uniformly.
"""

from __future__ import annotations

import logging

from stylesmith import config

diagnostics = logging.getLogger("stylesmith.diagnostics")


class StyleSmithError(Exception):
    """Base exception for all StyleSmith errors."""

    code = config.ERROR_INTERNAL

    def __init__(self, message: str, subject: str = ""):
        super().__init__(message)
        self.message = message
        self.subject = subject

    def __str__(self) -> str:
        if self.subject:
            return f"{self.subject}: {self.message}"
        return self.message


class InternalError(StyleSmithError):
    """Compiler invariant violated."""


class FileNotOpenedError(StyleSmithError):
    """A cache, theme, model or output file could not be read or written."""

    code = config.ERROR_FILE_NOT_OPENED


class ModelError(StyleSmithError):
    """Malformed module model document."""

    code = config.ERROR_BAD_MODEL


class GenerationError(StyleSmithError):
    """Errors while generating code for a module."""


class UnresolvedTypeError(GenerationError):
    """A type cannot be mapped to an emission."""

    code = config.ERROR_UNRESOLVED_TYPE


class UnresolvedStructError(GenerationError):
    """A struct name or its field list cannot be resolved."""

    code = config.ERROR_UNRESOLVED_STRUCT


class UnresolvedAliasError(GenerationError):
    """An alias references an unknown name."""

    code = config.ERROR_UNRESOLVED_ALIAS


class NonColorInPaletteError(GenerationError):
    """Palette module contains a non-color top-level variable."""

    code = config.ERROR_NON_COLOR_IN_PALETTE


class UnindexedResourceError(GenerationError):
    """An icon or font referenced a resource the tables never recorded."""

    code = config.ERROR_UNINDEXED_RESOURCE


class DuplicatePaletteNameError(GenerationError):
    """Two palette entries share a name."""

    code = config.ERROR_DUPLICATE_PALETTE_NAME


class IconError(StyleSmithError):
    """Errors related to icon asset loading or packing."""


class AssetNotFoundError(IconError):
    """Icon raster file missing or unreadable."""

    code = config.ERROR_ICON_NOT_FOUND


class IconFormatError(IconError):
    """Nominal and double-resolution rasters have different formats."""

    code = config.ERROR_BAD_ICON_FORMAT


class IconSizeError(IconError):
    """Double-resolution raster is not exactly twice the nominal size."""

    code = config.ERROR_BAD_ICON_SIZE


class ModifierNotFoundError(IconError):
    """Unknown icon modifier name."""

    code = config.ERROR_MODIFIER_NOT_FOUND


class InvalidPlaceholderError(IconError):
    """Malformed size-only icon descriptor."""

    code = config.ERROR_BAD_PLACEHOLDER


def report_error(error: StyleSmithError) -> None:
    """Send an error to the diagnostic sink."""
    diagnostics.error(
        "%s: error %d: %s", error.subject or "<module>", error.code, error.message
    )
