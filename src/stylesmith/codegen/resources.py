"""Shared-resource deduplication tables.

Repeated pixel magnitudes, font families and icon assets collapse into one
runtime slot each. Indices start at 1 and follow first-discovery order of a
depth-first walk over the module's variables; plain dicts keep that order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from stylesmith.core.types import IconAsset, Module, TypeTag, Value, Variable
from stylesmith.errors import UnresolvedStructError

logger = logging.getLogger(__name__)


@dataclass
class ResourceTables:
    """Ordered key -> index maps for one compilation pass."""
    px_values: dict[int, int] = field(default_factory=dict)
    font_families: dict[str, int] = field(default_factory=dict)
    icon_masks: dict[IconAsset, int] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.px_values or self.font_families or self.icon_masks)

    def add_px(self, value: int) -> int:
        return self.px_values.setdefault(value, len(self.px_values) + 1)

    def add_font_family(self, family: str) -> int:
        return self.font_families.setdefault(family, len(self.font_families) + 1)

    def add_icon(self, asset: IconAsset) -> int:
        return self.icon_masks.setdefault(asset, len(self.icon_masks) + 1)

    def font_family_index(self, family: str) -> int:
        """Index of a family, or -1 when it was never recorded."""
        return self.font_families.get(family, -1)

    def icon_mask_index(self, asset: IconAsset) -> int:
        """Index of an icon asset, or -1 when it was never recorded."""
        return self.icon_masks.get(asset, -1)


def _collect_value(tables: ResourceTables, value: Value, name: str) -> None:
    if value.is_alias:
        # The referent was collected where it was declared.
        return

    tag = value.type.tag
    data = value.data
    if tag == TypeTag.PIXELS:
        tables.add_px(data)
    elif tag == TypeTag.POINT:
        tables.add_px(data.x)
        tables.add_px(data.y)
    elif tag == TypeTag.SIZE:
        tables.add_px(data.width)
        tables.add_px(data.height)
    elif tag == TypeTag.MARGINS:
        for magnitude in (data.left, data.top, data.right, data.bottom):
            tables.add_px(magnitude)
    elif tag == TypeTag.FONT:
        tables.add_px(data.size)
        if data.family:
            tables.add_font_family(data.family)
    elif tag == TypeTag.ICON:
        for part in data.parts:
            _collect_value(tables, part.offset, name)
            tables.add_icon(part.asset)
    elif tag == TypeTag.STRUCT:
        if data is None:
            raise UnresolvedStructError(
                f"struct fields of type '{'.'.join(value.type.name)}' are unresolved",
                subject=name,
            )
        for field_variable in data:
            _collect_variable(tables, field_variable)


def _collect_variable(tables: ResourceTables, variable: Variable) -> None:
    _collect_value(tables, variable.value, ".".join(variable.name))


def collect_resources(module: Module) -> ResourceTables:
    """Scan every variable of ``module`` and build its resource tables.

    Returns:
        ResourceTables with indices assigned in first-discovery order.

    Raises:
        UnresolvedStructError: A struct value has no resolved field list.
    """
    tables = ResourceTables()
    for variable in module.enum_variables():
        _collect_variable(tables, variable)

    logger.debug(
        "Collected %d px values, %d font families, %d icon masks from %s",
        len(tables.px_values),
        len(tables.font_families),
        len(tables.icon_masks),
        module.filepath.name,
    )
    return tables
