"""Generator runner: orchestrates all stages from model file to output.

This is the single entry point for the CLI.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from stylesmith.codegen.generator import Generator, module_base_name
from stylesmith.config import PALETTE_MODULE_NAME, STYLE_MODULE_PREFIX
from stylesmith.core.types import GenerateResult, GeneratorConfig, Module, ProgressCallback
from stylesmith.errors import ModelError, StyleSmithError, report_error
from stylesmith.io.files import validate_output_path
from stylesmith.io.model_json import load_module
from stylesmith.palette.theme import write_sample_theme

logger = logging.getLogger(__name__)


def _emit_progress(
    callback: Optional[ProgressCallback],
    stage: str,
    fraction: float,
    message: str = "",
) -> None:
    """Emit progress update if callback is provided."""
    if callback is not None:
        callback(stage, fraction, message)


def output_base_path(module: Module, config: GeneratorConfig) -> Path:
    """Output path without extension for ``module`` under ``config``."""
    if config.is_palette:
        base_name = PALETTE_MODULE_NAME
    elif config.is_palette is False and module.is_palette:
        base_name = STYLE_MODULE_PREFIX + module.filepath.name.split(".", 1)[0]
    else:
        base_name = module_base_name(module)
    return Path(config.output_dir) / base_name


def run_generator(
    config: GeneratorConfig,
    progress_callback: Optional[ProgressCallback] = None,
    module: Optional[Module] = None,
) -> GenerateResult:
    """Compile one style module to C++.

    Stages:
        1. Load: read the JSON model and its includes
        2. Collect: gather resources, build the palette layout
        3. Generate: build header, source and icon blobs in memory
        4. Write: commit changed files atomically
        5. Theme (palettes only): write the sample theme

    Nothing is written unless every in-memory stage succeeded.

    Args:
        config: Generator configuration.
        progress_callback: (stage_name, fraction, message) callback.
        module: Already-loaded module; skips stage 1 when given.

    Returns:
        GenerateResult with written paths, checksum and diagnostics.
    """
    try:
        return _run(config, progress_callback, module)
    except StyleSmithError as e:
        report_error(e)
        raise


def _run(
    config: GeneratorConfig,
    progress_callback: Optional[ProgressCallback],
    module: Optional[Module],
) -> GenerateResult:
    t_start = time.perf_counter()
    diagnostics: dict = {}

    # ---------------------------------------------------------------
    # Stage 1: Load
    # ---------------------------------------------------------------
    _emit_progress(progress_callback, "load", 0.0, "Loading model...")
    t0 = time.perf_counter()
    if module is None:
        if config.model_path is None:
            raise ModelError("A model path is required")
        module = load_module(config.model_path)
    diagnostics["load_time"] = time.perf_counter() - t0
    diagnostics["variables"] = len(module.variables)
    diagnostics["structs"] = len(module.structs)
    diagnostics["includes"] = len(module.includes)
    _emit_progress(progress_callback, "load", 1.0, f"{len(module.variables)} variables")
    logger.info("Load: %.2fs, %s", diagnostics["load_time"], module.filepath.name)

    # ---------------------------------------------------------------
    # Stage 2: Collect
    # ---------------------------------------------------------------
    _emit_progress(progress_callback, "collect", 0.0, "Collecting resources...")
    t0 = time.perf_counter()
    base_path = output_base_path(module, config)
    for suffix in (".h", ".cpp"):
        validate_output_path(base_path.with_name(base_path.name + suffix))
    asset_root = config.asset_root
    if asset_root is None:
        asset_root = module.filepath.parent

    generator = Generator(
        module,
        base_path,
        project_name=config.project_name,
        is_palette=config.is_palette,
        asset_root=asset_root,
    )
    layout = generator.palette_layout if generator.is_palette else None
    diagnostics["collect_time"] = time.perf_counter() - t0
    diagnostics["px_values"] = len(generator.tables.px_values)
    diagnostics["font_families"] = len(generator.tables.font_families)
    diagnostics["icon_masks"] = len(generator.tables.icon_masks)
    theme_path = None
    if layout is not None and config.theme_path is not None:
        theme_path = validate_output_path(config.theme_path)
    if layout is not None:
        diagnostics["palette_colors"] = layout.count
    _emit_progress(progress_callback, "collect", 1.0, "Resources collected")

    # ---------------------------------------------------------------
    # Stage 3: Generate
    # ---------------------------------------------------------------
    _emit_progress(progress_callback, "generate", 0.0, "Generating code...")
    t0 = time.perf_counter()
    header, source = generator.build()
    header_text = header.content()
    source_text = source.content()
    diagnostics["generate_time"] = time.perf_counter() - t0
    diagnostics["header_bytes"] = len(header_text)
    diagnostics["source_bytes"] = len(source_text)
    _emit_progress(progress_callback, "generate", 1.0, "Code generated")
    logger.info("Generate: %.2fs", diagnostics["generate_time"])

    # ---------------------------------------------------------------
    # Stage 4: Write
    # ---------------------------------------------------------------
    _emit_progress(progress_callback, "write", 0.0, "Writing files...")
    written: list[Path] = []
    for cpp_file in (header, source):
        if cpp_file.commit():
            written.append(cpp_file.path)
            logger.info("Wrote %s", cpp_file.path)
        else:
            logger.debug("Unchanged %s", cpp_file.path)
    _emit_progress(progress_callback, "write", 1.0, f"{len(written)} files written")

    # ---------------------------------------------------------------
    # Stage 5: Theme
    # ---------------------------------------------------------------
    if theme_path is not None:
        _emit_progress(progress_callback, "theme", 0.0, "Writing sample theme...")
        if write_sample_theme(layout, theme_path):
            written.append(theme_path)
        _emit_progress(progress_callback, "theme", 1.0, "Theme written")

    diagnostics["total_time"] = time.perf_counter() - t_start
    logger.info("Generator complete: %.2fs total", diagnostics["total_time"])

    return GenerateResult(
        header_path=header.path,
        source_path=source.path,
        written=written,
        theme_path=theme_path,
        checksum=layout.checksum if layout is not None else None,
        diagnostics=diagnostics,
    )
