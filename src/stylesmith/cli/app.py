"""StyleSmith CLI application.

Commands:
    generate  - Compile a style or palette module to C++
    checksum  - Print the palette checksum of a palette module
    lookup    - Resolve a color name to its palette slot
    atlas     - Pack an icon raster pair into a multi-resolution PNG
    scales    - Show the per-scale adjusted values of a pixel value
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from stylesmith import __version__
from stylesmith.config import SCALE_NAMES, SCALES
from stylesmith.core.types import GeneratorConfig, IconAsset
from stylesmith.errors import StyleSmithError, report_error

app = typer.Typer(
    name="stylesmith",
    help="Style definition to C++ code generator.",
    no_args_is_help=True,
)
console = Console()

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)


def version_callback(value: bool):
    if value:
        console.print(f"StyleSmith v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version and exit.",
        callback=version_callback, is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    if verbose:
        logging.getLogger("stylesmith").setLevel(logging.DEBUG)


_STAGE_WEIGHTS = {
    "load": 10,
    "collect": 15,
    "generate": 60,
    "write": 10,
    "theme": 5,
}


def _build_progress_callback(progress: Progress, task_id: int):
    """Create weighted stage-progress callback for generator runs."""

    stage_order = list(_STAGE_WEIGHTS.keys())

    def on_progress(stage: str, fraction: float, message: str):
        base = sum(
            _STAGE_WEIGHTS[s]
            for s in stage_order
            if stage in _STAGE_WEIGHTS and stage_order.index(s) < stage_order.index(stage)
        )
        weight = _STAGE_WEIGHTS.get(stage, 0)
        pct = base + weight * fraction
        progress.update(
            task_id,
            completed=pct,
            description=f"{stage}: {message}" if message else stage,
        )

    return on_progress


def _load_palette_layout(model: Path):
    """Load a module and build its palette layout, mapping errors to exit 1."""
    from stylesmith.io.model_json import load_module
    from stylesmith.palette.layout import build_palette_layout

    try:
        module = load_module(model)
        return build_palette_layout(module)
    except StyleSmithError as e:
        report_error(e)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def generate(
    model: Path = typer.Argument(..., help="Module model file (.json)."),
    output_dir: Path = typer.Option(Path("."), "-o", "--output-dir", help="Output directory."),
    theme: Optional[Path] = typer.Option(
        None, "--theme", help="Sample theme path (palette modules only)."
    ),
    assets: Optional[Path] = typer.Option(
        None, "--assets", help="Base directory for relative icon paths."
    ),
    palette: Optional[bool] = typer.Option(
        None, "--palette/--style", help="Force module kind (default: from file name)."
    ),
    project_name: str = typer.Option("StyleSmith", "--project", help="Name in generated banner."),
):
    """Compile a style or palette module to a C++ header and source."""
    from stylesmith.pipeline.runner import run_generator

    config = GeneratorConfig(
        model_path=model,
        asset_root=assets,
        output_dir=output_dir,
        theme_path=theme,
        project_name=project_name,
        is_palette=palette,
    )

    console.print(f"\n[bold]StyleSmith Code Generation[/bold]")
    console.print(f"  Model:  {model}")
    console.print(f"  Output: {output_dir}")
    if theme is not None:
        console.print(f"  Theme:  {theme}")
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Generating...", total=100)
        on_progress = _build_progress_callback(progress, task)

        try:
            result = run_generator(config, progress_callback=on_progress)
            progress.update(task, completed=100, description="Complete")
        except StyleSmithError as e:
            console.print(f"\n[red]Error:[/red] {e}")
            raise typer.Exit(code=1)

    console.print()
    _print_result(result)

    total_time = result.diagnostics.get("total_time", 0)
    console.print(f"[dim]Total time: {total_time:.2f}s[/dim]\n")


@app.command()
def checksum(
    model: Path = typer.Argument(..., help="Palette module model file (.json)."),
):
    """Print the checksum of a palette module."""
    layout = _load_palette_layout(model)
    console.print(layout.checksum)


@app.command()
def lookup(
    model: Path = typer.Argument(..., help="Palette module model file (.json)."),
    name: str = typer.Argument(..., help="Color name to resolve."),
):
    """Resolve a color name to its palette slot index (-1 if unknown)."""
    from stylesmith.codegen.literals import color_hex
    from stylesmith.palette.runtime import Palette

    layout = _load_palette_layout(model)
    index = layout.index_of(name)
    if index < 0:
        console.print(f"[yellow]{name}[/yellow]: -1")
        raise typer.Exit(code=1)
    palette = Palette(layout)
    palette.finalize()
    entry = layout.entries[index]
    fallback = f" (fallback {entry.fallback_name})" if entry.fallback_name else ""
    console.print(
        f"[cyan]{name}[/cyan]: {index} #{color_hex(*palette.color_at(index))} "
        f"[dim]{palette.status(index).value}{fallback}[/dim]"
    )


@app.command()
def atlas(
    path: Path = typer.Argument(..., help="Icon base path without extension."),
    modifiers: Optional[list[str]] = typer.Option(
        None, "-m", "--modifier", help="Modifier to apply (repeatable)."
    ),
    output: Path = typer.Option("atlas.png", "-o", "--output", help="Output PNG path."),
):
    """Pack an icon's 1x/2x rasters into a four-resolution PNG atlas."""
    from stylesmith.icons.atlas import build_icon_atlas
    from stylesmith.io.files import write_if_changed

    asset = IconAsset(str(path), tuple(modifiers or ()))
    try:
        packed = build_icon_atlas(asset)
        write_if_changed(output, packed.to_png())
    except StyleSmithError as e:
        report_error(e)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Atlas Regions", show_header=True, header_style="bold")
    table.add_column("Scale", style="cyan")
    table.add_column("Rect (x, y, w, h)", justify="right")
    for name, rect in packed.rects.items():
        table.add_row(name, ", ".join(str(v) for v in rect))
    console.print(table)
    console.print(f"\n[green]Saved:[/green] {output} ({packed.width}x{packed.height})\n")


@app.command()
def scales(
    value: int = typer.Argument(..., help="Pixel value at 100% scale."),
):
    """Show a pixel value adjusted for every interface scale."""
    from stylesmith.core.scale import px_adjust

    table = Table(title=f"Scaled {value}px", show_header=True, header_style="bold")
    table.add_column("Scale", style="cyan")
    table.add_column("Value", justify="right")
    for scale, name in zip(SCALES, SCALE_NAMES):
        table.add_row(f"{name} ({scale * 25}%)", str(px_adjust(value, scale)))
    console.print(table)


def _print_result(result) -> None:
    """Display generated artifacts in a formatted table."""
    table = Table(title="Generated Files", show_header=True, header_style="bold")
    table.add_column("File", style="cyan")
    table.add_column("Status", justify="center")

    artifacts = [result.header_path, result.source_path]
    if result.theme_path is not None:
        artifacts.append(result.theme_path)
    written = {Path(p).resolve() for p in result.written}
    for path in artifacts:
        status = "[green]Written[/green]" if Path(path).resolve() in written else "[dim]Unchanged[/dim]"
        table.add_row(str(path), status)
    console.print(table)

    if result.checksum is not None:
        console.print(f"[dim]Palette checksum: {result.checksum}[/dim]")
    diag = result.diagnostics
    console.print(
        f"[dim]Variables: {diag.get('variables', 0)}, px values: {diag.get('px_values', 0)}, "
        f"fonts: {diag.get('font_families', 0)}, icons: {diag.get('icon_masks', 0)}[/dim]"
    )


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
