"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import NoReturn

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from collage_annealer.collage import Collager, CollageResult
from collage_annealer.config import CollageConfig
from collage_annealer.errors import DecodeFailure, PreconditionViolation
from collage_annealer.image_io import (
    load_library,
    load_target,
    make_comparison_grid,
    save_upscaled,
)

app = typer.Typer(
    name="collage-annealer",
    help="Approximate an image with a collage of other images.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def _run(
    cfg: CollageConfig,
    target_path: Path,
    library: list[np.ndarray],
    output: Path,
) -> CollageResult:
    target = load_target(target_path, cfg.max_side)
    result = Collager(cfg, target).collage(library)
    save_upscaled(result.image, output, cfg.pixel_upscale)
    if cfg.save_comparison:
        comp_path = output.with_name(f"{output.stem}_comparison{output.suffix}")
        make_comparison_grid(target, result.image, comp_path, cfg.pixel_upscale)
    return result


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[bold red]error:[/bold red] {exc}")
    raise typer.Exit(1)


# Defaults come from CollageConfig - single source of truth
_DEFAULTS = CollageConfig()


# -- single-image command ----------------------------------------------

@app.command()
def single(
    target: Path = typer.Argument(..., help="Path to the target image"),
    library_dir: Path = typer.Argument(..., help="Folder with overlay images"),
    output: Path = typer.Option(Path("output/collage.png"), "--output", "-o"),
    steps: int = typer.Option(_DEFAULTS.steps, "--steps", help="Annealing steps per run"),
    amount: int = typer.Option(_DEFAULTS.amount, "--amount", "-n", help="Layers to place"),
    starts: int = typer.Option(_DEFAULTS.starts, "--starts", help="Restarts per layer"),
    temperature: float = typer.Option(
        _DEFAULTS.starting_temperature, "--temperature", "-t",
        help="Starting temperature of layer searches",
    ),
    scaling: bool = typer.Option(_DEFAULTS.enable_scaling, "--scaling/--no-scaling"),
    rotation: bool = typer.Option(_DEFAULTS.enable_rotation, "--rotation/--no-rotation"),
    hue: bool = typer.Option(_DEFAULTS.enable_hue, "--hue/--no-hue"),
    transparency: bool = typer.Option(
        _DEFAULTS.enable_transparency, "--transparency/--no-transparency",
    ),
    debug: bool = typer.Option(
        _DEFAULTS.debug_snapshots, "--debug/--no-debug",
        help="Save a snapshot after every layer",
    ),
    max_side: int | None = typer.Option(
        _DEFAULTS.max_side, "--max-side", "-m",
        help="Longest side of downscaled target (aspect ratio preserved)",
    ),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u"),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Collage a single image."""
    _setup_logging(verbose)

    cfg = CollageConfig(
        steps=steps,
        amount=amount,
        starts=starts,
        starting_temperature=temperature,
        enable_scaling=scaling,
        enable_rotation=rotation,
        enable_hue=hue,
        enable_transparency=transparency,
        debug_snapshots=debug,
        max_side=max_side,
        seed=seed,
        pixel_upscale=upscale,
        save_comparison=comparison,
        library_dir=library_dir,
    )

    output.parent.mkdir(parents=True, exist_ok=True)

    t0 = time.perf_counter()
    try:
        library = load_library(library_dir)
        result = _run(cfg, target, library, output)
    except (DecodeFailure, PreconditionViolation, FileNotFoundError) as exc:
        _fail(exc)

    h, w = result.image.shape[:2]
    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{w}x{h}  error={result.error:.3f}"
        f"  time={time.perf_counter() - t0:.1f}s[/dim]"
    )


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with target images",
    ),
    library_dir: Path = typer.Option(
        _DEFAULTS.library_dir, "--library", "-l", help="Folder with overlay images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    steps: int = typer.Option(_DEFAULTS.steps, "--steps"),
    amount: int = typer.Option(_DEFAULTS.amount, "--amount", "-n"),
    starts: int = typer.Option(_DEFAULTS.starts, "--starts"),
    temperature: float = typer.Option(
        _DEFAULTS.starting_temperature, "--temperature", "-t",
    ),
    scaling: bool = typer.Option(_DEFAULTS.enable_scaling, "--scaling/--no-scaling"),
    rotation: bool = typer.Option(_DEFAULTS.enable_rotation, "--rotation/--no-rotation"),
    hue: bool = typer.Option(_DEFAULTS.enable_hue, "--hue/--no-hue"),
    transparency: bool = typer.Option(
        _DEFAULTS.enable_transparency, "--transparency/--no-transparency",
    ),
    max_side: int | None = typer.Option(_DEFAULTS.max_side, "--max-side", "-m"),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u"),
    debug: bool = typer.Option(
        _DEFAULTS.debug_snapshots, "--debug/--no-debug",
        help="Save a snapshot after every layer, one folder per image",
    ),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Collage all images in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)
    logger = logging.getLogger("collage_annealer")

    cfg = CollageConfig(
        steps=steps,
        amount=amount,
        starts=starts,
        starting_temperature=temperature,
        enable_scaling=scaling,
        enable_rotation=rotation,
        enable_hue=hue,
        enable_transparency=transparency,
        max_side=max_side,
        seed=seed,
        pixel_upscale=upscale,
        save_comparison=comparison,
        debug_snapshots=debug,
        input_dir=input_dir,
        library_dir=library_dir,
        output_dir=output_dir,
    )

    input_dir.mkdir(exist_ok=True)
    output_dir.mkdir(exist_ok=True)

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    try:
        library = load_library(library_dir)
    except (DecodeFailure, FileNotFoundError) as exc:
        _fail(exc)

    console.print(Panel.fit(
        f"[bold]COLLAGE ANNEALER[/bold]\n"
        f"Layers: {cfg.amount}  |  Steps: {cfg.steps}  |  Starts: {cfg.starts}\n"
        f"Library: {len(library)}  |  Images: {len(images)}",
        border_style="cyan",
    ))

    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t_total = time.perf_counter()

        out_path = output_dir / f"{img_path.stem}_collage.{cfg.output_format}"
        try:
            image_cfg = replace(cfg, debug_dir=cfg.debug_dir / img_path.stem)
            result = _run(image_cfg, img_path, library, out_path)
        except (DecodeFailure, PreconditionViolation) as exc:
            _fail(exc)

        h, w = result.image.shape[:2]
        logger.info("Target: %dx%d = %d pixels", w, h, w * h)
        console.print(
            f"  [green]✓[/green] {out_path.name}  "
            f"[dim]{w}x{h}  error={result.error:.3f}"
            f"  time={time.perf_counter() - t_total:.1f}s[/dim]"
        )

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]",
        border_style="green",
    ))


if __name__ == "__main__":
    app()
