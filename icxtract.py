import typer
from icx import file_utils, legend, palette_tools
from icx.extractor import PaletteExtractor, PaletteExtractionError, DEFAULT_MAX_ITERATIONS, DEFAULT_CONVERGENCE
from icx.stats import PaletteResult
from pathlib import Path
from typing import Optional, Dict
import sys

import rich.traceback

PRESETS: Dict[str, Dict[str, float]] = {
    "fast": {"max_iterations": 10, "convergence": 10.0},
    "balanced": {"max_iterations": DEFAULT_MAX_ITERATIONS, "convergence": DEFAULT_CONVERGENCE},
    "fine": {"max_iterations": 50, "convergence": 1.0},
}


def format_palette_lines(palette: PaletteResult):
    lines = []
    for idx, entry in enumerate(palette):
        lines.append(
            f"{idx:>3}  {entry.color.to_hex()}  {entry.color.to_rgb_string():<20} {entry.percentage:6.2f}%"
        )
    return lines


def icx_cli(
    input_path: Path = typer.Argument(
        ...,
        help="Input image file (e.g., image.jpg).",
        metavar="INPUT_FILE",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
    ),
    # --- Clustering Options ---
    num_colors: int = typer.Option(
        5, "--num-colors", "-k", help="Number of palette colors to extract. Default: 5."
    ),
    preset: Optional[str] = typer.Option(
        None, help="Tuning preset: fast, balanced, fine. Explicit --max-iterations/--convergence win."
    ),
    max_iterations: Optional[int] = typer.Option(
        None, "--max-iterations", help=f"Maximum k-means passes. Default: {DEFAULT_MAX_ITERATIONS}."
    ),
    convergence: Optional[float] = typer.Option(
        None, "--convergence", help=f"Stop when total centroid movement drops below this. Default: {DEFAULT_CONVERGENCE}."
    ),
    seed: int = typer.Option(0, "--seed", help="Seed for centroid initialization. Default: 0."),
    max_side: Optional[int] = typer.Option(
        None, "--max-side", min=1, help="Downsample so the longer image side is at most this many pixels."
    ),
    # --- Palette Options ---
    sort_luminance: bool = typer.Option(
        False, "--sort-luminance", help="List colors darkest first instead of in cluster order."
    ),
    dedupe: Optional[float] = typer.Option(
        None, "--dedupe", min=0.0, help="Drop colors closer than this RGB distance to an earlier one."
    ),
    # --- Legend Options ---
    legend_path: Optional[Path] = typer.Option(
        None, "--legend", help="Write a PNG swatch legend to this path.",
        file_okay=True, dir_okay=False, resolve_path=True,
    ),
    swatch_size: int = typer.Option(40, "--swatch-size", min=10, help="Legend swatch size. Default: 40px."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Overwrite an existing legend file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print clustering progress."),
):
    """
    Extracts a dominant color palette from an image.
    """
    command_line_str = " ".join(sys.argv)

    effective_max_iterations = max_iterations
    effective_convergence = convergence
    if preset:
        if preset not in PRESETS:
            typer.secho(f"Error: Unknown preset '{preset}'. Choose from: {', '.join(PRESETS)}.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.echo(f"Applying preset: '{preset}'")
        if effective_max_iterations is None: effective_max_iterations = int(PRESETS[preset]["max_iterations"])
        if effective_convergence is None: effective_convergence = PRESETS[preset]["convergence"]
    if effective_max_iterations is None: effective_max_iterations = DEFAULT_MAX_ITERATIONS
    if effective_convergence is None: effective_convergence = DEFAULT_CONVERGENCE

    if legend_path and legend_path.exists() and not yes:
        typer.secho(f"Error: File already exists: {legend_path}", fg=typer.colors.RED)
        typer.secho("Use --yes (-y) to overwrite.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)

    try:
        pixels, width, height = file_utils.load_rgba_pixels(input_path, max_side=max_side)
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED); raise typer.Exit(code=1)
    if verbose:
        typer.echo(f"Loaded {input_path.name}: {width}x{height} pixels.")

    try:
        extractor = PaletteExtractor(
            max_iterations=effective_max_iterations,
            convergence=effective_convergence,
            verbose=verbose,
            seed=seed,
        )
        palette = extractor.extract_palette_from_image_data(pixels, width, height, num_colors)
    except PaletteExtractionError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED); raise typer.Exit(code=1)

    # The palette tools return the very Color objects they are given, so
    # entries are matched back by identity (equal colors can repeat).
    entries = list(palette)
    if dedupe is not None:
        kept = palette_tools.remove_similar_colors([entry.color for entry in entries], dedupe)
        kept_ids = {id(color) for color in kept}
        entries = [entry for entry in entries if id(entry.color) in kept_ids]
        if verbose:
            typer.echo(f"Near-duplicate removal kept {len(entries)} of {len(palette)} colors.")
    if sort_luminance:
        by_id = {id(entry.color): entry for entry in entries}
        sorted_colors = palette_tools.sort_colors_by_luminance([entry.color for entry in entries])
        entries = [by_id[id(color)] for color in sorted_colors]

    shown = PaletteResult(entries=entries)
    typer.echo(f"Palette for {input_path.name} ({len(shown)} colors):")
    for line in format_palette_lines(shown):
        typer.echo(line)

    if legend_path:
        legend_image = legend.create_legend_image(shown, swatch_size=swatch_size)
        if legend_image is None:
            typer.secho("Warning: Palette legend could not be generated (empty palette).", fg=typer.colors.YELLOW)
        else:
            file_utils.save_palette_png(
                legend_image,
                legend_path,
                command_line_invocation=command_line_str,
                additional_metadata={
                    "FileType": "Palette Legend",
                    "SourceImage": str(input_path),
                    "PaletteColors": " ".join(entry.color.to_hex() for entry in shown),
                    "Percentages": " ".join(f"{entry.percentage:.2f}" for entry in shown),
                    "Seed": str(seed),
                },
            )
            typer.echo(f"Palette legend saved to: {legend_path}")


def main():
    rich.traceback.install(show_locals=False, suppress=[typer])
    typer.run(icx_cli)


if __name__ == "__main__":
    main()
