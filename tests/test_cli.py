# tests/test_cli.py
import subprocess
import sys
from pathlib import Path
from PIL import Image, ImageDraw

CLI_SCRIPT = Path(__file__).resolve().parent.parent / "icxtract.py"


def create_dummy_image(path: Path):
    img = Image.new("RGB", (64, 64), color=(150, 120, 200))
    draw = ImageDraw.Draw(img)
    draw.rectangle([(8, 8), (40, 40)], fill=(200, 50, 50))
    draw.ellipse([(30, 30), (60, 60)], fill=(50, 200, 50))
    img.save(path)


def run_cli(*args):
    return subprocess.run(
        [sys.executable, str(CLI_SCRIPT), *args],
        capture_output=True,
        text=True,
        cwd=str(CLI_SCRIPT.parent),
    )


def test_icxtract_prints_palette_and_writes_legend(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)
    legend_path = tmp_path / "out" / "legend.png"

    result = run_cli(
        str(input_image),
        "--num-colors", "3",
        "--sort-luminance",
        "--legend", str(legend_path),
    )

    assert result.returncode == 0, f"CLI failed: {result.stderr}"
    assert "Palette for dummy_input.png (3 colors):" in result.stdout
    assert result.stdout.count("rgb(") == 3
    assert legend_path.exists()

    with Image.open(legend_path) as im:
        assert "icx:PaletteColors" in im.info


def test_icxtract_refuses_to_overwrite_legend(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)
    legend_path = tmp_path / "legend.png"
    legend_path.write_bytes(b"")

    result = run_cli(str(input_image), "--legend", str(legend_path))
    assert result.returncode == 1


def test_icxtract_rejects_zero_colors(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)

    result = run_cli(str(input_image), "--num-colors", "0")
    assert result.returncode == 1
    assert "greater than 0" in result.stdout


def test_icxtract_dedupe_reduces_palette(tmp_path):
    input_image = tmp_path / "flat.png"
    Image.new("RGB", (16, 16), color=(10, 10, 10)).save(input_image)

    # A single cluster over a flat image lands exactly on its color
    result = run_cli(str(input_image), "--num-colors", "1", "--dedupe", "30")
    assert result.returncode == 0, f"CLI failed: {result.stderr}"
    assert "#0a0a0a" in result.stdout


def test_icxtract_help_output():
    result = run_cli("--help")
    assert result.returncode == 0
    assert "usage:" in result.stdout.lower()
