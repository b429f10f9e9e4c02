from pathlib import Path
from PIL import Image, PngImagePlugin, UnidentifiedImageError
from typing import Optional, Dict, Tuple
import re

PNG_METADATA_PREFIX = "icx:"


def load_rgba_pixels(path, max_side: Optional[int] = None) -> Tuple[bytes, int, int]:
    """
    Read an image file as a flat RGBA byte buffer.

    Args:
        path (str or Path): Image file to read.
        max_side (int, optional): If given, downsample (keeping aspect) so the
                                  longer side is at most this many pixels.

    Returns:
        Tuple[bytes, int, int]: RGBA bytes, width, height.

    Raises:
        ValueError: If the file does not exist or cannot be decoded.
    """
    try:
        image = Image.open(path)
    except FileNotFoundError:
        raise ValueError(f"Error: Input file not found at {path}")
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Error opening image {path}: {e}")

    with image:
        rgba = image.convert("RGBA")

    if max_side is not None and max(rgba.size) > max_side:
        scale = max_side / float(max(rgba.size))
        new_size = (max(1, round(rgba.width * scale)), max(1, round(rgba.height * scale)))
        rgba = rgba.resize(new_size, Image.Resampling.BILINEAR)

    return rgba.tobytes(), rgba.width, rgba.height


def _clean_metadata_key(key: str) -> str:
    # Spaces to underscores, drop anything else outside [a-zA-Z0-9_.-]
    key_clean = re.sub(r'\s+', '_', key)
    key_clean = re.sub(r'[^a-zA-Z0-9_.-]', '', key_clean)
    if not re.match(r'^[a-zA-Z_]', key_clean):  # Must start with letter or underscore
        key_clean = "icx_" + key_clean
    # PNG tEXt keywords are limited to 79 bytes, leave room for the prefix
    return key_clean[:70]


def save_palette_png(
    image_to_save: Image.Image,
    output_path: Path,
    command_line_invocation: Optional[str] = None,
    additional_metadata: Optional[Dict[str, str]] = None
) -> Path:
    """
    Saves a PIL Image object as a PNG file, embedding icx metadata as tEXt chunks.

    Returns:
        Path: The path written.
    """
    if not isinstance(output_path, Path):
        output_path = Path(output_path)

    if not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    png_info = PngImagePlugin.PngInfo()

    if command_line_invocation:
        png_info.add_text(f"{PNG_METADATA_PREFIX}command_line", command_line_invocation)

    png_info.add_text("Software", "icx image color extractor")

    if additional_metadata:
        for key, value in additional_metadata.items():
            png_info.add_text(f"{PNG_METADATA_PREFIX}{_clean_metadata_key(key)}", str(value))

    image_to_save.save(output_path, "PNG", pnginfo=png_info)
    return output_path
