from PIL import Image, ImageDraw, ImageFont
import os

from icx.palette_tools import relative_luminance
from icx.stats import PaletteResult


def _as_rgb(color_data):
    if hasattr(color_data, 'tolist'):  # numpy rows
        return tuple(int(c) for c in color_data.tolist())
    return tuple(int(c) for c in color_data)


def _load_font(font_path, font_size):
    try:
        if font_path and os.path.isfile(font_path):
            return ImageFont.truetype(font_path, font_size)
    except IOError:
        pass  # Fall through to the default font
    return ImageFont.load_default(size=font_size)


def create_legend_image(palette, percentages=None, font_path=None, font_size=14, swatch_size=40, padding=10):
    """
    Creates a palette legend PIL Image object.

    Args:
        palette (PaletteResult, list or np.ndarray): Palette colors, each a Color,
            RGB tuple/list or ndarray row. A PaletteResult also supplies percentages.
        percentages (list of float, optional): Share of each color; shown instead of
            the index when given.
        font_path (str, optional): Path to a TTF font file.
        font_size (int): Font size for the labels.
        swatch_size (int): Width/height of each color swatch.
        padding (int): Space around elements and between swatches.

    Returns:
        PIL.Image.Image: The generated legend image, or None if the palette is empty.
    """
    if isinstance(palette, PaletteResult):
        if percentages is None:
            percentages = palette.percentages
        palette = palette.colors

    num_colors = len(palette)
    if num_colors == 0:
        return None

    width = (swatch_size * num_colors) + (padding * (num_colors + 1))
    height = swatch_size + (2 * padding)

    image = Image.new("RGB", (width, height), color=(255, 255, 255))
    draw = ImageDraw.Draw(image)
    loaded_font = _load_font(font_path, font_size)

    for idx, color_data in enumerate(palette):
        x_start_swatch = padding + idx * (swatch_size + padding)
        y_start_swatch = padding
        fill_color = _as_rgb(color_data)

        draw.rectangle(
            [x_start_swatch, y_start_swatch, x_start_swatch + swatch_size, y_start_swatch + swatch_size],
            fill=fill_color,
            outline=(0, 0, 0)
        )

        if percentages is not None and idx < len(percentages):
            text_content = f"{percentages[idx]:.0f}%"
        else:
            text_content = str(idx)

        # Dark ink on light swatches, light ink on dark ones
        text_fill = (0, 0, 0) if relative_luminance(fill_color) > 0.5 else (255, 255, 255)

        # (0,0) is a reference point for textbbox, not the final drawing position.
        bbox = draw.textbbox((0, 0), text_content, font=loaded_font)
        text_w = bbox[2] - bbox[0]
        text_h = bbox[3] - bbox[1]
        text_x_position = x_start_swatch + (swatch_size - text_w) / 2.0 - bbox[0]
        text_y_position = y_start_swatch + (swatch_size - text_h) / 2.0 - bbox[1]

        draw.text((text_x_position, text_y_position), text_content, fill=text_fill, font=loaded_font)

    return image
