from typing import List, Sequence

from icx.sample import difference

# Rec. 709 luma weights
LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)


def relative_luminance(color) -> float:
    """
    Perceptual brightness of a color.

    Args:
        color: Color object, RGB tuple/list, or ndarray row with 0-255 channels.

    Returns:
        float: Weighted sum of the channels normalized to [0, 1].
    """
    r, g, b = (int(c) / 255.0 for c in color)
    wr, wg, wb = LUMINANCE_WEIGHTS
    return wr * r + wg * g + wb * b


def sort_colors_by_luminance(colors: Sequence) -> List:
    """
    Order colors from darkest to brightest.

    The sort is stable, so colors with equal luminance keep their input order.
    The input objects themselves are returned, only reordered.
    """
    return sorted(colors, key=relative_luminance)


def color_distance_rgb(color1, color2) -> float:
    """Euclidean distance between two colors in 0-255 RGB space."""
    return difference(tuple(color1), tuple(color2))


def remove_similar_colors(colors: Sequence, threshold: float) -> List:
    """
    Drop colors that sit too close to an earlier one.

    Colors are scanned in order and one is kept only when its distance to
    every color kept so far is at least `threshold` (first seen wins).

    Args:
        colors: Ordered colors (Color objects or RGB triples).
        threshold (float): Minimum RGB distance between kept colors.

    Returns:
        list: The kept colors, in their original order.
    """
    kept = []
    for color in colors:
        is_similar = any(color_distance_rgb(color, existing) < threshold for existing in kept)
        if not is_similar:
            kept.append(color)
    return kept
