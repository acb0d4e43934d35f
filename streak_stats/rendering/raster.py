from collections.abc import Callable

from streak_stats.core.errors import ConversionError


Rasterizer = Callable[[str, int, int], bytes]


def rasterize_svg(svg: str, width: int, height: int) -> bytes:
    """Render SVG text to PNG bytes with CairoSVG (the `png` extra).

    Raises:
        ConversionError: If the backend is unavailable or fails to render.
    """

    try:
        import cairosvg

        png = cairosvg.svg2png(
            bytestring=svg.encode("utf-8"),
            output_width=width,
            output_height=height,
        )
    except Exception as exc:
        raise ConversionError(f"Failed to convert SVG to PNG: {exc}") from exc

    if not png:
        raise ConversionError("Failed to convert SVG to PNG: Empty PNG buffer generated")
    return png
