"""Paint placed glyph bitmaps into page canvases."""

from dataclasses import dataclass

from PIL import Image

from fontatlas.glyphs import GlyphRecord
from fontatlas.options import Padding


@dataclass(frozen=True)
class Page:
    index: int
    width: int
    height: int
    image: Image.Image


def glyph_offset(glyph: GlyphRecord, cell_x: int, cell_y: int, ascent: int) -> tuple[int, int]:
    """
    Where the top-left corner of a rendered glyph bitmap goes on the page.

    Rendered bitmaps have the pen origin at x=0 (or at -minx when the glyph
    has a negative left bearing) and the ascent line at y=0, so shifting by
    the bearing and by the gap between ascent and the glyph top lands the ink
    exactly on the cell origin. Negative bearings are not shifted left of the
    cell.
    """
    if glyph.minx >= 0:
        x = cell_x - glyph.minx
    else:
        x = cell_x
    y = cell_y + glyph.maxy - ascent
    return x, y


def new_canvas(width: int, height: int, background: tuple[int, int, int] | None) -> Image.Image:
    if background is None:
        return Image.new("RGBA", (width, height), (0, 0, 0, 0))
    return Image.new("RGBA", (width, height), (*background, 255))


def compose_pages(
    glyphs: dict[int, GlyphRecord],
    page_count: int,
    provider,
    width: int,
    height: int,
    color: tuple[int, int, int] = (255, 255, 255),
    background: tuple[int, int, int] | None = None,
    padding: Padding = Padding(),
) -> list[Page]:
    """
    Render every placed glyph into its page.

    Only the glyph's own cell (placement origin plus padding, glyph width x
    height) is written; whatever the rendered bitmap holds outside that box
    is dropped. On a transparent page the cell is an exact copy of the
    bitmap, on a colored page the bitmap is alpha-composited over it.

    Args:
        glyphs: collected records, already placed
        page_count: number of pages produced by the packer
        provider: rasterizer with ascent() and render_glyph()
        width: page width in pixels
        height: page height in pixels
        color: foreground RGB color passed to the rasterizer
        background: RGB fill for the page, or None for transparent
        padding: cell padding used when the glyphs were packed

    Returns:
        Pages in index order.
    """
    ascent = provider.ascent()
    canvases = [new_canvas(width, height, background) for _ in range(page_count)]

    for glyph in glyphs.values():
        if glyph.is_empty or glyph.page is None:
            continue

        bitmap = provider.render_glyph(glyph.id, color)
        if bitmap.mode != "RGBA":
            bitmap = bitmap.convert("RGBA")

        cell_x = glyph.x + padding.left
        cell_y = glyph.y + padding.up
        x, y = glyph_offset(glyph, cell_x, cell_y, ascent)

        # Cell box in bitmap coordinates; areas past the bitmap edge come out transparent
        left = cell_x - x
        top = cell_y - y
        tile = bitmap.crop((left, top, left + glyph.width, top + glyph.height))

        canvas = canvases[glyph.page]
        if background is None:
            canvas.paste(tile, (cell_x, cell_y))
        else:
            canvas.alpha_composite(tile, dest=(cell_x, cell_y))

    return [
        Page(index=index, width=width, height=height, image=canvas)
        for index, canvas in enumerate(canvases)
    ]
