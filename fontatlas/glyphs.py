"""
Glyph collection: query the rasterizer for each requested codepoint,
validate the reported metrics and produce the packer's input list.
"""

from dataclasses import dataclass, field

from fontatlas.errors import InvalidGlyphError
from fontatlas.options import Padding, Spacing


@dataclass(frozen=True)
class GlyphMetrics:
    """Ink bounds and advance of one glyph in pixels, y up from the baseline."""
    minx: int
    maxx: int
    miny: int
    maxy: int
    advance: int


@dataclass
class GlyphRecord:
    id: int
    minx: int
    maxx: int
    miny: int
    maxy: int
    advance: int
    width: int
    height: int
    page: int | None = None
    x: int = 0
    y: int = 0

    @property
    def is_empty(self) -> bool:
        return self.width == 0 and self.height == 0


@dataclass(frozen=True)
class SizeRequest:
    tag: int
    width: int
    height: int


@dataclass
class CollectedGlyphs:
    glyphs: dict[int, GlyphRecord] = field(default_factory=dict)
    requests: list[SizeRequest] = field(default_factory=list)


def make_record(codepoint: int, metrics: GlyphMetrics, ascent: int) -> GlyphRecord:
    """
    Build a glyph record and check its invariants.

    Raises InvalidGlyphError if the glyph reaches above the font ascent,
    or if exactly one of its dimensions is zero.
    """
    width = metrics.maxx - metrics.minx
    height = metrics.maxy - metrics.miny

    if metrics.maxy > ascent:
        raise InvalidGlyphError(
            f"invalid glyph U+{codepoint:04X}: maxy {metrics.maxy} exceeds font ascent {ascent}"
        )
    if width < 0 or height < 0 or (width == 0) != (height == 0):
        raise InvalidGlyphError(
            f"invalid glyph U+{codepoint:04X}: size {width}x{height}"
        )

    return GlyphRecord(
        id=codepoint,
        minx=metrics.minx,
        maxx=metrics.maxx,
        miny=metrics.miny,
        maxy=metrics.maxy,
        advance=metrics.advance,
        width=width,
        height=height,
    )


def collect_glyphs(
    provider,
    codepoints,
    padding: Padding = Padding(),
    spacing: Spacing = Spacing(),
) -> CollectedGlyphs:
    """
    Collect glyph records for the codepoints the font provides.

    Codepoints are visited in ascending order so that the packer, which is
    order-sensitive, always sees the same input. Each non-empty glyph gets a
    size request inflated by the cell padding and spacing; empty glyphs
    (e.g. space) are kept as records only.

    Args:
        provider: rasterizer with has_glyph(), metrics() and ascent()
        codepoints: iterable of requested codepoints
        padding: border kept inside every glyph cell
        spacing: gap left between neighbouring cells

    Returns:
        CollectedGlyphs with records keyed by codepoint and the size requests.
    """
    ascent = provider.ascent()
    collected = CollectedGlyphs()

    for codepoint in sorted(set(codepoints)):
        if not provider.has_glyph(codepoint):
            continue

        record = make_record(codepoint, provider.metrics(codepoint), ascent)
        collected.glyphs[codepoint] = record

        if not record.is_empty:
            collected.requests.append(SizeRequest(
                tag=codepoint,
                width=record.width + padding.left + padding.right + spacing.horizontal,
                height=record.height + padding.up + padding.down + spacing.vertical,
            ))

    return collected


def apply_placements(glyphs: dict[int, GlyphRecord], placements) -> None:
    """Copy packer placements into the matching records (x, y and page only)."""
    for placement in placements:
        record = glyphs[placement.tag]
        record.x = placement.x
        record.y = placement.y
        record.page = placement.page
