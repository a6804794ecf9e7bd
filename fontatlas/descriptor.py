"""
Font descriptor: everything a text renderer needs to use the atlas pages,
laid out the way BMFont files are (info, common, pages, chars, kernings).
"""

from dataclasses import dataclass

from fontatlas.glyphs import GlyphRecord
from fontatlas.options import Padding, Spacing

# Glyph data lives in all four channels
CHANNEL_ALL = 15


@dataclass(frozen=True)
class InfoBlock:
    face: str
    size: int
    padding: Padding = Padding()
    spacing: Spacing = Spacing()


@dataclass(frozen=True)
class CommonBlock:
    line_height: int
    base: int
    scale_w: int
    scale_h: int
    pages: int


@dataclass(frozen=True)
class PageEntry:
    id: int
    file: str


@dataclass(frozen=True)
class CharEntry:
    id: int
    x: int
    y: int
    width: int
    height: int
    xoffset: int
    yoffset: int
    xadvance: int
    page: int
    chnl: int = CHANNEL_ALL


@dataclass(frozen=True)
class KerningPair:
    first: int
    second: int
    amount: int


@dataclass(frozen=True)
class FontDescriptor:
    info: InfoBlock
    common: CommonBlock
    pages: tuple[PageEntry, ...]
    chars: tuple[CharEntry, ...]
    kernings: tuple[KerningPair, ...] = ()

    def to_dict(self) -> dict:
        """Plain nested dict using the BMFont field names."""
        padding = self.info.padding
        spacing = self.info.spacing
        return {
            "info": {
                "face": self.info.face,
                "size": self.info.size,
                "padding": (padding.up, padding.right, padding.down, padding.left),
                "spacing": (spacing.horizontal, spacing.vertical),
            },
            "common": {
                "lineHeight": self.common.line_height,
                "base": self.common.base,
                "scaleW": self.common.scale_w,
                "scaleH": self.common.scale_h,
                "pages": self.common.pages,
            },
            "pages": [{"id": p.id, "file": p.file} for p in self.pages],
            "chars": [
                {
                    "id": c.id,
                    "x": c.x,
                    "y": c.y,
                    "width": c.width,
                    "height": c.height,
                    "xoffset": c.xoffset,
                    "yoffset": c.yoffset,
                    "xadvance": c.xadvance,
                    "page": c.page,
                    "chnl": c.chnl,
                }
                for c in self.chars
            ],
            "kernings": [
                {"first": k.first, "second": k.second, "amount": k.amount}
                for k in self.kernings
            ],
        }


def char_entry(glyph: GlyphRecord, ascent: int, padding: Padding = Padding()) -> CharEntry:
    if glyph.is_empty:
        width = height = 0
    else:
        width = glyph.width + padding.left + padding.right
        height = glyph.height + padding.up + padding.down
    return CharEntry(
        id=glyph.id,
        x=glyph.x,
        y=glyph.y,
        width=width,
        height=height,
        xoffset=glyph.minx - padding.left,
        yoffset=ascent - glyph.maxy - padding.up,
        xadvance=glyph.advance,
        page=glyph.page or 0,
    )


def compute_kerning(provider, glyphs: dict[int, GlyphRecord]) -> list[KerningPair]:
    """
    Kerning amounts for every ordered pair of collected glyphs.

    The amount is how far the shaped pair's advance differs from the two
    glyph advances added up; pairs that need no adjustment are left out.
    """
    pairs = []
    for first, a in glyphs.items():
        for second, b in glyphs.items():
            amount = provider.combined_advance_width(first, second) - (a.advance + b.advance)
            if amount != 0:
                pairs.append(KerningPair(first, second, amount))
    return pairs


def build_descriptor(
    glyphs: dict[int, GlyphRecord],
    page_files: list[str],
    *,
    face: str | None,
    size: int,
    ascent: int,
    line_height: int,
    page_width: int,
    page_height: int,
    padding: Padding = Padding(),
    spacing: Spacing = Spacing(),
    kernings: list[KerningPair] | None = None,
) -> FontDescriptor:
    """
    Assemble the descriptor from placed glyphs and font-wide metrics.

    Every collected glyph gets a char entry, including empty ones, which
    keep a zero-size box so that renderers still know their advance.
    """
    return FontDescriptor(
        info=InfoBlock(
            face=face or "unknown",
            size=size,
            padding=padding,
            spacing=spacing,
        ),
        common=CommonBlock(
            line_height=line_height,
            base=ascent,
            scale_w=page_width,
            scale_h=page_height,
            pages=len(page_files),
        ),
        pages=tuple(PageEntry(id=i, file=name) for i, name in enumerate(page_files)),
        chars=tuple(char_entry(g, ascent, padding) for g in glyphs.values()),
        kernings=tuple(sorted(kernings or (), key=lambda k: (k.first, k.second))),
    )
