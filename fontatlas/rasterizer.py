"""
Glyph metrics and rasterization for a TrueType/OpenType font file.

Pillow (FreeType) draws the glyphs, HarfBuzz supplies advances and pair
advances, fontTools reads the tables Pillow does not expose (cmap, name,
hhea). All values are whole pixels at the requested size.
"""

import math
from pathlib import Path

import uharfbuzz as hb
from fontTools.ttLib import TTFont, TTLibError
from PIL import Image, ImageDraw, ImageFont

from fontatlas.errors import ConfigError
from fontatlas.glyphs import GlyphMetrics

# Shaping features that change which glyphs are used, not just where they go
NO_SUBSTITUTIONS = {"liga": False, "clig": False, "dlig": False, "calt": False}


class FontRasterizer:
    """
    Rasterizer over a single font file at a single pixel size.

    Rendered bitmaps are laid out like a one-glyph line of text: the
    ascent line is row 0, the baseline is row ascent(), and the pen origin
    is column 0 unless the glyph has a negative left bearing, in which case
    the bitmap starts at the leftmost ink column instead.
    """

    def __init__(self, font_path: Path, size: int):
        self.font_path = Path(font_path)
        self.size = size

        try:
            self._ttfont = TTFont(str(self.font_path), lazy=True)
            self._font = ImageFont.truetype(str(self.font_path), size)
        except (OSError, TTLibError) as e:
            raise ConfigError(f"can't load font {self.font_path}: {e}") from e

        face = hb.Face(hb.Blob.from_file_path(str(self.font_path)))
        self._hb_font = hb.Font(face)
        # One unit per pixel: advances and kerning come back as whole pixels
        self._hb_font.scale = (size, size)

        self._cmap = self._ttfont.getBestCmap() or {}
        self._ascent, self._descent = self._font.getmetrics()
        self._margin = 2 * size
        self._coverage_cache: dict[int, tuple[Image.Image, tuple | None]] = {}

    def has_glyph(self, codepoint: int) -> bool:
        return codepoint in self._cmap

    def ascent(self) -> int:
        return self._ascent

    def line_skip(self) -> int:
        if "hhea" not in self._ttfont:
            return self._ascent + self._descent
        hhea = self._ttfont["hhea"]
        upm = self._ttfont["head"].unitsPerEm
        return math.ceil((hhea.ascent - hhea.descent + hhea.lineGap) * self.size / upm)

    def family_name(self) -> str | None:
        if "name" not in self._ttfont:
            return None
        return self._ttfont["name"].getBestFamilyName()

    def advance(self, codepoint: int) -> int:
        gid = self._hb_font.get_nominal_glyph(codepoint)
        if gid is None:
            return 0
        return self._hb_font.get_glyph_h_advance(gid)

    def combined_advance_width(self, first: int, second: int) -> int:
        """
        Advance of the two-glyph run first+second, kerning applied.

        If shaping does not keep the two nominal glyphs (for example when
        a base and a combining mark are composed into one precomposed
        glyph) the pair has no kerning and the plain advances are summed.
        """
        nominal = self._hb_font.get_nominal_glyph
        expected = [nominal(first), nominal(second)]
        buf = hb.Buffer()
        buf.add_codepoints([first, second])
        buf.guess_segment_properties()
        hb.shape(self._hb_font, buf, NO_SUBSTITUTIONS)
        if [info.codepoint for info in buf.glyph_infos] != expected:
            return self.advance(first) + self.advance(second)
        return sum(pos.x_advance for pos in buf.glyph_positions)

    def _coverage(self, codepoint: int) -> tuple[Image.Image, tuple | None]:
        """Coverage mask of one glyph drawn with its pen origin at (margin, margin + ascent)."""
        if codepoint not in self._coverage_cache:
            m = self._margin
            width = self.advance(codepoint) + 2 * m
            height = self._ascent + self._descent + 2 * m
            mask = Image.new("L", (width, height), 0)
            ImageDraw.Draw(mask).text(
                (m, m + self._ascent), chr(codepoint), font=self._font, fill=255, anchor="ls"
            )
            self._coverage_cache[codepoint] = (mask, mask.getbbox())
        return self._coverage_cache[codepoint]

    def metrics(self, codepoint: int) -> GlyphMetrics:
        """Ink bounds measured on the rendered coverage, plus the advance."""
        advance = self.advance(codepoint)
        _, bbox = self._coverage(codepoint)
        if bbox is None:
            return GlyphMetrics(0, 0, 0, 0, advance)

        left, top, right, bottom = bbox
        origin_x = self._margin
        baseline = self._margin + self._ascent
        return GlyphMetrics(
            minx=left - origin_x,
            maxx=right - origin_x,
            miny=baseline - bottom,
            maxy=baseline - top,
            advance=advance,
        )

    def render_glyph(self, codepoint: int, color: tuple[int, int, int]) -> Image.Image:
        """RGBA bitmap of the glyph in the given color over full transparency."""
        mask, _ = self._coverage(codepoint)
        m = self.metrics(codepoint)

        left = min(0, m.minx)
        width = max(max(m.advance, m.maxx) - left, 1)
        # Descenders may reach past the font's descent line
        height = self._ascent + max(self._descent, -m.miny)
        x = self._margin + left
        y = self._margin

        bitmap = Image.new("RGBA", (width, height), (*color, 255))
        bitmap.putalpha(mask.crop((x, y, x + width, y + height)))
        return bitmap
