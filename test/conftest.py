from pathlib import Path

import pytest
from PIL import Image

from fontTools.feaLib.builder import addOpenTypeFeaturesFromString
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.t2CharStringPen import T2CharStringPen

from fontatlas.glyphs import GlyphMetrics

# codepoint -> (minx, maxx, miny, maxy, advance)
SAMPLE_GLYPHS = {
    0x20: (0, 0, 0, 0, 5),      # space
    0x2E: (1, 3, 0, 2, 4),      # period
    0x41: (0, 8, 0, 10, 9),     # A
    0x56: (1, 9, 0, 10, 10),    # V
    0x67: (1, 7, -4, 6, 8),     # g
    0x6A: (-2, 3, -4, 9, 4),    # j, negative left bearing
}
SAMPLE_KERNING = {(0x41, 0x56): -2, (0x56, 0x41): -1}


class FakeProvider:
    """
    Rasterizer stand-in with hand-written metrics.

    Bitmaps follow the FontRasterizer layout (ascent line at row 0, pen
    origin at column -min(0, minx)) and every ink pixel has a color that
    depends on its position, so misplaced copies are caught.
    """

    def __init__(self, glyphs=None, ascent=10, descent=4, line_skip=16,
                 family="Fake Sans", kerning=None):
        glyphs = SAMPLE_GLYPHS if glyphs is None else glyphs
        self.glyphs = {cp: GlyphMetrics(*m) for cp, m in glyphs.items()}
        self._ascent = ascent
        self._descent = descent
        self._line_skip = line_skip
        self._family = family
        self.kerning = SAMPLE_KERNING if kerning is None else kerning
        self.rendered = []

    def has_glyph(self, codepoint):
        return codepoint in self.glyphs

    def metrics(self, codepoint):
        return self.glyphs[codepoint]

    def ascent(self):
        return self._ascent

    def line_skip(self):
        return self._line_skip

    def family_name(self):
        return self._family

    def combined_advance_width(self, first, second):
        return (
            self.glyphs[first].advance
            + self.glyphs[second].advance
            + self.kerning.get((first, second), 0)
        )

    def ink_box(self, codepoint):
        """(left, top, right, bottom) of the ink inside the rendered bitmap."""
        m = self.glyphs[codepoint]
        left = m.minx - min(0, m.minx)
        top = self._ascent - m.maxy
        return left, top, left + m.maxx - m.minx, top + m.maxy - m.miny

    def render_glyph(self, codepoint, color):
        self.rendered.append(codepoint)
        m = self.glyphs[codepoint]
        width = max(max(m.advance, m.maxx) - min(0, m.minx), 1)
        image = Image.new("RGBA", (width, self._ascent + self._descent), (0, 0, 0, 0))
        left, top, right, bottom = self.ink_box(codepoint)
        for y in range(top, bottom):
            for x in range(left, right):
                image.putpixel((x, y), (color[0], (x * 37 + codepoint) % 256, (y * 53) % 256, 255))
        return image


@pytest.fixture
def provider():
    return FakeProvider()


def draw_rectangles(rectangles, advance):
    pen = T2CharStringPen(width=advance, glyphSet=None)
    for x, y, w, h in rectangles:
        # Counter-clockwise outer contours for CFF
        pen.moveTo((x, y))
        pen.lineTo((x, y + h))
        pen.lineTo((x + w, y + h))
        pen.lineTo((x + w, y))
        pen.closePath()
    return pen.getCharString()


# glyph name -> (codepoint, advance, rectangles as (x, y, w, h) in font units)
TEST_FONT_GLYPHS = {
    "space": (0x20, 300, []),
    "period": (0x2E, 250, [(75, 0, 100, 100)]),
    "A": (0x41, 600, [(50, 0, 500, 700)]),
    "V": (0x56, 600, [(50, 0, 500, 700)]),
    "g": (0x67, 500, [(50, -200, 400, 700)]),
    # descends past the hhea descent line
    "p": (0x70, 500, [(50, -450, 400, 900)]),
    "e": (0x65, 500, [(50, 0, 400, 500)]),
    "eacute": (0xE9, 550, [(50, 0, 400, 500), (150, 600, 200, 150)]),
    # combining mark, composes with "e" into "eacute"
    "acutecomb": (0x301, 0, [(100, 600, 200, 150)]),
}
TEST_FONT_KERN_FEA = """\
languagesystem DFLT dflt;
languagesystem latn dflt;

feature kern {
    pos A V -80;
} kern;
"""


def build_test_font(output_path: Path):
    """CFF OpenType font with rectangle glyphs and one GPOS kerning pair."""
    fb = FontBuilder(1000, isTTF=False)
    fb.setupGlyphOrder([".notdef"] + list(TEST_FONT_GLYPHS))
    fb.setupCharacterMap({cp: name for name, (cp, _, _) in TEST_FONT_GLYPHS.items()})

    charstrings = {".notdef": draw_rectangles([(50, 0, 400, 700)], 500)}
    metrics = {".notdef": (500, 50)}
    for name, (_, advance, rectangles) in TEST_FONT_GLYPHS.items():
        charstrings[name] = draw_rectangles(rectangles, advance)
        metrics[name] = (advance, rectangles[0][0] if rectangles else 0)

    fb.setupCFF(
        psName="AtlasTest-Regular",
        fontInfo={"FamilyName": "Atlas Test", "FullName": "Atlas Test Regular"},
        charStringsDict=charstrings,
        privateDict={},
    )
    fb.setupHorizontalMetrics(metrics)
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": "Atlas Test", "styleName": "Regular"})
    fb.setupOS2(
        sTypoAscender=800,
        sTypoDescender=-200,
        sTypoLineGap=0,
        usWinAscent=800,
        usWinDescent=200,
    )
    fb.setupPost()
    addOpenTypeFeaturesFromString(fb.font, TEST_FONT_KERN_FEA)
    fb.save(str(output_path))


@pytest.fixture(scope="session")
def test_font(tmp_path_factory):
    path = tmp_path_factory.mktemp("fonts") / "AtlasTest-Regular.otf"
    build_test_font(path)
    return path
