#!/usr/bin/env python3
"""
Build a bitmap font atlas from a TrueType/OpenType font.

Usage:
    build-atlas --font-file Vera.ttf --output build/vera [options]
    build-atlas --config atlas.yaml [options]

Outputs:
    <output>_0.png, <output>_1.png, ...   - Texture pages
    <output>.fnt (txt/xml/bin) or .json   - BMFont descriptor
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path

from fontatlas.composer import Page, compose_pages
from fontatlas.descriptor import FontDescriptor, build_descriptor, compute_kerning
from fontatlas.errors import AtlasError, ConfigError
from fontatlas.glyphs import apply_placements, collect_glyphs
from fontatlas.options import DATA_FORMATS, AtlasOptions, build_options, load_config
from fontatlas.packer import pack_rectangles, page_count
from fontatlas.rasterizer import FontRasterizer
from fontatlas.writers import descriptor_path, write_descriptor


@dataclass
class AtlasResult:
    descriptor: FontDescriptor
    pages: list[Page]


def page_file_name(output: Path, index: int) -> str:
    return f"{output.name}_{index}.png"


def build_atlas(options: AtlasOptions, provider=None) -> AtlasResult:
    """
    Run the pipeline: collect glyphs, pack them, paint the pages, describe them.

    Args:
        options: validated build options
        provider: rasterizer to use; defaults to a FontRasterizer over
                  options.font_file at options.font_size

    Returns:
        AtlasResult holding the descriptor and the page images.
    """
    if provider is None:
        provider = FontRasterizer(options.font_file, options.font_size)

    collected = collect_glyphs(provider, options.chars, options.padding, options.spacing)
    glyphs = collected.glyphs

    placements = pack_rectangles(
        collected.requests,
        options.texture_width,
        options.texture_height,
        max_pages=options.max_pages,
    )
    apply_placements(glyphs, placements)
    # A font with only empty glyphs still gets one (blank) page
    pages_used = max(page_count(placements), 1)

    pages = compose_pages(
        glyphs,
        pages_used,
        provider,
        options.texture_width,
        options.texture_height,
        color=options.color,
        background=options.background_color,
        padding=options.padding,
    )

    kernings = compute_kerning(provider, glyphs) if options.include_kerning_pairs else []

    descriptor = build_descriptor(
        glyphs,
        [page_file_name(options.output, page.index) for page in pages],
        face=provider.family_name(),
        size=options.font_size,
        ascent=provider.ascent(),
        line_height=provider.line_skip(),
        page_width=options.texture_width,
        page_height=options.texture_height,
        padding=options.padding,
        spacing=options.spacing,
        kernings=kernings,
    )
    return AtlasResult(descriptor=descriptor, pages=pages)


def save_atlas(result: AtlasResult, output: Path, data_format: str) -> Path:
    """Write page images and the descriptor next to each other; returns the descriptor path."""
    path = descriptor_path(output, data_format)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        for page, entry in zip(result.pages, result.descriptor.pages):
            page.image.save(output.parent / entry.file, format="PNG")
        write_descriptor(result.descriptor, path, data_format)
    except OSError as e:
        raise ConfigError(f"can't write atlas to {output.parent}: {e}") from e
    return path


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Pack font glyphs into texture pages with a BMFont descriptor",
        epilog="Options given on the command line override values from --config.",
    )
    parser.add_argument("--config", type=Path, help="YAML file with option values")
    parser.add_argument("-F", "--font-file", help="path to the TTF/OTF font file, required")
    parser.add_argument(
        "--chars",
        help="required characters, for example: 32-64,92,120-126 "
        "(default 32-127 if --chars-file is not given)",
    )
    parser.add_argument(
        "--chars-file",
        help="UTF-8 text file with required characters (combined with --chars)",
    )
    parser.add_argument("--color", help="foreground RGB color, for example 32,255,255 (default 255,255,255)")
    parser.add_argument(
        "--background-color",
        help="background RGB color, for example 0,0,128 (default transparent)",
    )
    parser.add_argument("-S", "--font-size", type=int, help="font size in pixels (default 32)")

    cells = parser.add_argument_group("glyph cells (pixels)")
    cells.add_argument("--padding-up", type=int, help="padding above each glyph (default 0)")
    cells.add_argument("--padding-right", type=int, help="padding right of each glyph (default 0)")
    cells.add_argument("--padding-down", type=int, help="padding below each glyph (default 0)")
    cells.add_argument("--padding-left", type=int, help="padding left of each glyph (default 0)")
    cells.add_argument("--spacing-vert", type=int, help="vertical gap between glyphs (default 0)")
    cells.add_argument("--spacing-horiz", type=int, help="horizontal gap between glyphs (default 0)")

    pages = parser.add_argument_group("pages")
    pages.add_argument("--texture-width", type=int, help="page width (default 256)")
    pages.add_argument("--texture-height", type=int, help="page height (default 256)")
    pages.add_argument(
        "--max-pages",
        type=int,
        help="fail instead of opening more than this many pages (default unlimited)",
    )

    parser.add_argument("-O", "--output", help="output file name without extension, required")
    parser.add_argument(
        "--data-format",
        help=f"descriptor format, one of {', '.join(DATA_FORMATS)} (default txt)",
    )
    parser.add_argument(
        "--include-kerning-pairs",
        action="store_true",
        default=None,
        help="include kerning pairs in the descriptor",
    )
    return parser.parse_args(argv)


def options_from_args(args: argparse.Namespace) -> AtlasOptions:
    values = load_config(args.config) if args.config else {}
    for key, value in vars(args).items():
        if key != "config" and value is not None:
            values[key] = value
    return build_options(values)


def main(argv=None):
    args = parse_args(argv)

    try:
        options = options_from_args(args)
        result = build_atlas(options)
        descriptor_file = save_atlas(result, options.output, options.data_format)
    except AtlasError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    descriptor = result.descriptor
    print(f"Atlas saved to: {descriptor_file}")
    print(f"  Face: {descriptor.info.face}")
    print(f"  Glyphs: {len(descriptor.chars)}")
    print(f"  Pages: {len(result.pages)} ({options.texture_width}x{options.texture_height})")
    if options.include_kerning_pairs:
        print(f"  Kerning pairs: {len(descriptor.kernings)}")


if __name__ == "__main__":
    main()
