"""
Descriptor serializers for the four BMFont flavours: text, XML, binary
and JSON. See http://www.angelcode.com/products/bmfont/doc/file_format.html
"""

import io
import json
import struct
import xml.etree.ElementTree as etree
from pathlib import Path

from fontatlas.descriptor import FontDescriptor
from fontatlas.errors import ConfigError, PackingOverflowError


###############################################################################
# text

def _to_str(value) -> str:
    """Format one value for a text descriptor line."""
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(int(value))


def _text_line(tag: str, fields: dict) -> str:
    return "{} {}\n".format(tag, " ".join(f"{k}={_to_str(v)}" for k, v in fields.items()))


def write_text(descriptor: FontDescriptor, f) -> None:
    props = descriptor.to_dict()
    f.write(_text_line("info", props["info"]))
    f.write(_text_line("common", props["common"]))
    for page in props["pages"]:
        f.write(_text_line("page", page))
    f.write(f"chars count={len(props['chars'])}\n")
    for char in props["chars"]:
        f.write(_text_line("char", char))
    if props["kernings"]:
        f.write(f"kernings count={len(props['kernings'])}\n")
        for kerning in props["kernings"]:
            f.write(_text_line("kerning", kerning))


###############################################################################
# xml

def _attrs(fields: dict) -> dict:
    return {
        k: ",".join(str(i) for i in v) if isinstance(v, (list, tuple)) else str(v)
        for k, v in fields.items()
    }


def write_xml(descriptor: FontDescriptor, f) -> None:
    props = descriptor.to_dict()
    root = etree.Element("font")
    etree.SubElement(root, "info", _attrs(props["info"]))
    etree.SubElement(root, "common", _attrs(props["common"]))
    pages = etree.SubElement(root, "pages")
    for page in props["pages"]:
        etree.SubElement(pages, "page", _attrs(page))
    chars = etree.SubElement(root, "chars", count=str(len(props["chars"])))
    for char in props["chars"]:
        etree.SubElement(chars, "char", _attrs(char))
    if props["kernings"]:
        kernings = etree.SubElement(root, "kernings", count=str(len(props["kernings"])))
        for kerning in props["kernings"]:
            etree.SubElement(kernings, "kerning", _attrs(kerning))
    etree.indent(root)
    etree.ElementTree(root).write(f, encoding="utf-8", xml_declaration=True)


###############################################################################
# binary (version 3)

BIN_MAGIC = b"BMF"
BIN_VERSION = 3

BLOCK_INFO = 1
BLOCK_COMMON = 2
BLOCK_PAGES = 3
BLOCK_CHARS = 4
BLOCK_KERNINGS = 5

INFO_UNICODE = 1 << 1
# page ids are stored in one byte
BIN_MAX_PAGES = 256

_BLOCK_HEAD = struct.Struct("<BI")
# fontSize bitField charSet stretchH aa paddingUp/Right/Down/Left spacingHoriz/Vert outline
_INFO = struct.Struct("<hBBHBBBBBBBB")
# lineHeight base scaleW scaleH pages bitField alphaChnl redChnl greenChnl blueChnl
_COMMON = struct.Struct("<HHHHHBBBBB")
# id x y width height xoffset yoffset xadvance page chnl
_CHAR = struct.Struct("<IHHHHhhhBB")
# first second amount
_KERNING = struct.Struct("<IIh")


def _block(type_id: int, payload: bytes) -> bytes:
    return _BLOCK_HEAD.pack(type_id, len(payload)) + payload


def write_binary(descriptor: FontDescriptor, f) -> None:
    pages = descriptor.common.pages
    if pages > BIN_MAX_PAGES:
        raise PackingOverflowError(
            f"binary descriptors hold at most {BIN_MAX_PAGES} pages, the atlas has {pages}"
        )

    try:
        blocks = _binary_blocks(descriptor)
    except struct.error as e:
        raise ConfigError(f"value out of range for the binary format: {e}") from e

    f.write(BIN_MAGIC + bytes([BIN_VERSION]))
    for type_id, payload in blocks:
        f.write(_block(type_id, payload))


def _binary_blocks(descriptor: FontDescriptor) -> list[tuple[int, bytes]]:
    info = descriptor.info
    common = descriptor.common

    info_blk = _INFO.pack(
        info.size,
        INFO_UNICODE,
        0,
        100,
        1,
        info.padding.up,
        info.padding.right,
        info.padding.down,
        info.padding.left,
        info.spacing.horizontal,
        info.spacing.vertical,
        0,
    ) + info.face.encode("utf-8") + b"\0"
    common_blk = _COMMON.pack(
        common.line_height,
        common.base,
        common.scale_w,
        common.scale_h,
        common.pages,
        0, 0, 0, 0, 0,
    )
    pages_blk = b"".join(page.file.encode("utf-8") + b"\0" for page in descriptor.pages)
    chars_blk = b"".join(
        _CHAR.pack(c.id, c.x, c.y, c.width, c.height, c.xoffset, c.yoffset, c.xadvance, c.page, c.chnl)
        for c in descriptor.chars
    )

    blocks = [
        (BLOCK_INFO, info_blk),
        (BLOCK_COMMON, common_blk),
        (BLOCK_PAGES, pages_blk),
        (BLOCK_CHARS, chars_blk),
    ]
    if descriptor.kernings:
        kernings_blk = b"".join(
            _KERNING.pack(k.first, k.second, k.amount) for k in descriptor.kernings
        )
        blocks.append((BLOCK_KERNINGS, kernings_blk))
    return blocks


###############################################################################
# json

def write_json(descriptor: FontDescriptor, f) -> None:
    tree = descriptor.to_dict()
    # pages are listed in id order, so the file names alone are enough
    tree["pages"] = [page["file"] for page in tree["pages"]]
    json.dump(tree, f, indent=2, ensure_ascii=False)
    f.write("\n")


# format name -> (file suffix, writer, binary file mode)
WRITERS = {
    "txt": (".fnt", write_text, False),
    "xml": (".fnt", write_xml, True),
    "bin": (".fnt", write_binary, True),
    "json": (".json", write_json, False),
}


def descriptor_path(output: Path, data_format: str) -> Path:
    if data_format not in WRITERS:
        raise ConfigError(f"invalid data format: {data_format!r}")
    suffix = WRITERS[data_format][0]
    return output.with_name(output.name + suffix)


def write_descriptor(descriptor: FontDescriptor, path: Path, data_format: str) -> None:
    """Serialize the descriptor to path in the named format."""
    if data_format not in WRITERS:
        raise ConfigError(f"invalid data format: {data_format!r}")
    _, writer, binary = WRITERS[data_format]
    # Serialize in memory first so a rejected descriptor leaves no file behind
    if binary:
        buf = io.BytesIO()
        writer(descriptor, buf)
        Path(path).write_bytes(buf.getvalue())
    else:
        buf = io.StringIO()
        writer(descriptor, buf)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(buf.getvalue())
