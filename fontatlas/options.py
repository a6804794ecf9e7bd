"""
Atlas build options: parsing of character ranges, colors and formats,
YAML config files, and range validation of the final option set.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from fontatlas.errors import ConfigError

DATA_FORMATS = ("txt", "xml", "bin", "json")
DEFAULT_CHARS = "32-127"
MAX_CODEPOINT = 0xFFFF
# signed 16-bit in binary descriptors
MAX_FONT_SIZE = 32767

TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0")

CHARS_RE = re.compile(r"^\d{1,5}(-\d{1,5})?(,\d{1,5}(-\d{1,5})?)*$")
COLOR_RE = re.compile(r"^\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*$")


@dataclass(frozen=True)
class Padding:
    """Empty border kept inside each glyph cell, in pixels."""
    up: int = 0
    right: int = 0
    down: int = 0
    left: int = 0


@dataclass(frozen=True)
class Spacing:
    """Gap left between neighbouring glyph cells, in pixels."""
    vertical: int = 0
    horizontal: int = 0


@dataclass
class AtlasOptions:
    font_file: Path
    output: Path
    chars: tuple[int, ...] = ()
    color: tuple[int, int, int] = (255, 255, 255)
    background_color: tuple[int, int, int] | None = None
    font_size: int = 32
    padding: Padding = field(default_factory=Padding)
    spacing: Spacing = field(default_factory=Spacing)
    texture_width: int = 256
    texture_height: int = 256
    data_format: str = "txt"
    include_kerning_pairs: bool = False
    max_pages: int | None = None


def parse_chars(text: str) -> set[int]:
    """
    Parse a character set such as "32-64,92,120-126".

    Whitespace is ignored and both ends of a range are inclusive.
    An empty string yields an empty set.
    """
    text = re.sub(r"\s+", "", text)
    if not text:
        return set()
    if not CHARS_RE.match(text):
        raise ConfigError(f"invalid chars value: {text!r}")

    result = set()
    for item in text.split(","):
        first, _, last = item.partition("-")
        low = int(first)
        high = int(last) if last else low
        if low > MAX_CODEPOINT or high > MAX_CODEPOINT:
            raise ConfigError(f"incorrect chars value (out of range): {item!r}")
        if low > high:
            raise ConfigError(f"incorrect chars value (reversed range): {item!r}")
        result.update(range(low, high + 1))
    return result


def read_chars_file(path: Path) -> set[int]:
    """Collect every codepoint that appears in a UTF-8 text file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"can't open characters file {path}: {e.strerror}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"characters file {path} is not valid UTF-8") from e
    return {ord(c) for c in text}


def parse_color(value) -> tuple[int, int, int]:
    """Accept "r,g,b" or a three-item sequence of 0-255 integers."""
    if isinstance(value, str):
        if not COLOR_RE.match(value):
            raise ConfigError(f"invalid color: {value!r}")
        parts = [int(p) for p in value.split(",")]
    elif isinstance(value, (list, tuple)) and len(value) == 3:
        parts = value
    else:
        raise ConfigError(f"invalid color: {value!r}")

    for part in parts:
        if not isinstance(part, int) or isinstance(part, bool) or not 0 <= part <= 255:
            raise ConfigError(f"invalid color: {value!r}")
    return (parts[0], parts[1], parts[2])


def parse_data_format(value: str) -> str:
    data_format = str(value).lower()
    if data_format not in DATA_FORMATS:
        raise ConfigError(
            f"invalid data format: {value!r} (expected one of {', '.join(DATA_FORMATS)})"
        )
    return data_format


def load_config(path: Path) -> dict:
    """
    Load option values from a YAML mapping.

    Keys are the long command line option names; dashes and underscores
    are interchangeable ("font-size" and "font_size" are the same key).
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"config not found: {path}")
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"bad config {path}: expected a mapping at the top level")
    # Relative paths inside a config file are relative to that file
    values = {str(k).replace("-", "_"): v for k, v in data.items()}
    for key in ("font_file", "chars_file", "output"):
        if key in values and values[key] is not None:
            values[key] = path.parent / str(values[key])
    return values


def parse_bool(values: dict, name: str, default: bool = False) -> bool:
    value = values.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ConfigError(f"{name.replace('_', '-')} is not a boolean: {value!r}")


def _int_option(
    values: dict, name: str, default: int | None, minimum: int, maximum: int | None = None
) -> int | None:
    value = values.get(name)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        try:
            value = int(str(value))
        except ValueError:
            raise ConfigError(f"{name.replace('_', '-')} is not an integer: {value!r}") from None
    if value < minimum or (maximum is not None and value > maximum):
        raise ConfigError(f"invalid {name.replace('_', '-')}: {value}")
    return value


def build_options(values: dict) -> AtlasOptions:
    """
    Validate a flat mapping of option values and build AtlasOptions.

    Missing keys (or None values) take the documented defaults;
    font_file and output are required.
    """
    if not values.get("font_file"):
        raise ConfigError("font-file not defined")
    if not values.get("output"):
        raise ConfigError("output not defined")
    font_file = Path(values["font_file"])
    if not font_file.is_file():
        raise ConfigError(f"font file not found: {font_file}")

    chars_text = values.get("chars")
    chars_file = values.get("chars_file")
    if not chars_text and not chars_file:
        chars_text = DEFAULT_CHARS
    chars = parse_chars(str(chars_text)) if chars_text else set()
    if chars_file:
        chars |= read_chars_file(Path(chars_file))

    background = values.get("background_color")

    return AtlasOptions(
        font_file=font_file,
        output=Path(values["output"]),
        chars=tuple(sorted(chars)),
        color=parse_color(values.get("color") or "255,255,255"),
        background_color=parse_color(background) if background else None,
        font_size=_int_option(values, "font_size", 32, 1, MAX_FONT_SIZE),
        padding=Padding(
            up=_int_option(values, "padding_up", 0, 0, 255),
            right=_int_option(values, "padding_right", 0, 0, 255),
            down=_int_option(values, "padding_down", 0, 0, 255),
            left=_int_option(values, "padding_left", 0, 0, 255),
        ),
        spacing=Spacing(
            vertical=_int_option(values, "spacing_vert", 0, 0, 255),
            horizontal=_int_option(values, "spacing_horiz", 0, 0, 255),
        ),
        texture_width=_int_option(values, "texture_width", 256, 1, 65535),
        texture_height=_int_option(values, "texture_height", 256, 1, 65535),
        data_format=parse_data_format(values.get("data_format") or "txt"),
        include_kerning_pairs=parse_bool(values, "include_kerning_pairs"),
        max_pages=_int_option(values, "max_pages", None, 1),
    )
