"""
Pack rasterized font glyphs into texture pages and describe them
in the AngelCode BMFont layout (text, XML, binary or JSON).
"""

from fontatlas.errors import (
    AtlasError,
    ConfigError,
    InvalidGlyphError,
    PackingOverflowError,
)

__version__ = "0.3.0"

__all__ = [
    "AtlasError",
    "ConfigError",
    "InvalidGlyphError",
    "PackingOverflowError",
    "__version__",
]
