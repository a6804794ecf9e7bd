"""Exceptions raised by the atlas pipeline. Every one of them aborts the run."""


class AtlasError(Exception):
    """Base class for fatal atlas build errors."""


class InvalidGlyphError(AtlasError):
    """Glyph metrics reported by the rasterizer are unusable."""


class PackingOverflowError(AtlasError):
    """A glyph cell cannot be placed on any allowed page."""


class ConfigError(AtlasError, ValueError):
    """An option value is malformed or out of range."""
