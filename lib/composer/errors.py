"""
Exceptions raised by the composer.

Malformed markup never raises, it degrades to literal text. These are for
integration errors only.
"""


class ComposerError(Exception):
    """Base class for composer errors."""


class RendererError(ComposerError):
    """Renderer was asked to render a node it does not know."""


class ConversionError(ComposerError):
    """Formatted text payload has the wrong shape."""
