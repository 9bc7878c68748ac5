from __future__ import annotations


class XspError(ValueError):
    """Base class for every decoding failure raised by this package."""


class StructuralError(XspError):
    """The byte layout does not match what the format requires.

    Raised for signature mismatches, truncated streams, dangling repeat
    markers and out-of-range small-stitch buffer references.
    """


class UnrecognizedVariantError(XspError):
    """A closed enumeration carried a value outside its known members."""


class OxsError(XspError):
    """The OXS document is missing a mandatory element or attribute."""
