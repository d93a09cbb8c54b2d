"""
Exceptions raised by text-behind.
"""


class TextBehindError(Exception):
    """Base class of all text-behind errors."""


class MissingAssetError(TextBehindError):
    """A base image is not decoded at draw time."""


class ExportError(TextBehindError):
    """
    Fatal export failure. The scene is left intact and the export can be
    retried.
    """


class InvalidUploadError(TextBehindError):
    """A background upload was rejected before entering the scene."""


class SegmentationError(TextBehindError):
    """The segmentation collaborator failed to produce a cut-out."""
