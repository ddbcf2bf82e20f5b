"""Errors raised by the asset pipeline."""

# Standard library imports
import os
from typing import Optional, Union


class AssetError(Exception):
    """Base error for a single asset that could not be produced.

    Attributes:
        source: Path of the asset (or bundle) that failed
    """

    def __init__(
        self, message: str, source: Optional[Union[str, os.PathLike[str]]] = None
    ) -> None:
        super().__init__(message)
        self.source = os.fspath(source) if source is not None else None


class ReadError(AssetError):
    """Source file is missing or unreadable."""


class TransformError(AssetError):
    """Minification or image encoding failed on the source content."""


class WriteError(AssetError):
    """Derived artifact could not be written to the output directory."""


class CombineError(AssetError):
    """A bundle input is missing, so the whole bundle is abandoned."""
