"""Core package - re-exports the asset pipeline building blocks."""

from boiler.core.errors import (
    AssetError,
    CombineError,
    ReadError,
    TransformError,
    WriteError,
)
from boiler.core.hashing import fingerprint
from boiler.core.pipeline import AssetPipeline, build_assets
from boiler.core.publishing import publish

__all__ = [
    "AssetError",
    "AssetPipeline",
    "CombineError",
    "ReadError",
    "TransformError",
    "WriteError",
    "build_assets",
    "fingerprint",
    "publish",
]
