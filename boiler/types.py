"""Type definitions for boiler.

This module contains the models describing what an asset build produced. They
are used internally by the pipeline and serialized as-is by the /api/assets
endpoint and the build_assets script.
"""

# Standard library imports
import enum
from typing import Dict, List, Optional

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field


class AssetKind(enum.Enum):
    """Which mapping an asset record belongs to."""

    MINIFIED = "minified"
    OPTIMIZED = "optimized"


class AssetRecord(BaseModel, frozen=True):
    """A single source asset and the derived file it was published as."""

    model_config = ConfigDict(extra="forbid")

    source_key: str = Field(
        ..., description="Logical asset name, relative to the static root"
    )
    published_path: str = Field(
        ..., description="Derived file path, relative to the static root"
    )


class AssetFailure(BaseModel, frozen=True):
    """An asset (or bundle) that was skipped during a build."""

    model_config = ConfigDict(extra="forbid")

    source: Optional[str] = Field(None, description="Path of the failing source")
    error_type: str = Field(..., description="Error class, e.g. 'ReadError'")
    message: str = Field(..., description="Human readable error message")


class BuildResult(BaseModel):
    """Outcome of one asset build."""

    model_config = ConfigDict(extra="forbid")

    fingerprints: Dict[str, str] = Field(
        default_factory=dict,
        description="Minified stylesheets, scripts and bundles: source key to published path",
    )
    optimizations: Dict[str, str] = Field(
        default_factory=dict,
        description="Converted images and their responsive variants: source key to published path",
    )
    failures: List[AssetFailure] = Field(
        default_factory=list, description="Assets skipped because of an error"
    )
    elapsed_seconds: float = Field(0.0, description="Wall time of the build")

    def records(self, kind: AssetKind) -> List[AssetRecord]:
        """Return the mapping of one kind as a sorted list of records."""
        mapping = (
            self.fingerprints if kind is AssetKind.MINIFIED else self.optimizations
        )
        return [
            AssetRecord(source_key=key, published_path=value)
            for key, value in sorted(mapping.items())
        ]
