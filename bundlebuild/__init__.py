"""Multi-bundle RequireJS optimization pipeline."""

from .config import BuildConfig, load_config
from .pipeline import BuildPipeline

__all__ = ["BuildConfig", "BuildPipeline", "load_config"]
