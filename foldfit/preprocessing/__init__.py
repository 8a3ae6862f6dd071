"""Preprocessing module for feature pipelines."""

from foldfit.preprocessing.feature_pipeline import (
    FeaturePipeline,
    RecipePreprocessor,
    is_preprocessor,
)

__all__ = ["FeaturePipeline", "RecipePreprocessor", "is_preprocessor"]
