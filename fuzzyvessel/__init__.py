"""Retinal vessel segmentation with fuzzy morphology and its ROC-style scoring."""

__version__ = "0.1.0"

__all__ = ["kernel", "morphology", "pipeline", "roc", "showcase"]