"""Report generation module - output surfaces for converge results."""

from .artifact import generate_artifacts

__all__ = [
    "generate_artifacts",
]
