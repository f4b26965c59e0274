"""Urban Index Engine: environmental data in, classified urban health indices out."""

from . import (  # noqa: F401
    chat,
    classifier,
    composer,
    config,
    constants,
    gateway,
    indices,
    models,
    needs,
    pipeline,
    scoring,
)

__all__ = [
    "chat",
    "classifier",
    "composer",
    "config",
    "constants",
    "gateway",
    "indices",
    "models",
    "needs",
    "pipeline",
    "scoring",
]
