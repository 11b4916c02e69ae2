"""AnkiConnect payloads: note models and update actions."""

from .model_definitions import ModelAssets, build_model_definitions
from .update_actions import plan_update_actions

__all__ = [
    "ModelAssets",
    "build_model_definitions",
    "plan_update_actions",
]
