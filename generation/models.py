"""
Static model registry.

Loaded once at import time and never mutated; safe to share across
concurrent requests.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class ModelDescriptor:
    model_id: str
    display_name: str
    vector_capable: bool = False


DEFAULT_MODEL_ID = "5000"
VECTOR_MODEL_ID = "8000"

MODEL_REGISTRY: Mapping[str, ModelDescriptor] = MappingProxyType({
    "5000": ModelDescriptor("5000", "FLUX1.1 (Standard quality)"),
    "9000": ModelDescriptor("9000", "FLUX1.1-ultra (Ultra high quality)"),
    "6000": ModelDescriptor("6000", "Stable Diffusion 3.5"),
    "7000": ModelDescriptor("7000", "Recraft-Real (Photorealistic)"),
    "8000": ModelDescriptor("8000", "Recraft-Vector (Vector art)", vector_capable=True),
})


def get_model(model_id: str) -> Optional[ModelDescriptor]:
    return MODEL_REGISTRY.get(model_id)


def display_name(model_id: str) -> str:
    descriptor = MODEL_REGISTRY.get(model_id)
    return descriptor.display_name if descriptor else model_id


def model_catalog_text() -> str:
    """One line per model, e.g. '- 8000:Recraft-Vector (Vector art)'."""
    return "\n".join(
        f"- {d.model_id}:{d.display_name}" for d in MODEL_REGISTRY.values()
    )
