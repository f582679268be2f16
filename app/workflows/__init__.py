# Mutation processors and the registry that dispatches to them.

from app.workflows.processors.base import MutationProcessor
from app.workflows.registry import ProcessorRegistry, default_registry

__all__ = [
    "MutationProcessor",
    "ProcessorRegistry",
    "default_registry",
]
