"""
Call correlation, category caching and multi-step publishing.
"""

from .call_registry import CallRecord, CallRegistry, Continuation
from .category_cache import CategoryCache
from .category_gate import CategoryGate
from .publish_orchestrator import PublishOrchestrator

__all__ = [
    "CallRecord",
    "CallRegistry",
    "Continuation",
    "CategoryCache",
    "CategoryGate",
    "PublishOrchestrator",
]
