"""
Service layer implementations.
"""

from enhancement_bridge.services.change_detector import (
    ChangeDetector,
    EnhancementTriggerPolicy,
    StoryTriggerPolicy,
    TriggerDecision,
)
from enhancement_bridge.services.generator import RecordGenerator
from enhancement_bridge.services.pipeline import BridgePipeline

__all__ = [
    "BridgePipeline",
    "ChangeDetector",
    "EnhancementTriggerPolicy",
    "StoryTriggerPolicy",
    "TriggerDecision",
    "RecordGenerator",
]
