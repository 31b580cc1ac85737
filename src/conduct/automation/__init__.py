"""Automation triggers attached to procedure tasks."""

from conduct.automation.trigger import (
    AutomationTrigger,
    TriggerCategory,
    TriggerPresentation,
    TriggerState,
    automation_for_task,
    classify_trigger,
    describe_trigger,
)

__all__ = [
    "AutomationTrigger",
    "TriggerCategory",
    "TriggerPresentation",
    "TriggerState",
    "automation_for_task",
    "classify_trigger",
    "describe_trigger",
]
