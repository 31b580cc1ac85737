"""AutomationTrigger -- at-most-once dispatcher for task automations.

A procedure task may carry a system trigger key (``trigger_parent_call``,
``deduct_score_5``, ``refer_counselor`` ...). The key is parsed once into a
TriggerCategory; label, icon and colour all derive from that category.

The trigger object is the per-affordance state machine:

    IDLE --execute--> EXECUTING --ok--> EXECUTED
                          |
                          +--error--> IDLE

Failures are logged and never raised; they never touch store state.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from conduct.exceptions import AutomationError
from conduct.messages import DEFAULT_LOCALE, message

if TYPE_CHECKING:
    from conduct.api.protocols import BehaviorTransport
    from conduct.models.violation import TaskExecution, Violation
    from conduct.store.catalog import CatalogCache

logger = logging.getLogger(__name__)

TriggerCallback = Callable[[], Awaitable[Any]]


class TriggerCategory(str, Enum):
    """Closed set of automation families."""

    NOTIFY = "notify"
    DEDUCT = "deduct"
    REFER = "refer"
    INVITE = "invite"
    MEETING = "meeting"
    TRANSFER = "transfer"
    ESCALATE = "escalate"
    GENERIC = "generic"

    def __str__(self) -> str:
        return self.value


# Checked in order; first match wins. A rule is (pattern, exact, category).
_RULES: tuple[tuple[str, bool, TriggerCategory], ...] = (
    ("trigger_parent_", False, TriggerCategory.NOTIFY),
    ("deduct_score_", False, TriggerCategory.DEDUCT),
    ("refer_", False, TriggerCategory.REFER),
    ("invite_parent_", False, TriggerCategory.INVITE),
    ("committee_meeting", True, TriggerCategory.MEETING),
    ("transfer_", False, TriggerCategory.TRANSFER),
    ("escalate_to_ed_dept", True, TriggerCategory.ESCALATE),
)


def classify_trigger(key: str | None) -> TriggerCategory:
    """Map a trigger key to its category. Total: never raises."""
    if not key:
        return TriggerCategory.GENERIC
    for pattern, exact, category in _RULES:
        if (key == pattern) if exact else key.startswith(pattern):
            return category
    return TriggerCategory.GENERIC


_COLORS: dict[TriggerCategory, str] = {
    TriggerCategory.NOTIFY: "green",
    TriggerCategory.DEDUCT: "red",
    TriggerCategory.REFER: "blue",
    TriggerCategory.INVITE: "purple",
    TriggerCategory.MEETING: "purple",
    TriggerCategory.TRANSFER: "orange",
    TriggerCategory.ESCALATE: "orange",
    TriggerCategory.GENERIC: "slate",
}

_LABEL_KEYS: dict[TriggerCategory, str] = {
    TriggerCategory.NOTIFY: "trigger.notify",
    TriggerCategory.REFER: "trigger.refer",
    TriggerCategory.INVITE: "trigger.invite",
    TriggerCategory.MEETING: "trigger.meeting",
    TriggerCategory.TRANSFER: "trigger.transfer",
    TriggerCategory.ESCALATE: "trigger.escalate",
    TriggerCategory.GENERIC: "trigger.generic",
}

# Notification channel icons, by key suffix.
_CHANNEL_ICONS = (("call", "phone"), ("sms", "message-square"), ("whatsapp", "send"))

ICON_EXECUTING = "loader"
ICON_EXECUTED = "check-circle"


def _icon(key: str, category: TriggerCategory) -> str:
    if category is TriggerCategory.NOTIFY:
        for suffix, icon in _CHANNEL_ICONS:
            if suffix in key:
                return icon
    if category is TriggerCategory.DEDUCT:
        return "minus"
    return "bot"


@dataclass(frozen=True)
class TriggerPresentation:
    """Label, icon and colour of a trigger key."""

    category: TriggerCategory
    label: str
    icon: str
    color: str


def describe_trigger(
    key: str | None, points: int | None = None, locale: str = DEFAULT_LOCALE
) -> TriggerPresentation:
    """Presentation for a trigger key. Unknown keys get the generic one."""
    category = classify_trigger(key)
    if category is TriggerCategory.DEDUCT:
        if points:
            label = message("trigger.deduct", locale, points=points)
        else:
            label = message("trigger.deduct.generic", locale)
    else:
        label = message(_LABEL_KEYS[category], locale)
    return TriggerPresentation(
        category=category,
        label=label,
        icon=_icon(key or "", category),
        color=_COLORS[category],
    )


class TriggerState(str, Enum):
    IDLE = "idle"
    EXECUTING = "executing"
    EXECUTED = "executed"

    def __str__(self) -> str:
        return self.value


@dataclass(repr=False)
class AutomationTrigger:
    """One automation affordance.

    Fields:
        key: System trigger key of the task.
        callback: Async action run on execute; None leaves the trigger inert.
        points: Points to deduct, shown on deduct labels.
        label_override: Server-provided label; used in the title only, the
            visible label always comes from the category.
        disabled: Orthogonal flag; a disabled trigger never runs.
        locale: Locale for derived labels.
    """

    key: str
    callback: TriggerCallback | None = None
    points: int | None = None
    label_override: str | None = None
    disabled: bool = False
    locale: str = DEFAULT_LOCALE
    state: TriggerState = field(default=TriggerState.IDLE, init=False)
    last_error: BaseException | None = field(default=None, init=False)

    @property
    def presentation(self) -> TriggerPresentation:
        return describe_trigger(self.key, self.points, self.locale)

    @property
    def clickable(self) -> bool:
        return (
            self.state is TriggerState.IDLE
            and not self.disabled
            and self.callback is not None
        )

    @property
    def label(self) -> str:
        if self.state is TriggerState.EXECUTED:
            return message("trigger.executed", self.locale)
        return self.presentation.label

    @property
    def icon(self) -> str:
        if self.state is TriggerState.EXECUTING:
            return ICON_EXECUTING
        if self.state is TriggerState.EXECUTED:
            return ICON_EXECUTED
        return self.presentation.icon

    @property
    def color(self) -> str:
        return self.presentation.color

    @property
    def title(self) -> str:
        return message(
            "trigger.title", self.locale, label=self.label_override or self.label
        )

    async def execute(self) -> bool:
        """Run the callback at most once.

        Returns:
            True if this call ran the callback to success, False otherwise
            (ignored click or failed callback).
        """
        if not self.clickable:
            logger.debug("Ignored click on %s (%s)", self.key, self.state)
            return False
        assert self.callback is not None
        self.state = TriggerState.EXECUTING
        self.last_error = None
        try:
            await self.callback()
        except Exception as exc:
            self.state = TriggerState.IDLE
            self.last_error = exc
            logger.error("Automation %s failed: %s", self.key, exc)
            return False
        self.state = TriggerState.EXECUTED
        logger.info("Automation %s executed", self.key)
        return True

    def __repr__(self) -> str:
        return f"<AutomationTrigger: {self.key}, {self.state}>"


def automation_for_task(
    transport: BehaviorTransport,
    violation: Violation,
    step: int,
    task: TaskExecution,
    catalog: CatalogCache | None = None,
    *,
    locale: str = DEFAULT_LOCALE,
) -> AutomationTrigger | None:
    """Build the trigger for a task, wired to the server's automation endpoint.

    Returns None for tasks without a system trigger. A completed task
    starts out disabled.
    """
    key = task.system_trigger
    if not key:
        return None

    label = task.system_trigger_label
    if label is None and catalog is not None:
        catalog_label = catalog.get_system_trigger_label(key)
        label = catalog_label if catalog_label != key else None

    async def run() -> None:
        result = await transport.execute_automation(violation.id, step, task.id, key)
        if not result.success:
            raise AutomationError(result.message or f"Automation {key} was not executed")

    return AutomationTrigger(
        key=key,
        callback=run,
        points=task.points_to_deduct,
        label_override=label,
        disabled=task.completed,
        locale=locale,
    )
