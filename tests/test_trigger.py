"""Tests for automation trigger classification and the at-most-once dispatcher."""

from __future__ import annotations

import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conduct.automation.trigger import (
    AutomationTrigger,
    TriggerCategory,
    TriggerState,
    automation_for_task,
    classify_trigger,
    describe_trigger,
)
from conduct.exceptions import AutomationError
from conduct.models.requests import AutomationResult
from conduct.store.catalog import CatalogCache
from tests.conftest import make_violation


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassifyTrigger:
    @pytest.mark.parametrize(
        "key, expected",
        [
            ("trigger_parent_call", TriggerCategory.NOTIFY),
            ("trigger_parent_sms", TriggerCategory.NOTIFY),
            ("deduct_score_5", TriggerCategory.DEDUCT),
            ("refer_counselor", TriggerCategory.REFER),
            ("invite_parent_meeting", TriggerCategory.INVITE),
            ("committee_meeting", TriggerCategory.MEETING),
            ("transfer_class", TriggerCategory.TRANSFER),
            ("escalate_to_ed_dept", TriggerCategory.ESCALATE),
            ("unknown_key_x", TriggerCategory.GENERIC),
            ("", TriggerCategory.GENERIC),
            (None, TriggerCategory.GENERIC),
        ],
    )
    def test_categories(self, key, expected):
        assert classify_trigger(key) is expected

    def test_exact_matches_do_not_match_prefixes(self):
        assert classify_trigger("committee_meeting_2") is TriggerCategory.GENERIC
        assert classify_trigger("escalate_to_ed_dept_now") is TriggerCategory.GENERIC

    def test_precedence_is_ordered(self):
        # A key can only look like one family by its leading prefix.
        assert classify_trigger("trigger_parent_refer_") is TriggerCategory.NOTIFY
        assert classify_trigger("refer_trigger_parent_") is TriggerCategory.REFER
        assert classify_trigger("deduct_score_transfer_") is TriggerCategory.DEDUCT

    @given(st.text())
    def test_classifier_is_total(self, key):
        category = classify_trigger(key)
        assert isinstance(category, TriggerCategory)
        presentation = describe_trigger(key)
        assert presentation.category is category
        assert presentation.label
        assert presentation.icon
        assert presentation.color


class TestDescribeTrigger:
    def test_unknown_key_gets_generic_presentation(self):
        presentation = describe_trigger("unknown_key_x")
        assert presentation.label == "Execute automation"
        assert presentation.icon == "bot"
        assert presentation.color == "slate"

    def test_deduct_label_uses_points(self):
        assert describe_trigger("deduct_score_5", points=5).label == "Deduct 5 points"
        assert describe_trigger("deduct_score_5").label == "Deduct points"
        assert describe_trigger("deduct_score_5").icon == "minus"
        assert describe_trigger("deduct_score_5").color == "red"

    @pytest.mark.parametrize(
        "key, icon",
        [
            ("trigger_parent_call", "phone"),
            ("trigger_parent_sms", "message-square"),
            ("trigger_parent_whatsapp", "send"),
            ("trigger_parent_email", "bot"),
        ],
    )
    def test_notify_channel_icons(self, key, icon):
        presentation = describe_trigger(key)
        assert presentation.icon == icon
        assert presentation.color == "green"
        assert presentation.label == "Send notification"

    def test_colors_by_family(self):
        assert describe_trigger("refer_counselor").color == "blue"
        assert describe_trigger("invite_parent_x").color == "purple"
        assert describe_trigger("committee_meeting").color == "purple"
        assert describe_trigger("transfer_school").color == "orange"
        assert describe_trigger("escalate_to_ed_dept").color == "orange"

    def test_arabic_labels(self):
        assert describe_trigger("refer_counselor", locale="ar").label == "إحالة"


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class _SlowCallback:
    def __init__(self, fail_times: int = 0):
        self.calls = 0
        self.release = asyncio.Event()
        self._fail_times = fail_times

    async def __call__(self):
        self.calls += 1
        await self.release.wait()
        if self.calls <= self._fail_times:
            raise RuntimeError("automation failed")


class TestAutomationTrigger:
    def test_rapid_clicks_run_callback_once(self):
        async def scenario():
            callback = _SlowCallback()
            trigger = AutomationTrigger(key="trigger_parent_call", callback=callback)
            first = asyncio.create_task(trigger.execute())
            await asyncio.sleep(0)
            assert trigger.state is TriggerState.EXECUTING
            assert trigger.icon == "loader"
            assert not trigger.clickable

            second = await trigger.execute()
            callback.release.set()
            ran = await first

            third = await trigger.execute()
            return callback, trigger, ran, second, third

        callback, trigger, ran, second, third = asyncio.run(scenario())
        assert callback.calls == 1
        assert ran is True
        assert second is False
        assert third is False
        assert trigger.state is TriggerState.EXECUTED
        assert trigger.icon == "check-circle"
        assert trigger.label == "Executed"

    def test_failure_returns_to_idle_and_can_retry(self, caplog):
        async def scenario():
            callback = _SlowCallback(fail_times=1)
            callback.release.set()
            trigger = AutomationTrigger(key="deduct_score_5", callback=callback, points=5)
            first = await trigger.execute()
            assert trigger.state is TriggerState.IDLE
            assert trigger.clickable
            assert isinstance(trigger.last_error, RuntimeError)
            second = await trigger.execute()
            return callback, trigger, first, second

        with caplog.at_level("ERROR", logger="conduct.automation.trigger"):
            callback, trigger, first, second = asyncio.run(scenario())

        assert first is False
        assert second is True
        assert callback.calls == 2
        assert trigger.state is TriggerState.EXECUTED
        assert "automation failed" in caplog.text

    def test_disabled_trigger_never_runs(self):
        async def scenario():
            callback = _SlowCallback()
            callback.release.set()
            trigger = AutomationTrigger(key="refer_x", callback=callback, disabled=True)
            return callback, await trigger.execute()

        callback, ran = asyncio.run(scenario())
        assert ran is False
        assert callback.calls == 0

    def test_trigger_without_callback_is_inert(self):
        trigger = AutomationTrigger(key="refer_x")
        assert not trigger.clickable
        assert asyncio.run(trigger.execute()) is False
        assert trigger.state is TriggerState.IDLE

    def test_label_override_only_changes_title(self):
        trigger = AutomationTrigger(key="refer_x", label_override="Refer to counselor")
        assert trigger.label == "Refer"
        assert trigger.title == "Automation: Refer to counselor"
        assert trigger.color == "blue"
        assert trigger.icon == "bot"


# ---------------------------------------------------------------------------
# Wiring to the transport
# ---------------------------------------------------------------------------


class TestAutomationForTask:
    def test_task_without_trigger_has_no_automation(self, transport):
        violation = make_violation()
        task = violation.procedure(1).task(13)
        assert automation_for_task(transport, violation, 1, task) is None

    def test_executes_through_transport(self, transport):
        violation = make_violation()
        task = violation.procedure(1).task(12)
        trigger = automation_for_task(transport, violation, 1, task)

        assert trigger.label == "Deduct 3 points"
        assert asyncio.run(trigger.execute()) is True
        assert transport.calls == [
            ("execute_automation", violation.id, 1, 12, "deduct_score_3")
        ]

    def test_unsuccessful_result_counts_as_failure(self, transport):
        transport.automation_result = AutomationResult(success=False, message="No phone on file")
        violation = make_violation()
        trigger = automation_for_task(transport, violation, 1, violation.procedure(1).task(11))

        assert asyncio.run(trigger.execute()) is False
        assert trigger.state is TriggerState.IDLE
        assert isinstance(trigger.last_error, AutomationError)
        assert str(trigger.last_error) == "No phone on file"

    def test_catalog_label_goes_to_title(self, transport):
        catalog = CatalogCache(transport)
        asyncio.run(catalog.load_config())
        violation = make_violation()
        trigger = automation_for_task(
            transport, violation, 1, violation.procedure(1).task(11), catalog
        )
        assert trigger.label == "Send notification"
        assert trigger.title == "Automation: Call the guardian"
        assert trigger.icon == "phone"

    def test_task_label_beats_catalog_label(self, transport):
        catalog = CatalogCache(transport)
        asyncio.run(catalog.load_config())
        violation = make_violation()
        task = violation.procedure(1).task(11).model_copy(
            update={"system_trigger_label": "Phone the father"}
        )
        trigger = automation_for_task(transport, violation, 1, task, catalog)
        assert trigger.label == "Send notification"
        assert trigger.title == "Automation: Phone the father"

    def test_completed_task_starts_disabled(self, transport):
        violation = make_violation()
        task = violation.procedure(1).task(11).model_copy(update={"completed": True})
        trigger = automation_for_task(transport, violation, 1, task)
        assert trigger.disabled
        assert not trigger.clickable
