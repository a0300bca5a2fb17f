# unit_tests/test_agent_delivery_flow.py
"""
Unit Tests for the Delivery & Payment Flow
==========================================
Run with: python -m pytest unit_tests/test_agent_delivery_flow.py -v
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agents.delivery_flow import (
    FLOW_CONFIG,
    DeliveryFlow,
    InvalidTransitionError,
    UnknownOptionError,
)
from memory.models import MealDeliveryOption
from tools.localization import translate

AREA = "Nairobi, Kenya"

OPTIONS = [
    MealDeliveryOption(partner_name="Uber Eats", meal_name="Baked Salmon & Quinoa", price=999, delivery_time="40-50 min", rating=4.8),
    MealDeliveryOption(partner_name="Glovo", meal_name="Salmon Fillet Dinner", price=1450, delivery_time="30-40 min", rating=4.6),
    MealDeliveryOption(partner_name="Nairobi Bites", meal_name="Salmon Bowl", price=1100, delivery_time="25-35 min", rating=4.9),
]


async def fixed_options(meal_name, area):
    return list(OPTIONS)


async def open_to_payment(flow, meal, option=OPTIONS[0]):
    await flow.open(meal, AREA)
    flow.select_option(option)
    flow.confirm_purchase()


# =============================================================================
# OPEN / CLOSE
# =============================================================================

def test_open_loads_list(salmon_meal):
    flow = DeliveryFlow(fetch_options=fixed_options)
    state = asyncio.run(flow.open(salmon_meal, AREA))

    assert state.step == "list"
    assert state.meal == salmon_meal
    assert list(state.options) == OPTIONS
    assert state.compare_mode is False
    assert flow.is_open


def test_open_uses_default_fetcher(salmon_meal):
    flow = DeliveryFlow()
    state = asyncio.run(flow.open(salmon_meal, AREA))
    assert {o.partner_name for o in state.options} == {"Uber Eats", "Glovo"}


def test_fetch_failure_gives_empty_list(salmon_meal):
    async def broken(meal_name, area):
        raise ConnectionError("offline")

    flow = DeliveryFlow(fetch_options=broken)
    state = asyncio.run(flow.open(salmon_meal, AREA))
    assert state.step == "list"
    assert state.options == ()


def test_duplicate_options_are_collapsed(salmon_meal):
    async def doubled(meal_name, area):
        return OPTIONS + [OPTIONS[0]]

    flow = DeliveryFlow(fetch_options=doubled)
    state = asyncio.run(flow.open(salmon_meal, AREA))
    assert len(state.options) == 3


def test_reopen_starts_fresh(salmon_meal):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options)
        await flow.open(salmon_meal, AREA)
        flow.toggle_compare_mode()
        flow.toggle_comparison_item(OPTIONS[0])
        first_generation = flow.generation

        state = await flow.open(salmon_meal, AREA)
        return flow, state, first_generation

    flow, state, first_generation = asyncio.run(scenario())
    assert state.step == "list"
    assert state.compare_mode is False
    assert state.comparison_items == ()
    assert flow.generation > first_generation


def test_stale_fetch_after_close_is_dropped(salmon_meal):
    print("\n" + "=" * 60)
    print("TEST: Stale fetch after close")
    print("=" * 60)

    async def scenario():
        release = asyncio.Event()

        async def slow_options(meal_name, area):
            await release.wait()
            return list(OPTIONS)

        flow = DeliveryFlow(fetch_options=slow_options)
        opening = asyncio.create_task(flow.open(salmon_meal, AREA))
        await asyncio.sleep(0)
        assert flow.step == "loading"

        flow.close()
        release.set()
        await opening
        return flow

    flow = asyncio.run(scenario())
    assert flow.step == "closed"
    assert not flow.is_open
    print("✅ Flow stayed closed")


# =============================================================================
# COMPARE
# =============================================================================

def test_compare_two_items(salmon_meal):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options)
        await flow.open(salmon_meal, AREA)
        flow.toggle_compare_mode()
        flow.toggle_comparison_item(OPTIONS[0])
        flow.toggle_comparison_item(("Nairobi Bites", "Salmon Bowl"))
        return flow, flow.compare_selected()

    flow, state = asyncio.run(scenario())
    assert state.step == "compare"
    assert [o.partner_name for o in state.items] == ["Uber Eats", "Nairobi Bites"]

    rows = flow.snapshot()["comparison"]
    assert len(rows) == 2
    uber, bites = rows
    assert uber["is_best_price"] and not uber["is_fastest"]
    assert bites["is_fastest"] and bites["is_highest_rated"]


def test_compare_needs_two_items(salmon_meal):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options)
        await flow.open(salmon_meal, AREA)
        flow.toggle_compare_mode()
        flow.toggle_comparison_item(OPTIONS[0])
        return flow

    flow = asyncio.run(scenario())
    assert FLOW_CONFIG["min_compare_items"] == 2
    with pytest.raises(InvalidTransitionError):
        flow.compare_selected()


def test_toggle_item_twice_removes_it(salmon_meal):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options)
        await flow.open(salmon_meal, AREA)
        flow.toggle_compare_mode()
        flow.toggle_comparison_item(OPTIONS[1])
        return flow.toggle_comparison_item(OPTIONS[1])

    state = asyncio.run(scenario())
    assert state.comparison_items == ()


def test_leaving_compare_mode_clears_selection(salmon_meal):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options)
        await flow.open(salmon_meal, AREA)
        flow.toggle_compare_mode()
        flow.toggle_comparison_item(OPTIONS[0])
        return flow.toggle_compare_mode()

    state = asyncio.run(scenario())
    assert state.compare_mode is False
    assert state.comparison_items == ()


def test_select_from_comparison_and_back(salmon_meal):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options)
        await flow.open(salmon_meal, AREA)
        flow.toggle_compare_mode()
        flow.toggle_comparison_item(OPTIONS[0])
        flow.toggle_comparison_item(OPTIONS[2])
        flow.compare_selected()
        confirm = flow.select_option(OPTIONS[2])
        back = flow.back()
        return confirm, back

    confirm, back = asyncio.run(scenario())
    assert confirm.step == "confirm"
    assert confirm.selected == OPTIONS[2]
    assert back.step == "list"
    assert back.compare_mode is True
    assert len(back.comparison_items) == 2


def test_select_unknown_option(salmon_meal):
    flow = DeliveryFlow(fetch_options=fixed_options)
    asyncio.run(flow.open(salmon_meal, AREA))
    with pytest.raises(UnknownOptionError):
        flow.select_option(("KFC Delivery", "Zinger Burger"))


# =============================================================================
# PAYMENT
# =============================================================================

def test_invalid_phone_never_reaches_gateway(salmon_meal, fake_gateway):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options, payment_gateway=fake_gateway)
        await open_to_payment(flow, salmon_meal)
        return await flow.submit_payment("0712345678")

    state = asyncio.run(scenario())
    assert state.step == "payment"
    assert state.error == translate("invalidPhoneNumber")
    assert state.phone_number == "0712345678"
    assert fake_gateway.calls == []


def test_successful_payment_then_auto_close(salmon_meal, fake_gateway, flow_pauses):
    print("\n" + "=" * 60)
    print("TEST: Successful payment")
    print("=" * 60)

    placed = []

    async def scenario():
        flow = DeliveryFlow(
            fetch_options=fixed_options,
            payment_gateway=fake_gateway,
            on_order_placed=lambda meal, option: placed.append(option),
        )
        await open_to_payment(flow, salmon_meal)
        flow.set_phone_number("254712345678")
        success = await flow.submit_payment()
        pending = flow.auto_close_pending
        await flow._auto_close_task
        return flow, success, pending

    flow, success, pending = asyncio.run(scenario())

    assert fake_gateway.calls == [("254712345678", 999)]
    assert success.step == "success"
    assert success.selected == OPTIONS[0]
    assert success.message == "STK push sent successfully."
    assert placed == [OPTIONS[0]]
    assert pending is True
    assert flow_pauses == [3.0]
    assert flow.step == "closed"
    print("✅ Paid and auto-closed after 3s")


def test_manual_close_cancels_auto_close(salmon_meal, fake_gateway):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options, payment_gateway=fake_gateway)
        await open_to_payment(flow, salmon_meal)
        await flow.submit_payment("254712345678")
        task = flow._auto_close_task
        flow.close()
        await asyncio.sleep(0)
        return flow, task

    flow, task = asyncio.run(scenario())
    assert task.cancelled()
    assert flow.step == "closed"


def test_declined_payment_can_be_resubmitted(salmon_meal):
    async def declines(phone, amount):
        return {"success": False, "message": "declined"}

    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options, payment_gateway=declines)
        await open_to_payment(flow, salmon_meal)
        return flow, await flow.submit_payment("254712345678")

    flow, state = asyncio.run(scenario())
    assert state.step == "payment"
    assert state.error == translate("paymentFailed")
    assert state.phone_number == "254712345678"
    assert flow.snapshot()["payment_error"] == translate("paymentFailed")


def test_gateway_crash_returns_to_payment(salmon_meal):
    async def crashes(phone, amount):
        raise TimeoutError("gateway down")

    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options, payment_gateway=crashes)
        await open_to_payment(flow, salmon_meal)
        return await flow.submit_payment("254712345678")

    assert asyncio.run(scenario()).step == "payment"


def test_stale_payment_result_is_dropped(salmon_meal, fake_gateway):
    async def scenario():
        release = asyncio.Event()

        async def slow_gateway(phone, amount):
            await release.wait()
            return await fake_gateway(phone, amount)

        flow = DeliveryFlow(fetch_options=fixed_options, payment_gateway=slow_gateway)
        await open_to_payment(flow, salmon_meal)
        paying = asyncio.create_task(flow.submit_payment("254712345678"))
        await asyncio.sleep(0)
        assert flow.step == "processingPayment"

        flow.close()
        release.set()
        await paying
        return flow

    flow = asyncio.run(scenario())
    assert flow.step == "closed"
    assert flow.auto_close_pending is False


def test_translated_errors_follow_language(salmon_meal, fake_gateway):
    async def scenario():
        flow = DeliveryFlow(
            fetch_options=fixed_options,
            payment_gateway=fake_gateway,
            translate_fn=lambda key: translate(key, "sw"),
        )
        await open_to_payment(flow, salmon_meal)
        return await flow.submit_payment("0712")

    assert asyncio.run(scenario()).error == translate("invalidPhoneNumber", "sw")


# =============================================================================
# INVALID TRANSITIONS & SNAPSHOT
# =============================================================================

def test_actions_outside_their_step_raise():
    flow = DeliveryFlow(fetch_options=fixed_options)
    with pytest.raises(InvalidTransitionError):
        flow.confirm_purchase()
    with pytest.raises(InvalidTransitionError):
        flow.toggle_compare_mode()
    with pytest.raises(InvalidTransitionError):
        asyncio.run(flow.submit_payment("254712345678"))


def test_select_in_compare_mode_list_is_rejected(salmon_meal):
    async def scenario():
        flow = DeliveryFlow(fetch_options=fixed_options)
        await flow.open(salmon_meal, AREA)
        flow.toggle_compare_mode()
        return flow

    flow = asyncio.run(scenario())
    with pytest.raises(InvalidTransitionError):
        flow.select_option(OPTIONS[0])


def test_snapshot_of_closed_flow():
    snapshot = DeliveryFlow().snapshot()
    assert snapshot["step"] == "closed"
    assert snapshot["is_open"] is False
    assert "meal" not in snapshot
