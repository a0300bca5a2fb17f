"""
OptiFuel — Meal Delivery & Payment Flow
=======================================
State machine behind the "Order Delivery" modal.

    loading -> list -> (compare) -> confirm -> payment -> processing -> success

Each step is its own frozen dataclass carrying only the data valid for it,
so nothing from an earlier step leaks into a later one. Every async result
is tagged with the flow generation at the time it was requested; opening or
closing the modal bumps the generation and late results are dropped.
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, Optional, Tuple, Union

from memory.models import Meal, MealDeliveryOption
from tools.delivery_options import get_delivery_options_for_meal, highlight_comparison
from tools.localization import translate
from tools.mpesa_gateway import initiate_mpesa_payment, is_valid_phone_number

# =============================================================================
# CONFIGURATION
# =============================================================================
FLOW_CONFIG = {
    "auto_close_delay_s": 3.0,
    "min_compare_items": 2,
}

OptionRef = Union[MealDeliveryOption, Tuple[str, str]]
FetchOptions = Callable[[str, str], Awaitable[List[MealDeliveryOption]]]
PaymentGateway = Callable[[str, float], Awaitable[Dict[str, Any]]]


class DeliveryFlowError(Exception):
    """Base class for delivery flow errors."""


class InvalidTransitionError(DeliveryFlowError):
    def __init__(self, step: str, action: str):
        super().__init__(f"Cannot '{action}' while in step '{step}'")
        self.step = step
        self.action = action


class UnknownOptionError(DeliveryFlowError):
    """The referenced option is not part of the current list."""


# =============================================================================
# STEPS
# =============================================================================
@dataclass(frozen=True)
class Closed:
    step: ClassVar[str] = "closed"


@dataclass(frozen=True)
class Loading:
    step: ClassVar[str] = "loading"
    meal: Meal


@dataclass(frozen=True)
class ListStep:
    step: ClassVar[str] = "list"
    meal: Meal
    options: Tuple[MealDeliveryOption, ...] = ()
    compare_mode: bool = False
    comparison_items: Tuple[MealDeliveryOption, ...] = ()


@dataclass(frozen=True)
class CompareStep:
    step: ClassVar[str] = "compare"
    meal: Meal
    listing: ListStep

    @property
    def items(self) -> Tuple[MealDeliveryOption, ...]:
        return self.listing.comparison_items


@dataclass(frozen=True)
class ConfirmStep:
    step: ClassVar[str] = "confirm"
    meal: Meal
    listing: ListStep
    selected: MealDeliveryOption


@dataclass(frozen=True)
class PaymentStep:
    step: ClassVar[str] = "payment"
    meal: Meal
    listing: ListStep
    selected: MealDeliveryOption
    phone_number: str = ""
    error: Optional[str] = None


@dataclass(frozen=True)
class ProcessingPayment:
    step: ClassVar[str] = "processingPayment"
    meal: Meal
    listing: ListStep
    selected: MealDeliveryOption
    phone_number: str


@dataclass(frozen=True)
class SuccessStep:
    step: ClassVar[str] = "success"
    meal: Meal
    selected: MealDeliveryOption
    phone_number: str
    message: str = ""


FlowState = Union[
    Closed, Loading, ListStep, CompareStep, ConfirmStep,
    PaymentStep, ProcessingPayment, SuccessStep,
]

CLOSED = Closed()


async def _pause(seconds: float) -> None:
    await asyncio.sleep(seconds)


def _unique(options: List[MealDeliveryOption]) -> Tuple[MealDeliveryOption, ...]:
    seen = set()
    unique = []
    for option in options:
        if option.key not in seen:
            seen.add(option.key)
            unique.append(option)
    return tuple(unique)


def _key(option: OptionRef) -> Tuple[str, str]:
    if isinstance(option, MealDeliveryOption):
        return option.key
    return tuple(option)


# =============================================================================
# FLOW
# =============================================================================
class DeliveryFlow:
    """One delivery modal; a session owns exactly one of these."""

    def __init__(
        self,
        fetch_options: Optional[FetchOptions] = None,
        payment_gateway: Optional[PaymentGateway] = None,
        translate_fn: Optional[Callable[[str], str]] = None,
        on_order_placed: Optional[Callable[[Meal, MealDeliveryOption], None]] = None,
    ):
        self._fetch_options = fetch_options or get_delivery_options_for_meal
        self._payment_gateway = payment_gateway or initiate_mpesa_payment
        self._translate = translate_fn or translate
        self._on_order_placed = on_order_placed
        self._auto_close_task: Optional[asyncio.Task] = None
        self.state: FlowState = CLOSED
        self.generation = 0

    @property
    def is_open(self) -> bool:
        return not isinstance(self.state, Closed)

    @property
    def step(self) -> str:
        return self.state.step

    def _expect(self, action: str, *step_types):
        if not isinstance(self.state, step_types):
            raise InvalidTransitionError(self.step, action)
        return self.state

    # -------------------------------------------------------------------------
    # Open / close
    # -------------------------------------------------------------------------
    async def open(self, meal: Meal, area: str) -> FlowState:
        """Start a fresh ordering session for `meal` and load its options."""
        self._cancel_auto_close()
        self.generation += 1
        generation = self.generation
        self.state = Loading(meal=meal)

        try:
            options = await self._fetch_options(meal.name, area)
        except Exception as e:
            print(f"⚠️ Failed to fetch delivery options: {e}")
            options = []

        if generation != self.generation:
            print(f"⏭️ Dropping stale delivery options for '{meal.name}'")
            return self.state

        self.state = ListStep(meal=meal, options=_unique(list(options)))
        print(f"📦 {len(self.state.options)} delivery option(s) for '{meal.name}'")
        return self.state

    def close(self) -> FlowState:
        self._cancel_auto_close()
        self.generation += 1
        self.state = CLOSED
        return self.state

    # -------------------------------------------------------------------------
    # List & compare
    # -------------------------------------------------------------------------
    def toggle_compare_mode(self) -> FlowState:
        listing = self._expect("toggle_compare_mode", ListStep)
        self.state = replace(
            listing,
            compare_mode=not listing.compare_mode,
            comparison_items=(),
        )
        return self.state

    def _find_option(self, options: Tuple[MealDeliveryOption, ...], option: OptionRef) -> MealDeliveryOption:
        key = _key(option)
        for candidate in options:
            if candidate.key == key:
                return candidate
        raise UnknownOptionError(f"No delivery option {key[1]!r} from {key[0]!r}")

    def toggle_comparison_item(self, option: OptionRef) -> FlowState:
        listing = self._expect("toggle_comparison_item", ListStep)
        if not listing.compare_mode:
            raise InvalidTransitionError(self.step, "toggle_comparison_item")

        chosen = self._find_option(listing.options, option)
        items = listing.comparison_items
        if any(item.key == chosen.key for item in items):
            items = tuple(item for item in items if item.key != chosen.key)
        else:
            items = items + (chosen,)

        self.state = replace(listing, comparison_items=items)
        return self.state

    def compare_selected(self) -> FlowState:
        listing = self._expect("compare_selected", ListStep)
        if not listing.compare_mode or len(listing.comparison_items) < FLOW_CONFIG["min_compare_items"]:
            raise InvalidTransitionError(self.step, "compare_selected")
        self.state = CompareStep(meal=listing.meal, listing=listing)
        return self.state

    def select_option(self, option: OptionRef) -> FlowState:
        """Pick one option, from the plain list or from the comparison."""
        current = self._expect("select_option", ListStep, CompareStep)

        if isinstance(current, CompareStep):
            listing = current.listing
            chosen = self._find_option(current.items, option)
        else:
            if current.compare_mode:
                raise InvalidTransitionError(self.step, "select_option")
            listing = current
            chosen = self._find_option(current.options, option)

        self.state = ConfirmStep(meal=current.meal, listing=listing, selected=chosen)
        return self.state

    def back(self) -> FlowState:
        current = self._expect("back", CompareStep, ConfirmStep, PaymentStep)
        self.state = current.listing
        return self.state

    # -------------------------------------------------------------------------
    # Confirm & pay
    # -------------------------------------------------------------------------
    def confirm_purchase(self) -> FlowState:
        confirm = self._expect("confirm_purchase", ConfirmStep)
        self.state = PaymentStep(meal=confirm.meal, listing=confirm.listing, selected=confirm.selected)
        return self.state

    def set_phone_number(self, phone_number: str) -> FlowState:
        payment = self._expect("set_phone_number", PaymentStep)
        self.state = replace(payment, phone_number=phone_number, error=None)
        return self.state

    async def submit_payment(self, phone_number: Optional[str] = None) -> FlowState:
        """
        Validate the number and run the simulated STK push.

        An invalid number never reaches the gateway. A failed or crashed
        payment returns to the payment step so the user can resubmit; it is
        never retried automatically.
        """
        payment = self._expect("submit_payment", PaymentStep)
        phone = payment.phone_number if phone_number is None else phone_number

        if not is_valid_phone_number(phone):
            self.state = replace(payment, phone_number=phone, error=self._translate("invalidPhoneNumber"))
            return self.state

        generation = self.generation
        self.state = ProcessingPayment(
            meal=payment.meal,
            listing=payment.listing,
            selected=payment.selected,
            phone_number=phone,
        )

        try:
            result = await self._payment_gateway(phone, payment.selected.price)
        except Exception as e:
            print(f"❌ Payment failed: {e}")
            result = {"success": False, "message": str(e)}

        if generation != self.generation:
            print("⏭️ Dropping stale payment result")
            return self.state

        if result.get("success"):
            self.state = SuccessStep(
                meal=payment.meal,
                selected=payment.selected,
                phone_number=phone,
                message=result.get("message", ""),
            )
            print(f"✅ Order placed: {payment.selected.meal_name} via {payment.selected.partner_name}")
            self._schedule_auto_close(generation)
            if self._on_order_placed:
                self._on_order_placed(payment.meal, payment.selected)
        else:
            self.state = PaymentStep(
                meal=payment.meal,
                listing=payment.listing,
                selected=payment.selected,
                phone_number=phone,
                error=self._translate("paymentFailed"),
            )
        return self.state

    # -------------------------------------------------------------------------
    # Auto-close
    # -------------------------------------------------------------------------
    def _schedule_auto_close(self, generation: int) -> None:
        self._cancel_auto_close()
        self._auto_close_task = asyncio.create_task(self._auto_close(generation))

    async def _auto_close(self, generation: int) -> None:
        await _pause(FLOW_CONFIG["auto_close_delay_s"])
        if generation == self.generation:
            self._auto_close_task = None
            self.close()

    def _cancel_auto_close(self) -> None:
        if self._auto_close_task and not self._auto_close_task.done():
            self._auto_close_task.cancel()
        self._auto_close_task = None

    @property
    def auto_close_pending(self) -> bool:
        return self._auto_close_task is not None and not self._auto_close_task.done()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe view of the current step for the API and UI."""
        state = self.state
        data: Dict[str, Any] = {
            "step": state.step,
            "is_open": self.is_open,
            "generation": self.generation,
        }

        meal = getattr(state, "meal", None)
        if meal is not None:
            data["meal"] = meal.model_dump(mode="json")

        listing = state if isinstance(state, ListStep) else getattr(state, "listing", None)
        if isinstance(state, ListStep):
            data["options"] = [o.model_dump(mode="json") for o in state.options]
            data["compare_mode"] = state.compare_mode
            data["comparison_items"] = [o.model_dump(mode="json") for o in state.comparison_items]
        elif listing is not None:
            data["options"] = [o.model_dump(mode="json") for o in listing.options]

        if isinstance(state, CompareStep):
            data["comparison"] = [
                {**row, "option": row["option"].model_dump(mode="json")}
                for row in highlight_comparison(state.items)
            ]

        selected = getattr(state, "selected", None)
        if selected is not None:
            data["selected"] = selected.model_dump(mode="json")

        if isinstance(state, (PaymentStep, ProcessingPayment, SuccessStep)):
            data["phone_number"] = state.phone_number
        if isinstance(state, PaymentStep):
            data["payment_error"] = state.error
        if isinstance(state, SuccessStep):
            data["message"] = state.message

        return data


__all__ = [
    "FLOW_CONFIG",
    "DeliveryFlowError",
    "InvalidTransitionError",
    "UnknownOptionError",
    "Closed",
    "Loading",
    "ListStep",
    "CompareStep",
    "ConfirmStep",
    "PaymentStep",
    "ProcessingPayment",
    "SuccessStep",
    "FlowState",
    "DeliveryFlow",
]
