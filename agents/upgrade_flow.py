"""
OptiFuel — Premium Upgrade Flow
===============================
M-PESA checkout for the Basic -> Premium upgrade.

    closed -> input -> final_confirmation -> simulated_pin -> processing -> success

The PIN screen only mimics the phone prompt; the PIN is checked for shape
and then discarded. The subscription flips when the success screen closes.
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Any, Callable, ClassVar, Dict, Optional, Union

from tools.localization import translate
from tools.mpesa_gateway import MPESA_CONFIG, initiate_mpesa_payment, is_valid_phone_number, is_valid_pin

UPGRADE_CONFIG = {
    "price": MPESA_CONFIG["premium_price"],
    "currency": MPESA_CONFIG["currency"],
    "auto_close_delay_s": 3.0,
}


class UpgradeFlowError(Exception):
    def __init__(self, step: str, action: str):
        super().__init__(f"Cannot '{action}' while in step '{step}'")
        self.step = step
        self.action = action


@dataclass(frozen=True)
class UpgradeClosed:
    step: ClassVar[str] = "closed"


@dataclass(frozen=True)
class PhoneInput:
    step: ClassVar[str] = "input"
    phone_number: str = ""
    error: Optional[str] = None


@dataclass(frozen=True)
class FinalConfirmation:
    step: ClassVar[str] = "final_confirmation"
    phone_number: str


@dataclass(frozen=True)
class SimulatedPin:
    step: ClassVar[str] = "simulated_pin"
    phone_number: str
    error: Optional[str] = None


@dataclass(frozen=True)
class Processing:
    step: ClassVar[str] = "processing"
    phone_number: str


@dataclass(frozen=True)
class UpgradeSuccess:
    step: ClassVar[str] = "success"
    phone_number: str


UpgradeState = Union[UpgradeClosed, PhoneInput, FinalConfirmation, SimulatedPin, Processing, UpgradeSuccess]


async def _pause(seconds: float) -> None:
    await asyncio.sleep(seconds)


class UpgradeFlow:
    def __init__(
        self,
        on_upgraded: Callable[[], None],
        payment_gateway=None,
        translate_fn: Optional[Callable[[str], str]] = None,
    ):
        self._on_upgraded = on_upgraded
        self._payment_gateway = payment_gateway or initiate_mpesa_payment
        self._translate = translate_fn or translate
        self._auto_close_task: Optional[asyncio.Task] = None
        self.state: UpgradeState = UpgradeClosed()
        self.generation = 0

    @property
    def step(self) -> str:
        return self.state.step

    def _expect(self, action: str, *step_types):
        if not isinstance(self.state, step_types):
            raise UpgradeFlowError(self.step, action)
        return self.state

    def start(self) -> UpgradeState:
        self._cancel_auto_close()
        self.generation += 1
        self.state = PhoneInput()
        return self.state

    def close(self) -> UpgradeState:
        """Close the modal; a paid upgrade is applied even if closed early."""
        self._cancel_auto_close()
        if isinstance(self.state, UpgradeSuccess):
            self._on_upgraded()
            print("⭐ Subscription upgraded to Premium")
        self.generation += 1
        self.state = UpgradeClosed()
        return self.state

    def submit_phone(self, phone_number: str) -> UpgradeState:
        self._expect("submit_phone", PhoneInput)
        if not is_valid_phone_number(phone_number):
            self.state = PhoneInput(phone_number=phone_number, error=self._translate("invalidPhoneNumber"))
        else:
            self.state = FinalConfirmation(phone_number=phone_number)
        return self.state

    def confirm(self) -> UpgradeState:
        confirmation = self._expect("confirm", FinalConfirmation)
        self.state = SimulatedPin(phone_number=confirmation.phone_number)
        return self.state

    async def submit_pin(self, pin: str) -> UpgradeState:
        pin_step = self._expect("submit_pin", SimulatedPin)
        if not is_valid_pin(pin):
            self.state = replace(pin_step, error=self._translate("invalidPin"))
            return self.state

        generation = self.generation
        phone = pin_step.phone_number
        self.state = Processing(phone_number=phone)

        try:
            result = await self._payment_gateway(phone, UPGRADE_CONFIG["price"])
        except Exception as e:
            print(f"❌ Upgrade payment failed: {e}")
            result = {"success": False}

        if generation != self.generation:
            return self.state

        if result.get("success"):
            self.state = UpgradeSuccess(phone_number=phone)
            self._auto_close_task = asyncio.create_task(self._finish(generation))
        else:
            self.state = PhoneInput(phone_number=phone, error=self._translate("paymentFailed"))
        return self.state

    async def _finish(self, generation: int) -> None:
        await _pause(UPGRADE_CONFIG["auto_close_delay_s"])
        if generation != self.generation:
            return
        self._auto_close_task = None
        self.close()

    def _cancel_auto_close(self) -> None:
        if self._auto_close_task and not self._auto_close_task.done():
            self._auto_close_task.cancel()
        self._auto_close_task = None

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "step": self.step,
            "price": UPGRADE_CONFIG["price"],
            "currency": UPGRADE_CONFIG["currency"],
        }
        phone = getattr(self.state, "phone_number", None)
        if phone is not None:
            data["phone_number"] = phone
        error = getattr(self.state, "error", None)
        if error:
            data["error"] = error
        return data


__all__ = [
    "UPGRADE_CONFIG",
    "UpgradeFlowError",
    "UpgradeClosed",
    "PhoneInput",
    "FinalConfirmation",
    "SimulatedPin",
    "Processing",
    "UpgradeSuccess",
    "UpgradeFlow",
]
