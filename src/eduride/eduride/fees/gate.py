from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.enums import GateDecision, PaymentStatus

CLEARED_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.EXEMPT})


@dataclass(frozen=True)
class FeeGate:
    """Pass/fail check on payment status preceding any door action.

    Total and side-effect free: anything that is not a cleared status is denied.
    """

    def evaluate(self, payment_status: Any) -> GateDecision:
        try:
            status = PaymentStatus(payment_status)
        except ValueError:
            return GateDecision.DENY
        return GateDecision.ALLOW if status in CLEARED_STATUSES else GateDecision.DENY
