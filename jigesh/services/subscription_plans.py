"""Subscription plan definitions: prices and durations."""

import calendar
from datetime import datetime
from typing import Any, Dict, Optional

from ..models.account import PLAN_ONE_MONTH, PLAN_THREE_MONTH

# Prices are in the deployment's currency unit (BDT)
PLAN_DEFINITIONS: Dict[str, Dict[str, Any]] = {
    PLAN_ONE_MONTH: {
        "name": "1 Month",
        "price": 20,
        "months": 1,
    },
    PLAN_THREE_MONTH: {
        "name": "3 Months",
        "price": 50,
        "months": 3,
    },
}


class PlanCatalogue:
    """Paid plans, optionally overridden from settings (plans section)"""

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        self._plans = {plan: dict(defn) for plan, defn in PLAN_DEFINITIONS.items()}
        for plan, override in (overrides or {}).items():
            if plan not in self._plans:
                raise ValueError(f"Unknown plan '{plan}'")
            values = override if isinstance(override, dict) else override.model_dump()
            self._plans[plan].update({k: v for k, v in values.items() if k in ("price", "months")})

    def get(self, plan: str) -> Dict[str, Any]:
        if plan not in self._plans:
            raise ValueError(f"Unknown plan '{plan}'")
        return dict(self._plans[plan])

    def amount(self, plan: str) -> int:
        return int(self.get(plan)["price"])

    def months(self, plan: str) -> int:
        return int(self.get(plan)["months"])

    def expiry_from(self, plan: str, start: datetime) -> datetime:
        return add_months(start, self.months(plan))


def add_months(instant: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month"""
    month_index = instant.month - 1 + months
    year = instant.year + month_index // 12
    month = month_index % 12 + 1
    day = min(instant.day, calendar.monthrange(year, month)[1])
    return instant.replace(year=year, month=month, day=day)


def plan_amount(plan: str) -> int:
    """Price of a plan with default pricing"""
    return PlanCatalogue().amount(plan)
