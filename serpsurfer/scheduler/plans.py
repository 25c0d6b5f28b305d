"""
Subscription plans: how many hits a campaign gets per day and for how long.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Plan(BaseModel):
    name: str
    hits_per_day: int = Field(..., ge=1)
    # None: no end date
    duration_days: Optional[int] = Field(None, ge=1)

    model_config = ConfigDict(frozen=True)


PLANS: Dict[str, Plan] = {
    "free": Plan(name="free", hits_per_day=10, duration_days=None),
    "plan1": Plan(name="plan1", hits_per_day=3000, duration_days=7),
    "plan2": Plan(name="plan2", hits_per_day=500, duration_days=30),
}


def get_plan(name: str) -> Plan:
    try:
        return PLANS[name]
    except KeyError:
        raise KeyError(f"Unknown plan: {name!r}") from None
