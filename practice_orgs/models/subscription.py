from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

SUBSCRIPTION_STATUSES = ("TRIAL", "ACTIVE")


@dataclass(frozen=True, slots=True)
class Subscription:
    user_id: UUID
    plan_name: str = "trial"
    status: str = "TRIAL"  # TRIAL|ACTIVE

    @property
    def is_trial(self) -> bool:
        return self.status == "TRIAL"
