from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AppState:
    # Each field has a single writer: the feed owns `latest_price`, the
    # broadcaster owns `previous_price`, the control panel owns `is_active`.
    latest_price: str | None = None
    previous_price: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class TickerUpdate:
    inst_id: str
    last: str | None


@dataclass(frozen=True)
class RetryPolicy:
    delay_seconds: float = 5.0
    max_attempts: int | None = None

    def allows(self, attempt: int) -> bool:
        if self.max_attempts is None:
            return True
        return attempt <= self.max_attempts
