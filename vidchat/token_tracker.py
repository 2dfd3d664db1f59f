"""
Token usage tracker for language model calls made while answering questions.
Running totals live for the lifetime of the process and are reported by the
health route; only the most recent calls are kept individually.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass

# Pricing per 1M tokens
PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
    "gpt-4.1-nano": {"input": 0.10, "output": 0.40},
}

RECENT_CALLS = 100


@dataclass
class APICall:
    timestamp: float
    model: str
    purpose: str  # "answer"
    input_tokens: int
    output_tokens: int
    cost_usd: float


class TokenTracker:
    def __init__(self, keep_recent: int = RECENT_CALLS):
        self._recent: deque[APICall] = deque(maxlen=keep_recent)
        self._by_purpose: dict[str, dict] = {}
        self._lock = threading.Lock()

    def log(self, model: str, purpose: str, input_tokens: int, output_tokens: int = 0) -> APICall:
        pricing = PRICING.get(model, {"input": 0.0, "output": 0.0})
        cost = (input_tokens * pricing["input"] + output_tokens * pricing["output"]) / 1_000_000

        call = APICall(
            timestamp=time.time(),
            model=model,
            purpose=purpose,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost,
        )
        with self._lock:
            self._recent.append(call)
            s = self._by_purpose.setdefault(
                purpose,
                {"count": 0, "input_tokens": 0, "output_tokens": 0, "cost_usd": 0.0},
            )
            s["count"] += 1
            s["input_tokens"] += input_tokens
            s["output_tokens"] += output_tokens
            s["cost_usd"] += cost
        return call

    @property
    def calls(self) -> list[APICall]:
        """The most recent calls, oldest first."""
        with self._lock:
            return list(self._recent)

    def summary(self) -> dict:
        with self._lock:
            by_purpose = {purpose: dict(s) for purpose, s in self._by_purpose.items()}

        total_cost = sum(s["cost_usd"] for s in by_purpose.values())
        total_calls = sum(s["count"] for s in by_purpose.values())
        return {"by_purpose": by_purpose, "total_calls": total_calls, "total_cost_usd": total_cost}

    def reset(self) -> None:
        with self._lock:
            self._recent.clear()
            self._by_purpose.clear()
