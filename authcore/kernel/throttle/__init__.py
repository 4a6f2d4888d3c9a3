"""
Brute-force and rate-limit protection for login.
"""

from authcore.kernel.throttle.counters import AttemptCounter, InMemoryCounterStore
from authcore.kernel.throttle.login_throttle import (
    AttemptOutcome,
    LoginThrottle,
    ThrottleDecision,
    ThrottleState,
)

__all__ = [
    "AttemptCounter",
    "InMemoryCounterStore",
    "AttemptOutcome",
    "LoginThrottle",
    "ThrottleDecision",
    "ThrottleState",
]
