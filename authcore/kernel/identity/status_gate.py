"""
Account status gate: maps lifecycle status to a login decision.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Union

from authcore.kernel.identity.errors import AccountStatusDeniedError
from authcore.kernel.models.account import AccountStatus


@dataclass(frozen=True)
class StatusDecision:
    """Whether an account in a given status may log in."""

    status: str
    allowed: bool
    status_code: int
    message: Optional[str] = None

    def error(self) -> Optional[AccountStatusDeniedError]:
        if self.allowed:
            return None
        return AccountStatusDeniedError(self.status, self.status_code, self.message)


# status -> (allowed, HTTP-equivalent code, message)
_DECISIONS: Dict[AccountStatus, tuple] = {
    AccountStatus.ACTIVE: (True, 200, None),
    AccountStatus.LOCKED: (False, 423, "Your account is locked. Please contact support."),
    AccountStatus.DISABLED: (False, 403, "Your account is disabled. Please contact support."),
    AccountStatus.SUSPENDED: (False, 403, "Your account is suspended. Please contact support."),
    AccountStatus.EXPIRED: (False, 401, "Your account has expired. Please renew."),
}

_UNKNOWN = (False, 400, "Unknown account status.")


class AccountStatusGate:
    """Pure lookup; any unrecognized status is denied."""

    def check(self, status: Union[AccountStatus, str, None]) -> StatusDecision:
        try:
            key = AccountStatus(status)
        except ValueError:
            allowed, code, message = _UNKNOWN
            return StatusDecision(str(status), allowed, code, message)

        allowed, code, message = _DECISIONS.get(key, _UNKNOWN)
        return StatusDecision(key.value, allowed, code, message)
