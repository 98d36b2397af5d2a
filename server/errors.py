"""Error taxonomy for the world core.

Every rejection carries a short machine ``code`` (the client switches on it,
e.g. ``needsBoat``) and a human ``message``. ``status`` is the HTTP status the
Flask layer answers with; the core itself never looks at it.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class GameError(Exception):
    status = 400
    code = "error"

    def __init__(self, message: str, code: Optional[str] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.extra: Dict[str, Any] = extra

    def as_dict(self) -> Dict[str, Any]:
        out = {"ok": False, "error": self.code, "message": self.message, self.code: True}
        out.update(self.extra)
        return out


class ValidationRejection(GameError):
    code = "invalid"


class NotFound(GameError):
    status = 404
    code = "notFound"


class Forbidden(GameError):
    status = 403
    code = "forbidden"


class PolicyRejection(GameError):
    code = "rejected"


class NeedsBoat(PolicyRejection):
    code = "needsBoat"


class AlreadyTraveling(PolicyRejection):
    code = "alreadyTraveling"


class NotTraveling(PolicyRejection):
    code = "notTraveling"


class AlreadyThere(PolicyRejection):
    code = "alreadyThere"


class AlreadyHome(PolicyRejection):
    code = "alreadyHome"


class TooFar(PolicyRejection):
    code = "tooFar"


class SelfTarget(PolicyRejection):
    code = "selfTarget"


class TooWeak(PolicyRejection):
    code = "tooWeak"


class TargetDefeated(PolicyRejection):
    code = "targetDefeated"


class MonsterDefeated(PolicyRejection):
    code = "alreadyDefeated"


class NotEnoughGold(PolicyRejection):
    code = "notEnoughGold"


class NotEnoughItems(PolicyRejection):
    code = "notEnoughItems"


class OutOfStock(PolicyRejection):
    code = "outOfStock"


class NotForSale(PolicyRejection):
    code = "notForSale"


class ContentionFailure(GameError):
    """A compare-and-set lost against a concurrent writer; safe to retry."""
    status = 409
    code = "conflict"


class InvariantViolation(GameError):
    """Persisted state the core can never produce. Always a bug."""
    status = 500
    code = "invariantViolation"
