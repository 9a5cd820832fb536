import math, time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import ValidationError

class WatchKind(str, Enum):
    CHANGE_THRESHOLD = "ChangeThreshold"
    TARGET_CROSS     = "TargetCross"

    @property
    def display(self) -> str:
        return "MCap change" if self is WatchKind.CHANGE_THRESHOLD else "MCap target"

@dataclass
class Watch:
    label: str
    token_address: str
    token_symbol: str
    kind: WatchKind
    threshold_delta: Optional[float] = None
    target_value: Optional[float] = None
    last_observed: Optional[float] = None   # None = never evaluated
    owner_id: int = 0
    id: str = ""
    created_ts: float = field(default_factory=time.time)

    @classmethod
    def change_threshold(cls, label: str, token_address: str, token_symbol: str, delta: float, **kw) -> "Watch":
        if not _finite(delta) or delta <= 0:
            raise ValidationError("MCap change must be a number greater than 0.")
        return cls(label=label, token_address=token_address, token_symbol=token_symbol,
                   kind=WatchKind.CHANGE_THRESHOLD, threshold_delta=float(delta), **kw)

    @classmethod
    def target_cross(cls, label: str, token_address: str, token_symbol: str, target: float, **kw) -> "Watch":
        if not _finite(target):
            raise ValidationError("Target MCap must be a number.")
        return cls(label=label, token_address=token_address, token_symbol=token_symbol,
                   kind=WatchKind.TARGET_CROSS, target_value=float(target), **kw)

    @property
    def value(self) -> float:
        """The user-supplied number: the delta or the target, depending on kind."""
        return self.threshold_delta if self.kind is WatchKind.CHANGE_THRESHOLD else self.target_value

@dataclass
class TokenSnapshot:
    mc: Optional[float]
    price: Optional[float]
    supply: Optional[float]
    updated_ts: float

def _finite(x) -> bool:
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False
