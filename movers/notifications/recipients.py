import enum
from dataclasses import dataclass
from typing import Iterable, List, Optional


class Audience(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    DRIVER = "driver"


@dataclass(frozen=True)
class PushTarget:
    token: str
    body: str
    audience: Audience
    user_id: Optional[str] = None


def dedupe_targets(candidates: Iterable[PushTarget]) -> List[PushTarget]:
    """Drop candidates without a token and keep the first candidate for each token, in order."""
    seen = set()
    targets: List[PushTarget] = []
    for target in candidates:
        token = (target.token or "").strip()
        if not token or token in seen:
            continue
        seen.add(token)
        targets.append(target)
    return targets
