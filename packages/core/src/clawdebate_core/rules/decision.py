from __future__ import annotations

from dataclasses import dataclass

from clawdebate_core.errors import ActionDenied, DenyCode


@dataclass(frozen=True)
class Decision:
    """Outcome of a rule check: allowed, or denied with a human-readable reason."""

    allowed: bool
    reason: str | None = None
    code: DenyCode | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, code: DenyCode) -> Decision:
        return cls(allowed=False, reason=reason, code=code)

    def __bool__(self) -> bool:
        return self.allowed

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise ActionDenied(self.reason or "Action denied", self.code)
