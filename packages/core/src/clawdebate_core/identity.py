from __future__ import annotations

import secrets
import string
import time
import uuid
from dataclasses import dataclass

_SESSION_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class UserVoter:
    """An authenticated user."""

    user_id: uuid.UUID

    @property
    def key(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class AnonymousVoter:
    """A cookie-bound anonymous session, rate limited per session and per address."""

    session_id: str
    ip_address: str | None = None

    @property
    def key(self) -> str:
        return f"anon:{self.session_id}"


VoterIdentity = UserVoter | AnonymousVoter


def generate_session_id() -> str:
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(13))
    return f"anon_{int(time.time() * 1000)}_{suffix}"


def generate_verification_code() -> str:
    return f"verify_{uuid.uuid4().hex}"
