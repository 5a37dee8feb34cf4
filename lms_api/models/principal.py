from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity extracted from a token the identity provider signed.

    Carried through the request via FastAPI's dependency system, so
    handlers compare owner fields against ``user_id`` instead of trusting
    anything in the request body.
    """

    user_id: str
    roles: frozenset[str] = frozenset()
    session_id: str | None = None

    def owns(self, owner_id: str | None) -> bool:
        return owner_id is not None and owner_id == self.user_id
