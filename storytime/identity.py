"""
Viewer identity.

Every call that depends on who is looking receives an explicit Identity:
either an authenticated user or an anonymous browser session.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: str

    @property
    def column(self) -> str:
        return "user_id"

    @property
    def value(self) -> str:
        return self.user_id


@dataclass(frozen=True)
class AnonymousIdentity:
    session_id: str

    @property
    def column(self) -> str:
        return "anon_session_id"

    @property
    def value(self) -> str:
        return self.session_id


Identity = AuthenticatedIdentity | AnonymousIdentity


def resolve_identity(
    user_id: str | None = None,
    anon_session_id: str | None = None,
) -> Identity | None:
    """
    Build an Identity from raw request values.

    The authenticated user wins when both are present; blank values count
    as missing.
    """
    if user_id and user_id.strip():
        return AuthenticatedIdentity(user_id.strip())
    if anon_session_id and anon_session_id.strip():
        return AnonymousIdentity(anon_session_id.strip())
    return None


def identity_columns(identity: Identity) -> tuple[str | None, str | None]:
    """Return (user_id, anon_session_id) with exactly one set."""
    if isinstance(identity, AuthenticatedIdentity):
        return identity.user_id, None
    return None, identity.session_id
