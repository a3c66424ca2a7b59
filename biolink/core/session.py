"""Viewer session passed explicitly into the analytics operations."""

import hashlib
from dataclasses import dataclass


@dataclass(frozen=True)
class ViewerSession:
    """Who is looking at a profile page, and where they came from.

    Both fields are optional: anonymous viewers have no credential and
    direct visits have no referrer.
    """

    credential: str | None = None
    referrer: str | None = None

    @property
    def scope(self) -> str:
        """Cache partition for reads made with this session's credential.

        Anonymous sessions share the empty scope. The token itself is never
        kept as a key, only its digest.
        """
        if not self.credential:
            return ""
        return hashlib.sha256(self.credential.encode()).hexdigest()

    def auth_headers(self) -> dict[str, str]:
        """Bearer header for the Backend API, empty when anonymous."""
        if not self.credential:
            return {}
        return {"Authorization": f"Bearer {self.credential}"}


ANONYMOUS = ViewerSession()
