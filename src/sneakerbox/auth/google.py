"""Google sign-in — turn a Google ID token into an ExternalProfile.

Learn: the browser completes Google's OAuth flow and posts us the ID
token. We ask Google's tokeninfo endpoint to validate it (signature,
expiry) and then check the audience is our own client id. Only a
verified email is passed on; an unverified one could otherwise be
used to take over a local account via linking.
"""

import httpx
import structlog

from sneakerbox.auth.errors import InternalError, Unauthorized
from sneakerbox.auth.provisioning import ExternalProfile
from sneakerbox.config import settings

logger = structlog.get_logger()


class GoogleTokenVerifier:
    """Validates Google ID tokens via the tokeninfo endpoint."""

    def __init__(
        self,
        client_id: str,
        tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo",
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.tokeninfo_url = tokeninfo_url
        self.timeout = timeout

    async def verify(self, id_token: str) -> ExternalProfile:
        if not id_token:
            raise Unauthorized("Missing Google ID token")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                resp = await client.get(self.tokeninfo_url, params={"id_token": id_token})
            except httpx.RequestError as e:
                logger.error("google.tokeninfo_unreachable", error=str(e))
                raise InternalError()

        if resp.status_code != 200:
            logger.info("google.token_rejected", status=resp.status_code)
            raise Unauthorized("Invalid Google token")

        info = resp.json()
        if self.client_id and info.get("aud") != self.client_id:
            logger.warning("google.audience_mismatch", aud=info.get("aud"))
            raise Unauthorized("Invalid Google token")

        email_verified = str(info.get("email_verified", "")).lower() == "true"
        return ExternalProfile(
            external_id=info.get("sub", ""),
            email=info.get("email") if email_verified else None,
            display_name=info.get("name"),
        )


def get_google_verifier() -> GoogleTokenVerifier:
    """FastAPI dependency — overridden in tests."""
    return GoogleTokenVerifier(
        client_id=settings.google_client_id,
        tokeninfo_url=settings.google_tokeninfo_url,
    )
