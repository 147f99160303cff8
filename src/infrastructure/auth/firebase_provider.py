"""Firebase Authentication provider over the Identity Toolkit REST API.

Every sign-in endpoint answers with the same payload shape:
    {
        "idToken": "<jwt>",
        "refreshToken": "...",
        "expiresIn": "3600",
        "localId": "uid",          # absent for custom token sign-in
        "email": "user@example.com"
    }

The ID token is a Firebase-issued JWT; its claims carry ``user_id`` and
``firebase.sign_in_provider`` ("password", "anonymous", "custom").
"""

from dataclasses import replace
from typing import Any

import httpx
import structlog
from jose import JWTError, jwt

from core.exceptions import CredentialError, IdentityProviderError
from domain.entities.identity import Identity

logger = structlog.get_logger()

# Identity Toolkit error codes mapped to user-facing messages
_ERROR_MESSAGES = {
    "EMAIL_EXISTS": "The email address is already in use by another account.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "INVALID_EMAIL": "The email address is badly formatted.",
    "MISSING_PASSWORD": "A password is required.",
    "EMAIL_NOT_FOUND": "There is no account for this email address.",
    "INVALID_PASSWORD": "The password is invalid.",
    "INVALID_LOGIN_CREDENTIALS": "The email or password is incorrect.",
    "USER_DISABLED": "This account has been disabled.",
    "INVALID_CUSTOM_TOKEN": "The custom token is invalid.",
    "CREDENTIAL_MISMATCH": "The custom token belongs to a different project.",
    "OPERATION_NOT_ALLOWED": "This sign-in method is disabled for the project.",
}


class FirebaseIdentityProvider:
    """Identity provider backed by Firebase Authentication."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._timeout = timeout

    async def sign_up(self, email: str, password: str) -> Identity:
        data = await self._call(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._to_identity(data)

    async def sign_in(self, email: str, password: str) -> Identity:
        data = await self._call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._to_identity(data)

    async def sign_in_anonymously(self) -> Identity:
        data = await self._call("signUp", {"returnSecureToken": True})
        return replace(self._to_identity(data), is_anonymous=True)

    async def sign_in_with_custom_token(self, token: str) -> Identity:
        data = await self._call(
            "signInWithCustomToken",
            {"token": token, "returnSecureToken": True},
        )
        return self._to_identity(data)

    async def _call(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to ``accounts:{endpoint}`` and return the decoded body."""
        url = f"{self._base_url}/accounts:{endpoint}"
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, params={"key": self._api_key}, json=payload, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        url, params={"key": self._api_key}, json=payload, timeout=self._timeout
                    )
        except httpx.HTTPError as e:
            logger.error("identity_provider_unreachable", endpoint=endpoint, error=str(e))
            raise IdentityProviderError(f"Identity provider unreachable: {e}") from e

        if response.status_code >= 500:
            logger.error(
                "identity_provider_failed",
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise IdentityProviderError(
                f"Identity provider returned HTTP {response.status_code}"
            )

        if response.status_code >= 400:
            code = _error_code(response)
            logger.info("credential_rejected", endpoint=endpoint, reason=code)
            raise CredentialError(_ERROR_MESSAGES.get(code, code), reason=code)

        return response.json()

    def _to_identity(self, data: dict[str, Any]) -> Identity:
        id_token = data.get("idToken")
        claims: dict[str, Any] = {}
        if id_token:
            try:
                claims = jwt.get_unverified_claims(id_token)
            except JWTError:
                logger.warning("id_token_claims_unreadable")

        user_id = data.get("localId") or claims.get("user_id") or claims.get("sub")
        if not user_id:
            raise IdentityProviderError("Identity provider response carried no user id")

        sign_in_provider = (claims.get("firebase") or {}).get("sign_in_provider")
        return Identity(
            user_id=user_id,
            email=data.get("email") or claims.get("email"),
            is_anonymous=sign_in_provider == "anonymous",
            id_token=id_token,
            refresh_token=data.get("refreshToken"),
        )


def _error_code(response: httpx.Response) -> str:
    """Extract the Identity Toolkit error code, e.g. ``WEAK_PASSWORD : ...``."""
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP_{response.status_code}"
    return str(message).split(" : ", 1)[0].strip()
