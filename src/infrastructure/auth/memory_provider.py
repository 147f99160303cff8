"""In-process identity provider for local development and tests.

Applies the same account rules as Firebase email/password auth (unique
email, six character minimum password) and issues HS256 tokens shaped like
Firebase ID tokens.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from core.exceptions import CredentialError
from domain.entities.identity import Identity

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 6
MAX_BCRYPT_BYTES = 72  # bcrypt ignores anything past this
_ALGORITHM = "HS256"


@dataclass
class _Account:
    user_id: str
    email: str
    password_hash: str
    created_at: datetime


class InMemoryIdentityProvider:
    """Identity provider keeping accounts in a dict."""

    def __init__(
        self,
        secret_key: str,
        expire_minutes: int = 60,
        bcrypt_rounds: int = 12,
    ) -> None:
        self._secret_key = secret_key
        self._expire_minutes = expire_minutes
        self._pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=bcrypt_rounds
        )
        self._accounts: dict[str, _Account] = {}

    async def sign_up(self, email: str, password: str) -> Identity:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise CredentialError("The email address is badly formatted.", reason="INVALID_EMAIL")
        if email in self._accounts:
            raise CredentialError(
                "The email address is already in use by another account.",
                reason="EMAIL_EXISTS",
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise CredentialError(
                "Password should be at least 6 characters.", reason="WEAK_PASSWORD"
            )
        if len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
            raise CredentialError(
                f"Password must be at most {MAX_BCRYPT_BYTES} bytes.", reason="PASSWORD_TOO_LONG"
            )

        account = _Account(
            user_id=uuid4().hex,
            email=email,
            password_hash=self._pwd_context.hash(password),
            created_at=datetime.now(timezone.utc),
        )
        self._accounts[email] = account
        logger.info("account_created", user_id=account.user_id)
        return self._issue(account.user_id, email, "password", account.created_at)

    async def sign_in(self, email: str, password: str) -> Identity:
        account = self._accounts.get(email.strip().lower())
        if account is None or not self._verify(password, account.password_hash):
            raise CredentialError(
                "The email or password is incorrect.", reason="INVALID_LOGIN_CREDENTIALS"
            )
        return self._issue(account.user_id, account.email, "password", account.created_at)

    async def sign_in_anonymously(self) -> Identity:
        return self._issue(uuid4().hex, None, "anonymous", datetime.now(timezone.utc))

    async def sign_in_with_custom_token(self, token: str) -> Identity:
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError as e:
            raise CredentialError("The custom token is invalid.", reason="INVALID_CUSTOM_TOKEN") from e

        user_id = claims.get("uid")
        if not user_id:
            raise CredentialError("The custom token is invalid.", reason="INVALID_CUSTOM_TOKEN")
        return self._issue(user_id, claims.get("email"), "custom", datetime.now(timezone.utc))

    def _verify(self, password: str, password_hash: str) -> bool:
        if len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
            return False
        return self._pwd_context.verify(password, password_hash)

    def mint_custom_token(self, user_id: str, email: str | None = None) -> str:
        """Create a custom token accepted by ``sign_in_with_custom_token``."""
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)
        payload: dict = {"uid": user_id, "exp": expire}
        if email:
            payload["email"] = email
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def _issue(
        self, user_id: str, email: str | None, sign_in_provider: str, created_at: datetime
    ) -> Identity:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)
        payload: dict = {
            "sub": user_id,
            "user_id": user_id,
            "email": email,
            "exp": expire,
            "firebase": {"sign_in_provider": sign_in_provider},
        }
        return Identity(
            user_id=user_id,
            email=email,
            is_anonymous=sign_in_provider == "anonymous",
            created_at=created_at,
            id_token=jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM),
            refresh_token=secrets.token_urlsafe(24),
        )
