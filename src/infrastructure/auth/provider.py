"""Identity provider protocol."""

from typing import Protocol

from domain.entities.identity import Identity


class IIdentityProvider(Protocol):
    """Protocol for identity providers."""

    async def sign_up(self, email: str, password: str) -> Identity:
        """
        Register a new email/password identity.

        Raises:
            CredentialError: If the email is taken or the password is rejected
        """
        ...

    async def sign_in(self, email: str, password: str) -> Identity:
        """
        Authenticate an existing email/password identity.

        Raises:
            CredentialError: If the credentials do not match
        """
        ...

    async def sign_in_anonymously(self) -> Identity:
        """Create a fresh anonymous identity."""
        ...

    async def sign_in_with_custom_token(self, token: str) -> Identity:
        """Exchange a pre-issued custom token for an identity."""
        ...
