"""Identity provider HTTP client for signing operators in and out"""

import httpx
from tabunganku.domain.models import AuthUser
from tabunganku.domain.exceptions import AuthUnavailable, InvalidCredentialsError
from tabunganku.infrastructure.observability.metrics import identity_latency_histogram
from tabunganku.config import settings


class IdentityClient:
    """Client for the external identity provider"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.auth_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """
        Exchange email/password for an id token.

        Raises:
            InvalidCredentialsError: Provider rejected the credentials (400/401)
            AuthUnavailable: On timeout, other HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with identity_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/auth/sign-in",
                        json={"email": email, "password": password},
                    )
                if response.status_code in (400, 401):
                    raise InvalidCredentialsError("Email atau kata sandi salah")
                response.raise_for_status()
                data = response.json()

                return AuthUser(
                    uid=data["uid"],
                    email=data["email"],
                    id_token=data["id_token"],
                )

            except httpx.TimeoutException as e:
                raise AuthUnavailable(f"Identity provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AuthUnavailable(f"Identity provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise AuthUnavailable(f"Identity provider unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise AuthUnavailable(f"Invalid sign-in response from identity provider: {e}") from e

    async def sign_out(self, id_token: str) -> None:
        """
        Revoke the session behind an id token.

        Raises:
            AuthUnavailable: On timeout, HTTP errors, or network failure
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with identity_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/auth/sign-out",
                        json={"id_token": id_token},
                    )
                response.raise_for_status()

            except httpx.TimeoutException as e:
                raise AuthUnavailable(f"Identity provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AuthUnavailable(f"Identity provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise AuthUnavailable(f"Identity provider unreachable: {e}") from e
