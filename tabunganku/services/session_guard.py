"""Authentication state for a browser session, with releasable subscriptions"""

import asyncio
import logging
from typing import Any, Callable, List, MutableMapping, Optional
from tabunganku.domain.exceptions import AuthUnavailable
from tabunganku.domain.models import AuthUser
from tabunganku.infrastructure.clients.identity import IdentityClient
from tabunganku.infrastructure.observability.metrics import auth_failure_counter

SESSION_AUTH_KEY = "auth"

OnAuthenticated = Callable[[AuthUser], Any]
OnUnauthenticated = Callable[[], Any]


class Subscription:
    """Handle returned by SessionGuard.observe; release with unsubscribe() or a with-block"""

    def __init__(self, guard: "SessionGuard", on_authenticated: OnAuthenticated, on_unauthenticated: OnUnauthenticated):
        self._guard = guard
        self._on_authenticated = on_authenticated
        self._on_unauthenticated = on_unauthenticated
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._guard._detach(self)

    def deliver(self, user: Optional[AuthUser]) -> None:
        # Deliveries may already be queued on the loop when the view goes away
        if not self._active:
            return
        if user is None:
            self._on_unauthenticated()
        else:
            self._on_authenticated(user)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class SessionGuard:
    """
    Tracks who is signed in for one session cookie.

    The signed-in user lives in the Starlette session under SESSION_AUTH_KEY.
    Subscribers get the current state once after subscribing, then again on
    every sign-in or sign-out through this guard.
    """

    def __init__(self, session: MutableMapping[str, Any], identity_client: Optional[IdentityClient]):
        self.session = session
        self.identity_client = identity_client
        self._subscribers: List[Subscription] = []

    @property
    def current_user(self) -> Optional[AuthUser]:
        data = self.session.get(SESSION_AUTH_KEY)
        if not data:
            return None
        try:
            return AuthUser(uid=data["uid"], email=data["email"], id_token=data["id_token"])
        except (KeyError, TypeError):
            logging.warning("Discarding malformed auth state in session")
            self.session.pop(SESSION_AUTH_KEY, None)
            return None

    def observe(self, on_authenticated: OnAuthenticated, on_unauthenticated: OnUnauthenticated) -> Subscription:
        """
        Subscribe to auth state changes.

        Exactly one of the callbacks runs per state change. The initial state is
        delivered on the next event loop iteration, never inline.
        """
        subscription = Subscription(self, on_authenticated, on_unauthenticated)
        self._subscribers.append(subscription)

        asyncio.get_running_loop().call_soon(subscription.deliver, self.current_user)
        return subscription

    def _detach(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def _publish(self) -> None:
        user = self.current_user
        for subscription in list(self._subscribers):
            subscription.deliver(user)

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """Authenticate with the identity provider and start a session"""
        if self.identity_client is None:
            raise AuthUnavailable("Identity provider not configured")

        user = await self.identity_client.sign_in(email, password)
        self.session[SESSION_AUTH_KEY] = {"uid": user.uid, "email": user.email, "id_token": user.id_token}
        self._publish()
        return user

    async def sign_out(self) -> None:
        """
        End the current session.

        Raises:
            AuthUnavailable: No active session, no provider, or provider failed
        """
        user = self.current_user
        if user is None:
            auth_failure_counter.labels(reason="no_session").inc()
            raise AuthUnavailable("No active session")
        if self.identity_client is None:
            auth_failure_counter.labels(reason="provider_unavailable").inc()
            raise AuthUnavailable("Identity provider not configured")

        try:
            await self.identity_client.sign_out(user.id_token)
        except AuthUnavailable:
            auth_failure_counter.labels(reason="provider_unavailable").inc()
            raise

        self.session.pop(SESSION_AUTH_KEY, None)
        self._publish()


async def wait_for_auth_state(guard: SessionGuard) -> Optional[AuthUser]:
    """Subscribe, take the first delivered state, and release the subscription"""
    state: asyncio.Future = asyncio.get_running_loop().create_future()

    def authenticated(user: AuthUser) -> None:
        if not state.done():
            state.set_result(user)

    def unauthenticated() -> None:
        if not state.done():
            state.set_result(None)

    with guard.observe(on_authenticated=authenticated, on_unauthenticated=unauthenticated):
        return await state
