"""Szene1 API client.

Builds signed requests for section/method endpoints, dispatches them through
a transport, interprets the XML responses and keeps track of the user
session obtained through ``user/login``.
"""

import time
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote_plus, urlencode

import httpx
import pydantic
import structlog

from .errors import (
    DecodeError,
    InvalidArgumentError,
    NoActiveSessionError,
    SessionConflictError,
    Szene1Error,
    TransportError,
    UnsupportedMethodError,
)
from .paths import resolve_path
from .response import field_text, find_api_error, parse_document
from .signing import hash_password, sign
from .transport import HttpxTransport, Transport
from .types import SUPPORTED_HTTP_METHODS, ApiCall, ClientConfig, Session

logger = structlog.get_logger(__name__)

LOGIN_PATH = "user/login"
LOGOUT_PATH = "user/logout"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

SESSION_FIELDS = ("username", "userid", "authtoken")

HTTP_ERROR_STATUSES = range(400, 600)


def _param_text(value: Any) -> str:
    """Render a parameter value as the service expects it.

    None is empty, booleans are "1" or empty, anything else goes through str().
    """
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    return str(value)


class ApiClient:
    """Client for the Szene1 XML REST API.

    Every request carries the configured API key and a per-request auth
    secret; once logged in, the session's auth token is attached as well.
    GET parameters travel as ``/name/value`` path segments, POST and PUT
    parameters as a form-encoded body.

    The session is plain instance state without locking. Share an instance
    between threads only behind external synchronisation. Can be used as a
    context manager for automatic cleanup.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        session: Session | Mapping[str, Any] | None = None,
        transport: Transport | None = None,
    ):
        """Initialize the API client.

        Args:
            config: Base URL, credentials and timeout (defaults apply if omitted).
            session: Previously persisted session to restore.
            transport: HTTP transport (default: a new HttpxTransport).

        Raises:
            InvalidArgumentError: If ``session`` is not a well-formed session.
        """
        self._config = config or ClientConfig()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport()
        self._session: Session | None = None
        if session is not None:
            self.set_session(session)

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the transport if this client created it."""
        if self._owns_transport:
            self._transport.close()

    # Configuration

    @property
    def config(self) -> ClientConfig:
        """Current configuration; replaced wholesale by the setters."""
        return self._config

    def _update_config(self, **changes: Any) -> "ApiClient":
        self._config = ClientConfig.model_validate(
            {**self._config.model_dump(), **changes},
        )
        return self

    def set_base_url(self, url: str) -> "ApiClient":
        """Point the client at another API host. Trailing slashes are dropped."""
        return self._update_config(base_url=url)

    def set_api_key(self, key: str) -> "ApiClient":
        """Replace the API key used for signing."""
        return self._update_config(api_key=key)

    def set_api_secret(self, secret: str) -> "ApiClient":
        """Replace the API secret used for signing."""
        return self._update_config(api_secret=secret)

    # Session state

    @property
    def has_session(self) -> bool:
        """Whether a login session is currently held."""
        return self._session is not None

    def get_session(self) -> Session | None:
        """Return the held session, or None when logged out.

        Sessions are immutable, so the returned value can be persisted and
        later passed to :meth:`set_session` on this or another client.
        """
        return self._session

    def set_session(self, session: Session | Mapping[str, Any]) -> "ApiClient":
        """Replace the held session, e.g. to restore a persisted one.

        Args:
            session: A Session, or a mapping with ``username``, ``userid``
                and ``authtoken`` (attribute names are accepted too).

        Raises:
            InvalidArgumentError: If the value is not a well-formed session.
        """
        if isinstance(session, Session):
            self._session = session
            return self
        if not isinstance(session, Mapping):
            msg = f"Session must be a Session or a mapping, got {type(session).__name__}"
            raise InvalidArgumentError(msg)
        try:
            self._session = Session.model_validate(dict(session))
        except pydantic.ValidationError as exc:
            msg = f"Malformed session record: {exc.error_count()} invalid field(s)"
            raise InvalidArgumentError(msg) from exc
        return self

    def clear_session(self) -> "ApiClient":
        """Forget the held session without contacting the service."""
        self._session = None
        return self

    # Request building

    def build_call(
        self,
        path: str | Sequence[str],
        params: Mapping[str, Any] | None = None,
        http_method: str = "GET",
    ) -> ApiCall:
        """Resolve a call and add the authentication parameters.

        Raises:
            UnsupportedMethodError: If the verb is not GET, POST or PUT.
            MalformedPathError: If ``path`` is not a section/method reference.
        """
        http_method = http_method.upper()
        if http_method not in SUPPORTED_HTTP_METHODS:
            msg = f"Unsupported HTTP method: {http_method}"
            raise UnsupportedMethodError(msg)

        section, method = resolve_path(path)

        call_params = {
            str(name): _param_text(value) for name, value in (params or {}).items()
        }
        call_params["apikey"] = self._config.api_key
        call_params["authsecret"] = sign(
            section,
            method,
            self._config.api_key,
            self._config.api_secret,
        )
        if self._session is not None:
            call_params["authtoken"] = self._session.auth_token

        return ApiCall(
            section=section,
            method=method,
            params=call_params,
            http_method=http_method,
        )

    def build_request(
        self,
        call: ApiCall,
    ) -> tuple[str, bytes | None, dict[str, str]]:
        """Lay out a call as URL, body and headers.

        Returns:
            Tuple of (url, body, headers). GET requests have no body.
        """
        url = self._config.base_url + call.path
        if call.http_method == "GET":
            url += "".join(
                f"/{name}/{quote_plus(value, safe='')}"
                for name, value in call.params.items()
            )
            return url, None, {}

        body = urlencode(call.params).encode("utf-8")
        return url, body, {"Content-type": FORM_CONTENT_TYPE}

    # Dispatch

    def call(
        self,
        path: str | Sequence[str],
        params: Mapping[str, Any] | None = None,
        http_method: str = "GET",
    ) -> dict[str, Any]:
        """Call an API method and return its decoded payload.

        Args:
            path: ``"section/method"`` or ``(section, method)``.
            params: Method parameters; values are sent as strings, booleans
                as "1" or empty and None as empty.
            http_method: ``GET``, ``POST`` or ``PUT``.

        Returns:
            Children of the response document element as nested dicts.

        Raises:
            MalformedPathError: If ``path`` is not a section/method reference.
            UnsupportedMethodError: If the verb is not supported.
            TransportError: If the service answers with a 4xx/5xx status.
            DecodeError: If the body is not a valid XML document.
            ApiError: If the service reports an application error. For an
                invalid auth token the session is cleared before raising.
            httpx.RequestError: If the request cannot be sent at all (or
                OSError from a transport built on plain sockets).
        """
        api_call = self.build_call(path, params, http_method)
        url, body, headers = self.build_request(api_call)

        start_time = time.time()
        try:
            logger.debug(
                "Making API request",
                section=api_call.section,
                method=api_call.method,
                http_method=api_call.http_method,
                authenticated=self._session is not None,
            )
            response = self._transport.send(
                api_call.http_method,
                url,
                content=body,
                headers=headers,
                timeout=self._config.timeout,
            )
        except (httpx.RequestError, OSError):
            duration = time.time() - start_time
            logger.exception(
                "API request failed",
                section=api_call.section,
                method=api_call.method,
                duration_seconds=round(duration, 3),
            )
            raise

        duration = time.time() - start_time
        logger.debug(
            "API request completed",
            status_code=response.status_code,
            duration_seconds=round(duration, 3),
        )

        if response.status_code in HTTP_ERROR_STATUSES:
            raise TransportError(response.status_code, response.reason_phrase)

        payload = parse_document(response.content)
        error = find_api_error(payload)
        if error is not None:
            if error.is_invalid_token and self._session is not None:
                logger.warning(
                    "Auth token rejected, clearing session",
                    username=self._session.username,
                )
                self._session = None
            raise error
        return payload

    def get(
        self,
        path: str | Sequence[str],
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call an API method with GET."""
        return self.call(path, params, "GET")

    def post(
        self,
        path: str | Sequence[str],
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call an API method with POST."""
        return self.call(path, params, "POST")

    def put(
        self,
        path: str | Sequence[str],
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call an API method with PUT."""
        return self.call(path, params, "PUT")

    # Login / logout

    def login(self, username: str, password: str) -> Session:
        """Log a user in and hold the returned session.

        The password is sent as its MD5 hex digest, never in plaintext.

        Args:
            username: Account name.
            password: Plaintext password.

        Returns:
            The new session.

        Raises:
            InvalidArgumentError: If username or password is empty.
            SessionConflictError: If a session is already held.
            DecodeError: If the response lacks the session fields.
            ApiError: If the service rejects the login.
        """
        if not username or not password:
            msg = "No valid username or password given"
            raise InvalidArgumentError(msg)
        if self._session is not None:
            msg = (
                f"Already logged in as {self._session.username!r}; "
                "log out before logging in again"
            )
            raise SessionConflictError(msg)

        payload = self.call(
            LOGIN_PATH,
            {"username": username, "password": hash_password(password)},
        )

        fields = {
            key: field_text(payload, key) for key in SESSION_FIELDS if key in payload
        }
        try:
            session = Session.model_validate(fields)
        except pydantic.ValidationError as exc:
            missing = ", ".join(key for key in SESSION_FIELDS if key not in fields)
            msg = f"Login response lacks session fields: {missing}"
            raise DecodeError(msg) from exc

        self._session = session
        logger.info("Logged in", username=session.username, user_id=session.user_id)
        return session

    def logout(self) -> None:
        """End the held session.

        The ``user/logout`` call is best effort: if it fails, the failure is
        logged and the session is dropped locally all the same.

        Raises:
            NoActiveSessionError: If no session is held.
        """
        if self._session is None:
            msg = "No valid session"
            raise NoActiveSessionError(msg)

        session = self._session
        try:
            self.call(LOGOUT_PATH, {"authtoken": session.auth_token})
        except (Szene1Error, httpx.HTTPError, OSError):
            logger.warning(
                "Logout request failed, dropping session locally",
                username=session.username,
                exc_info=True,
            )
        finally:
            self._session = None
        logger.info("Logged out", username=session.username)
