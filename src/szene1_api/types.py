"""Data types for the Szene1 API client.

Pydantic models for the client configuration, the login session record and
the per-call request description. Session fields accept both the wire names
used by the service (``userid``, ``authtoken``) and the Python attribute names.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BASE_URL = "http://rest.api.weblife1.com"

DEFAULT_TIMEOUT = 10.0

SUPPORTED_HTTP_METHODS = ("GET", "POST", "PUT")


class ClientConfig(BaseModel):
    """Connection and credential settings for the API client.

    Frozen; the client's setters swap in an updated copy. An empty key or
    secret is accepted here and rejected by the service.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(
        DEFAULT_BASE_URL,
        description="Base URL for all API requests",
    )
    api_key: str = Field("", description="API key identifying the application")
    api_secret: str = Field(
        "",
        description="API secret, only ever sent hashed",
        repr=False,
    )
    timeout: float = Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    log_level: str = Field("INFO", description="Logging level")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.rstrip("/")
        if not value:
            msg = "base_url cannot be empty"
            raise ValueError(msg)
        return value


class Session(BaseModel):
    """A logged-in user as returned by ``user/login``.

    Dump with ``model_dump(by_alias=True)`` to get the wire-shaped mapping
    that ``ApiClient.set_session`` accepts back.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    username: str
    user_id: str = Field(alias="userid")
    auth_token: str = Field(alias="authtoken", repr=False)


class ApiCall(BaseModel):
    """A single resolved API invocation, built fresh for every request."""

    section: str
    method: str
    params: dict[str, str] = Field(default_factory=dict)
    http_method: str = "GET"

    @property
    def path(self) -> str:
        """Endpoint path relative to the base URL."""
        return f"/{self.section}/{self.method}"
