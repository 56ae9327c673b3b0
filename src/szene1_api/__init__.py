"""Szene1 API client.

Client library for the Szene1 (Weblife1) XML REST API: signed requests,
per-user login sessions, and XML responses mapped to payloads or typed errors.

Exports:
    ApiClient: Signed request dispatcher with session lifecycle.
    ApiCall: Resolved section/method call with its parameters.
    ClientConfig: Validated client configuration.
    Session: Logged-in user record.
    create_client: Build a configured client from a JSON config file.
    load_config: Read a ClientConfig from a JSON config file.
    errors: Module containing the exception taxonomy.
"""

from . import errors
from .client import ApiClient
from .config import create_client, load_config
from .types import ApiCall, ClientConfig, Session

__version__ = "0.1.0"

__all__ = [
    "ApiCall",
    "ApiClient",
    "ClientConfig",
    "Session",
    "create_client",
    "errors",
    "load_config",
]
