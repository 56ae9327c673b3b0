"""Configuration loading and logging setup for the Szene1 API client."""

import json
import logging
import os
import pathlib
from typing import Any

import structlog

from .client import ApiClient
from .transport import Transport
from .types import ClientConfig

CONFIG_ENV_VAR = "SZENE1_API_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "szene1.json"

logger = structlog.get_logger(__name__)


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _read_json(config_path: str | pathlib.Path) -> dict[str, Any]:
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        return json.load(f)


def load_config(config_path: str | pathlib.Path) -> ClientConfig:
    """Load client configuration from a JSON file.

    Keys outside :class:`ClientConfig` (such as a persisted ``session``)
    are ignored here.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the settings are invalid.
    """
    data = _read_json(config_path)
    data.pop("session", None)
    return ClientConfig(**data)


def create_client(
    config_path: str | pathlib.Path | None = None,
    transport: Transport | None = None,
) -> ApiClient:
    """Create a configured client from a config path or environment default.

    A ``session`` object in the file (``username``, ``userid``,
    ``authtoken``) is restored into the new client.

    Args:
        config_path: JSON config file; falls back to ``$SZENE1_API_CONFIG_PATH``
            and then ``szene1.json``.
        transport: Optional transport passed to the client.

    Returns:
        Ready-to-use ApiClient.
    """
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    data = _read_json(resolved_path)
    session = data.pop("session", None)
    config = ClientConfig(**data)
    configure_logging(config.log_level)

    client = ApiClient(config=config, session=session, transport=transport)
    logger.info(
        "Created API client",
        base_url=config.base_url,
        restored_session=client.has_session,
    )
    return client
