"""Client options.

One ClientOptions instance configures one client: where to send
requests, which credential to attach and how the resilience pipeline
behaves.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cfclient.config.parsing import _parse_bool, _resilience_from_toml_dict
from cfclient.core.errors import ConfigurationError
from cfclient.core.resilience.config import ResilienceConfig

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.cloudflare.com/client/v4/"
LOG_HANDLER_NAME = "cfclient"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class ClientOptions:
    """Options for one Cloudflare client.

    Attributes:
        api_token: Bearer token attached to every request.
        account_id: Default account for account-scoped resources.
        api_base_url: API root; resource paths are resolved against it.
        log_level: Level applied to the ``cfclient`` logger tree.
        structured_logging: Emit JSON-style log lines.
        resilience: Pipeline tunables.
    """

    api_token: str = ""
    account_id: Optional[str] = None
    api_base_url: str = DEFAULT_API_BASE_URL
    log_level: str = "INFO"
    structured_logging: bool = False
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)

    @classmethod
    def from_toml_dict(
        cls,
        data: Dict[str, Any],
        base: Optional["ClientOptions"] = None,
        section: str = "cloudflare",
    ) -> "ClientOptions":
        """Create options from a ``[cloudflare]`` (or named client) table.

        Args:
            data: Dict from TOML parsing
            base: Options the table is layered on top of
            section: Config path of the table, used in error messages

        Returns:
            ClientOptions instance
        """
        options = base or cls()
        api_token = str(data.get("api_token", options.api_token))
        account_id = data.get("account_id", options.account_id)
        resilience = options.resilience
        if isinstance(data.get("resilience"), dict):
            resilience = _resilience_from_toml_dict(
                data["resilience"], resilience, section=f"{section}.resilience"
            )

        return cls(
            api_token=api_token,
            account_id=str(account_id) if account_id is not None else None,
            api_base_url=str(data.get("api_base_url", options.api_base_url)),
            log_level=str(data.get("log_level", options.log_level)).upper(),
            structured_logging=_parse_bool(
                data.get("structured_logging", options.structured_logging)
            ),
            resilience=resilience,
        )

    def validate(self, name: Optional[str] = None) -> List[str]:
        """Return every problem found, each prefixed with its config path."""
        section = f"cloudflare.clients.{name}" if name else "cloudflare"
        failures: List[str] = []
        if not self.api_token.strip():
            failures.append(f"{section}.api_token: an API token is required")
        if not self.api_base_url.strip():
            failures.append(f"{section}.api_base_url: must not be empty")
        elif not self.api_base_url.startswith(("http://", "https://")):
            failures.append(f"{section}.api_base_url: must be an http(s) URL")
        if self.log_level not in _VALID_LOG_LEVELS:
            failures.append(f"{section}.log_level: unknown level '{self.log_level}'")
        for problem in self.resilience.validate():
            failures.append(f"{section}.resilience.{problem}")
        return failures

    def raise_if_invalid(self, name: Optional[str] = None) -> None:
        """Raise ConfigurationError listing every validation failure."""
        failures = self.validate(name)
        if failures:
            raise ConfigurationError(failures)

    def setup_logging(self) -> None:
        """Configure the ``cfclient`` logger tree based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        handler.set_name(LOG_HANDLER_NAME)

        root_logger = logging.getLogger("cfclient")
        root_logger.setLevel(level)
        # Repeated calls replace the handler installed by an earlier call
        for existing in list(root_logger.handlers):
            if existing.get_name() == LOG_HANDLER_NAME:
                root_logger.removeHandler(existing)
        root_logger.addHandler(handler)
