"""Named-client registry.

Each named client has its own pipeline, so a failing account trips only
its own breaker. Clients are created lazily from configuration the first
time they are requested.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

import httpx

from cfclient.client import DEFAULT_CLIENT_NAME, CloudflareClient
from cfclient.config.loader import load_client_options
from cfclient.config.options import ClientOptions
from cfclient.core.resilience.models import PipelineStatus

logger = logging.getLogger(__name__)

OptionsLoader = Callable[[Optional[str], Optional[str]], ClientOptions]


class CloudflareClientFactory:
    """Thread-safe registry of named CloudflareClient instances.

    Args:
        loader: Loads options for a client name; ``load_client_options``
            by default.
        config_file: Explicit config file passed to the loader.
        transport: Transport shared by every client created (tests).
    """

    def __init__(
        self,
        loader: OptionsLoader = load_client_options,
        config_file: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._loader = loader
        self._config_file = config_file
        self._transport = transport
        self._clients: Dict[str, CloudflareClient] = {}
        self._lock = threading.Lock()

    def create_client(self, name: str, options: ClientOptions) -> CloudflareClient:
        """Register a client built from explicit options.

        Raises:
            ValueError: A client with this name already exists.
            ConfigurationError: ``options`` are invalid.
        """
        with self._lock:
            if name in self._clients:
                raise ValueError(f"Client '{name}' is already registered")
            client = CloudflareClient(options, name=name, transport=self._transport)
            self._clients[name] = client
        logger.info("Registered Cloudflare client '%s'", name)
        return client

    def get_client(self, name: str = DEFAULT_CLIENT_NAME) -> CloudflareClient:
        """Return the named client, creating it from configuration on first use."""
        with self._lock:
            client = self._clients.get(name)
            if client is None:
                options = self._loader(
                    self._config_file, None if name == DEFAULT_CLIENT_NAME else name
                )
                client = CloudflareClient(options, name=name, transport=self._transport)
                self._clients[name] = client
                logger.info("Created Cloudflare client '%s' from configuration", name)
            return client

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._clients)

    def status(self) -> Dict[str, PipelineStatus]:
        """Pipeline status for every registered client."""
        with self._lock:
            clients = dict(self._clients)
        return {name: client.status() for name, client in clients.items()}

    async def aclose(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.aclose()


# Module-level singleton
_client_factory: Optional[CloudflareClientFactory] = None
_client_factory_lock = threading.Lock()


def get_client_factory() -> CloudflareClientFactory:
    """Get the singleton CloudflareClientFactory instance.

    Thread-safe via double-checked locking.
    """
    global _client_factory
    if _client_factory is None:
        with _client_factory_lock:
            if _client_factory is None:
                _client_factory = CloudflareClientFactory()
    return _client_factory


def reset_client_factory_for_testing() -> None:
    """Reset the singleton factory for test isolation."""
    global _client_factory
    with _client_factory_lock:
        _client_factory = CloudflareClientFactory()
