"""Client configuration: options, parsing helpers and the layered loader."""

from cfclient.config.loader import CONFIG_FILE_ENV_VAR, load_client_options
from cfclient.config.options import DEFAULT_API_BASE_URL, ClientOptions

__all__ = [
    "CONFIG_FILE_ENV_VAR",
    "DEFAULT_API_BASE_URL",
    "ClientOptions",
    "load_client_options",
]
