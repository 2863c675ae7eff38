"""Configuration error classes."""

from typing import Sequence

from cfclient.core.errors.api import CloudflareError


class ConfigurationError(CloudflareError):
    """Client options failed validation.

    Attributes:
        failures: Every validation problem found, one message each.
    """

    def __init__(self, failures: Sequence[str]):
        self.failures = list(failures)
        super().__init__("Invalid cfclient configuration: " + "; ".join(self.failures))
