"""Domain initialization and configuration."""

import os

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging(
    log_dir=None if os.getenv("PROTEAN_ENV") == "test" else "logs",
    log_file_prefix="storefront",
)

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")


def setting(name: str):
    """Read a value from the ``[custom]`` section of ``domain.toml``."""
    return storefront.config["custom"][name]
