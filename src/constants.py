"""Constants used in the project."""

from enum import Enum


class LookupSources(Enum):
    """Lookup strategies raced against each other when resolving a version.

    Args:
        Enum (string): Strategy identifiers used in logs and errors.
    """

    NPM_SHOW = "npm-show"
    NPM_VIEW = "npm-view"
    REGISTRY_API = "registry-api"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    NPM_COMMAND = "npm"
    NPM_ABBREVIATED_ACCEPT = (
        "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8, */*"
    )
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for registry HTTP requests

    DEFAULT_SELECTOR = "latest"
    DEFAULT_CONCURRENCY = 1
    RESULT_CACHE_TTL_SEC = 300

    # Environment overrides
    ENV_LOG_LEVEL = "LATESTVER_LOG_LEVEL"
    ENV_NPM_COMMAND = "LATESTVER_NPM_COMMAND"
    ENV_REGISTRY = "LATESTVER_REGISTRY"
    ENV_NPM_CONFIG_REGISTRY = "npm_config_registry"
