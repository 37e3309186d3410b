"""NPM registry client: fetch a package document straight from the registry API."""

from __future__ import annotations

import logging
import os
import urllib.parse
from typing import Mapping, Optional

from constants import Constants
from common.errors import ExternalToolError
from common.http_client import async_get
from common.logging_utils import extra_context, safe_url

logger = logging.getLogger(__name__)


def registry_url_from_env(env: Optional[Mapping[str, str]] = None) -> str:
    """Return the registry base URL, always ending in a slash.

    Looks at ``LATESTVER_REGISTRY`` then npm's own ``npm_config_registry``,
    first in ``env`` and then in the process environment.
    """
    sources = [env or {}, os.environ]
    for source in sources:
        for key in (Constants.ENV_REGISTRY, Constants.ENV_NPM_CONFIG_REGISTRY):
            value = source.get(key)
            if value and value.strip():
                return value.strip().rstrip("/") + "/"
    return Constants.REGISTRY_URL_NPM


def package_url(package_name: str, registry_url: Optional[str] = None) -> str:
    """Build the document URL for ``package_name``.

    Scoped names keep their leading ``@`` but the separating slash is
    encoded (``@scope/name`` -> ``@scope%2Fname``), as the registry expects.
    """
    base = (registry_url or Constants.REGISTRY_URL_NPM).rstrip("/") + "/"
    if package_name.startswith("@"):
        encoded = "@" + urllib.parse.quote(package_name[1:], safe="")
    else:
        encoded = urllib.parse.quote(package_name, safe="")
    return base + encoded


async def fetch_package_document(
    package_name: str,
    *,
    registry_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """Fetch the abbreviated package document and return the raw JSON text.

    Raises:
        ExternalToolError: On transport failure or any non-200 status.
    """
    url = package_url(package_name, registry_url)
    status, _, text = await async_get(
        url,
        headers={"Accept": Constants.NPM_ABBREVIATED_ACCEPT},
        timeout=timeout,
    )
    if status == 200:
        return text

    logger.warning(
        "Registry lookup failed",
        extra=extra_context(
            event="http_response",
            component="client",
            outcome="handled_non_2xx" if status else "transport_error",
            status_code=status,
            target=safe_url(url),
            package_manager="npm",
        ),
    )
    if status == 0:
        raise ExternalToolError(f"Registry request for '{package_name}' failed: {text}", output=text)
    raise ExternalToolError(
        f"Registry returned HTTP {status} for '{package_name}'",
        output=text,
        returncode=status,
    )
