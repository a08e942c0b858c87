"""Catalog of known domain extensions used to expand broad (RZDB) rules.

The catalog is the union of the root-zone extensions and the public
suffixes. It is populated at most once, from two injected providers, the
first time a broad rule needs it.
"""

import logging
from collections.abc import Mapping
from socket import timeout
from typing import Callable, Dict, Iterable, List, Optional

from wlruler.constants import PUBLIC_SUFFIX_DB_URL, ROOT_ZONE_DB_URL

from .fetcher import fetch_json
from .models import CatalogFetchError

_LOGGER = logging.getLogger(__name__)

Provider = Callable[[], Mapping]


class ExtensionCatalog:
    """Populate-once, ordered collection of extension strings."""

    def __init__(
        self,
        root_zone_provider: Optional[Provider] = None,
        public_suffix_provider: Optional[Provider] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or _LOGGER
        self.root_zone_provider = root_zone_provider or http_root_zone_provider
        self.public_suffix_provider = (
            public_suffix_provider or http_public_suffix_provider
        )
        self._extensions: Optional[List[str]] = None

    @property
    def is_populated(self) -> bool:
        """Return True once the providers have been queried successfully."""
        return self._extensions is not None

    def get_extensions(self) -> List[str]:
        """Return the known extensions, fetching them on first use.

        Root-zone extensions come first (mapping keys), followed by the
        public suffixes (mapping values). Duplicates are kept.

        Raises:
            CatalogFetchError: If either provider fails; nothing is cached
                in that case.
        """
        if self._extensions is not None:
            return self._extensions

        self.logger.debug("Populating extension catalog")

        root_zone = self._call_provider(self.root_zone_provider, "root-zone")
        public_suffix = self._call_provider(
            self.public_suffix_provider, "public-suffix"
        )

        extensions: List[str] = [str(extension) for extension in root_zone]
        for suffixes in public_suffix.values():
            extensions.extend(str(suffix) for suffix in _as_list(suffixes))

        self._extensions = extensions

        self.logger.debug(
            "Extension catalog populated",
            extra={"extensions": len(extensions)},
        )
        return extensions

    def _call_provider(self, provider: Provider, name: str) -> Mapping:
        """Run a provider and validate the mapping it returns."""
        self.logger.debug("Querying extension feed", extra={"feed": name})
        try:
            mapping = provider()
        except (timeout, OSError, ValueError) as e:
            self.logger.error(
                "Failed to fetch extension feed",
                extra={"feed": name, "error": str(e)},
            )
            raise CatalogFetchError(f"failed to fetch {name} feed: {e}") from e

        if not isinstance(mapping, Mapping):
            raise CatalogFetchError(
                f"unexpected {name} feed format: {type(mapping).__name__}"
            )
        return mapping


def _as_list(value: object) -> Iterable:
    if isinstance(value, (list, tuple)):
        return value
    if value is None:
        return []
    return [value]


def http_root_zone_provider() -> Mapping:
    """Fetch the root-zone database (``{extension: metadata}``)."""
    return _fetch_mapping(ROOT_ZONE_DB_URL)


def http_public_suffix_provider() -> Mapping:
    """Fetch the public-suffix database (``{registrable: [suffix, ...]}``)."""
    return _fetch_mapping(PUBLIC_SUFFIX_DB_URL)


def _fetch_mapping(url: str) -> Mapping:
    data = fetch_json(url)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object from {url}")
    return data


def static_provider(mapping: Mapping) -> Provider:
    """Return a provider serving a fixed mapping.

    Useful for offline runs and deterministic catalogs::

        catalog = ExtensionCatalog(
            static_provider({"de": None, "com": None}),
            static_provider({}),
        )
    """
    frozen: Dict = dict(mapping)

    def provider() -> Mapping:
        return frozen

    return provider
