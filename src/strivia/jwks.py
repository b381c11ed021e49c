"""Resolve key IDs against a remote JSON Web Key Set."""

from __future__ import annotations

import structlog
from httpx import AsyncClient, RequestError
from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from .exceptions import FetchKeysError
from .keypair import PublicKey
from .models.jwks import JWKS

__all__ = ["JWKSResolver"]


class JWKSResolver:
    """Retrieve public keys from a JWKS URL by key ID.

    The key set is fetched each time a key is requested. Caching, if
    wanted, is up to the caller.

    Parameters
    ----------
    url
        URL of the JSON Web Key Set.
    http_client
        The client to use for making requests.
    logger
        Logger to use to report status information.
    """

    def __init__(
        self,
        url: str,
        http_client: AsyncClient,
        logger: BoundLogger | None = None,
    ) -> None:
        self._url = url
        self._http_client = http_client
        self._logger = logger or structlog.get_logger("strivia")

    async def get_key(self, kid: str) -> PublicKey:
        """Get the public key for a key ID.

        Parameters
        ----------
        kid
            The key ID from the token header.

        Returns
        -------
        PublicKey
            The corresponding RSA or Ed25519 public key.

        Raises
        ------
        strivia.exceptions.FetchKeysError
            Raised if the key set could not be retrieved or parsed.
        strivia.exceptions.InvalidKeyError
            Raised if the key could not be converted to a public key.
        strivia.exceptions.UnknownKeyIdError
            Raised if the key set has no key with that ID.
        """
        self._logger.debug("Getting key %s from %s", kid, self._url)
        jwks = await self.get_keys()
        return jwks.find_key_by_kid(kid).to_public_key()

    async def get_keys(self) -> JWKS:
        """Fetch the key set.

        Returns
        -------
        JWKS
            The parsed key set.

        Raises
        ------
        strivia.exceptions.FetchKeysError
            Raised on failure to retrieve or parse the key set.
        """
        try:
            r = await self._http_client.get(self._url)
        except RequestError as e:
            msg = f"Cannot retrieve keys from {self._url}"
            raise FetchKeysError(msg) from e
        if r.status_code != 200:
            reason = f"{r.status_code} {r.reason_phrase}"
            msg = f"Cannot retrieve keys from {self._url}: {reason}"
            raise FetchKeysError(msg)

        try:
            return JWKS.model_validate_json(r.content)
        except ValidationError as e:
            msg = f"No valid keys property in JWKS metadata for {self._url}"
            raise FetchKeysError(msg) from e
