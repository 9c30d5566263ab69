"""Client for the remote vision service that reads vehicle identifiers."""

from __future__ import annotations

import json
import logging
from typing import Protocol

import aiohttp
from pydantic import ValidationError

from pyweighbridge._constants import MANUAL_CHECK_IDENTIFIER, USER_AGENT
from pyweighbridge._redact import redact_for_log
from pyweighbridge.config import WeighbridgeConfig
from pyweighbridge.exceptions import IdentificationError, WeighbridgeConfigError
from pyweighbridge.models.identification import IdentificationResult

_logger = logging.getLogger(__name__)


class Identifier(Protocol):
    """Structural interface for identification backends.

    Implementations must not raise for recognition problems; they report
    them with a sentinel identifier instead.
    """

    async def identify(self, image: bytes) -> IdentificationResult:
        ...


def manual_check(confidence: float = 0.0) -> IdentificationResult:
    return IdentificationResult(identifier=MANUAL_CHECK_IDENTIFIER, confidence=confidence)


def apply_min_confidence(result: IdentificationResult, min_confidence: float) -> IdentificationResult:
    """Downgrade a recognized identifier below *min_confidence* to manual review."""
    if result.is_sentinel or result.confidence >= min_confidence:
        return result
    _logger.info(
        "Identifier %s below confidence floor (%.2f < %.2f), flagging for manual check",
        result.identifier,
        result.confidence,
        min_confidence,
    )
    return manual_check(result.confidence)


def parse_identification_response(text: str) -> IdentificationResult:
    """Parse the service's JSON reply.

    Raises :class:`IdentificationError` when the body is not a JSON object
    or does not validate.
    """
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise IdentificationError(f"Invalid JSON from identification service: {text[:200]}") from exc
    if not isinstance(body, dict):
        raise IdentificationError("Identification response is not an object")
    _logger.debug("Identification response %s", redact_for_log(body))
    try:
        return IdentificationResult.model_validate(body)
    except ValidationError as exc:
        raise IdentificationError(f"Unexpected identification payload: {exc}") from exc


class HttpIdentificationClient:
    """POST a JPEG still to the vision service and read back the identifier."""

    def __init__(
        self,
        config: WeighbridgeConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        if not config.identification_url:
            raise WeighbridgeConfigError("identification_url is required for HttpIdentificationClient")
        self._url = config.identification_url
        self._api_key = config.identification_api_key
        self._timeout = aiohttp.ClientTimeout(total=config.identification_timeout)
        self._min_confidence = config.min_confidence
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        headers = {
            "content-type": "image/jpeg",
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if self._api_key:
            headers["authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _request(self, image: bytes) -> IdentificationResult:
        headers = self._headers()
        _logger.debug("POST %s headers=%s body=%s", self._url, redact_for_log(headers), redact_for_log(image))
        try:
            async with self._http.post(self._url, data=image, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise IdentificationError(
                        f"HTTP {resp.status} from identification service: {text[:200]}",
                        status_code=resp.status,
                    )
        except IdentificationError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise IdentificationError(f"Identification request failed: {exc}") from exc
        return parse_identification_response(text)

    async def identify(self, image: bytes) -> IdentificationResult:
        """Identify the vehicle in *image*.

        Service failures never propagate: they yield the manual-check
        sentinel so the visit can still be recorded.
        """
        try:
            result = await self._request(image)
        except IdentificationError as exc:
            _logger.warning("Identification failed, using %s: %s", MANUAL_CHECK_IDENTIFIER, exc)
            return manual_check()
        return apply_min_confidence(result, self._min_confidence)


async def identify_safely(identifier: Identifier, image: bytes) -> IdentificationResult:
    """Run any backend, converting an unexpected backend error into a sentinel."""
    try:
        return await identifier.identify(image)
    except (IdentificationError, aiohttp.ClientError, TimeoutError, ValueError) as exc:
        _logger.warning("Identification backend error, using %s: %s", MANUAL_CHECK_IDENTIFIER, exc)
        return manual_check()
