"""
Reduction of loosely-typed remote responses to a single base64 image.

The remote procedure answers with a `data` payload of variable shape. It is
first classified into one of the known envelope shapes, then matched
exhaustively, first match wins:

1. Sequence: inspect the first element
   - URL present: download it; if the download fails and the element also
     carries inline `data`, use that instead
   - else inline `data`: use it
2. Object: URL present: download it; else inline `image`: use it
3. String: base64 alphabet: use it; else starts with `http`: download it
4. Anything else: UnrecognizedResultShape

Downloaded bytes are base64-encoded; inline fields are taken as already
encoded. The final string must be pure base64 or InvalidResultEncoding is
raised.
"""

import base64
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

import structlog

from tryon_gateway.inference.downloader import ImageDownloader
from tryon_gateway.inference.exceptions import (
    DownloadError,
    InvalidResultEncoding,
    UnrecognizedResultShape,
)

logger = structlog.get_logger(__name__)

BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/=]+")
URL_PREFIX = "http"


def is_base64(value: str) -> bool:
    """True when `value` only holds base64 alphabet and padding characters."""
    return bool(BASE64_PATTERN.fullmatch(value))


@dataclass(frozen=True)
class ResultItem:
    """A structured element of a sequence response (e.g. Gradio FileData)."""

    url: Optional[str]
    data: Optional[str]


@dataclass(frozen=True)
class SequenceEnvelope:
    """Non-empty list/tuple response; only the first element is used."""

    item: Optional[ResultItem]


@dataclass(frozen=True)
class ObjectEnvelope:
    """Single mapping response."""

    url: Optional[str]
    image: Optional[str]


@dataclass(frozen=True)
class StringEnvelope:
    """Plain string response."""

    value: str


@dataclass(frozen=True)
class UnknownEnvelope:
    """Any payload that fits none of the shapes above."""

    payload_type: str


Envelope = Union[SequenceEnvelope, ObjectEnvelope, StringEnvelope, UnknownEnvelope]


def _text_field(mapping: Mapping, key: str) -> Optional[str]:
    value = mapping.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def parse_envelope(data: Any) -> Envelope:
    """Classify a response payload into its envelope shape."""
    match data:
        case str():
            return StringEnvelope(value=data)
        case Mapping():
            return ObjectEnvelope(url=_text_field(data, "url"), image=_text_field(data, "image"))
        case list() | tuple() if len(data) > 0:
            first = data[0]
            if isinstance(first, Mapping):
                return SequenceEnvelope(
                    item=ResultItem(url=_text_field(first, "url"), data=_text_field(first, "data"))
                )
            return SequenceEnvelope(item=None)
        case _:
            return UnknownEnvelope(payload_type=type(data).__name__)


class ResultNormalizer:
    """
    Turns a remote response payload into a validated base64 string.

    Attributes:
        downloader: Used for every URL the response points to
    """

    def __init__(self, downloader: ImageDownloader):
        self.downloader = downloader

    async def normalize(self, data: Any) -> str:
        """
        Reduce `data` to base64 image content.

        Raises:
            UnrecognizedResultShape: No known shape matched
            InvalidResultEncoding: The extracted value is not pure base64
            DownloadExhausted: A required download failed with no fallback
        """
        envelope = parse_envelope(data)
        logger.debug("Classified result envelope", shape=type(envelope).__name__)

        value = await self._extract(envelope)

        if not is_base64(value):
            logger.error("Result is not valid base64", preview=value[:100])
            raise InvalidResultEncoding(
                "Invalid base64 data received from model",
                details={"shape": type(envelope).__name__, "length": len(value)},
            )
        return value

    async def _extract(self, envelope: Envelope) -> str:
        match envelope:
            case SequenceEnvelope(item=ResultItem(url=str() as url, data=fallback)):
                try:
                    return await self._fetch(url)
                except DownloadError as e:
                    if fallback is None:
                        raise
                    logger.warning(
                        "Result download failed, using inline data field",
                        url=url,
                        error=e.message,
                    )
                    return fallback

            case SequenceEnvelope(item=ResultItem(data=str() as inline)):
                return inline

            case ObjectEnvelope(url=str() as url):
                return await self._fetch(url)

            case ObjectEnvelope(image=str() as image):
                return image

            case StringEnvelope(value=value) if is_base64(value):
                return value

            case StringEnvelope(value=value) if value.startswith(URL_PREFIX):
                return await self._fetch(value)

            case _:
                raise UnrecognizedResultShape(
                    "Could not extract image data from result",
                    details={"shape": type(envelope).__name__},
                )

    async def _fetch(self, url: str) -> str:
        downloaded = await self.downloader.download(url)
        return base64.b64encode(downloaded.content).decode("ascii")
