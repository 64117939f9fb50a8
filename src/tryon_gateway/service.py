"""
Long-lived service object owning the request gate and the inference client.

Built once at application startup and handed to request handlers through
dependency injection, so the in-memory state (pending submissions, cached
session) has an explicit owner and an explicit reset point for tests.
"""

from typing import Mapping, Optional

import structlog

from tryon_gateway.config import Settings
from tryon_gateway.gate.request_gate import RequestGate, payload_signature
from tryon_gateway.inference.base_client import BaseInferenceClient
from tryon_gateway.inference.client import InferenceClient
from tryon_gateway.inference.downloader import ImageDownloader
from tryon_gateway.inference.gradio_session import gradio_session_factory
from tryon_gateway.models.inputs import InferenceParams, InputImage
from tryon_gateway.models.outputs import NormalizedResult

logger = structlog.get_logger(__name__)


class TryOnService:
    """
    Orchestrates one try-on submission: gate, then inference.

    Attributes:
        gate: Duplicate and rapid-resubmission guard
        client: Remote inference client
        downloader: Fetches source images supplied by URL
    """

    def __init__(
        self,
        gate: RequestGate,
        client: BaseInferenceClient,
        downloader: ImageDownloader,
    ):
        self.gate = gate
        self.client = client
        self.downloader = downloader

    @classmethod
    def from_settings(cls, settings: Settings) -> "TryOnService":
        downloader = ImageDownloader.from_settings(settings)
        client = InferenceClient.from_settings(
            settings,
            session_factory=gradio_session_factory(settings),
            downloader=downloader,
        )
        return cls(RequestGate.from_settings(settings), client, downloader)

    async def generate(
        self,
        caller_id: str,
        inputs: Mapping[str, InputImage],
        params: Optional[InferenceParams] = None,
    ) -> NormalizedResult:
        """
        Run a try-on for `caller_id`.

        The gate entry is released on every exit path, so a failed request
        never blocks the caller's next legitimate submission.

        Raises:
            RejectionError: Duplicate or too-rapid submission
            InferenceError: Remote processing failed
        """
        signature = payload_signature(inputs)
        with self.gate.admit(caller_id, signature):
            logger.info(
                "Processing try-on submission",
                caller_id=caller_id,
                signature=signature[:12],
                roles=sorted(inputs),
            )
            return await self.client.submit(inputs, params)

    async def fetch_source(self, url: str, filename: Optional[str] = None) -> InputImage:
        """Download a source image supplied by URL instead of upload."""
        downloaded = await self.downloader.download(url)
        return InputImage(
            data=downloaded.content,
            mime_type=downloaded.content_type,
            filename=filename or url.rsplit("/", 1)[-1],
        )

    def clear_pending(self) -> int:
        return self.gate.clear()

    async def close(self):
        await self.client.close()
        await self.downloader.close()
