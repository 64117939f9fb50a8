"""
Remote session backed by gradio_client.

The Gradio client is synchronous: the handshake and every prediction run in
a worker thread so the event loop keeps serving other requests. Files are
returned as FileData mappings (`download_files=False`) so result URLs reach
the normalizer instead of being downloaded by the SDK.
"""

import asyncio
import mimetypes
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Sequence

import structlog
from gradio_client import Client, handle_file

from tryon_gateway.config import Settings
from tryon_gateway.models.inputs import InputImage

logger = structlog.get_logger(__name__)

MIME_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


def suffix_for(mime_type: str) -> str:
    """File suffix for a MIME type, `.bin` when unknown."""
    return MIME_SUFFIXES.get(mime_type) or mimetypes.guess_extension(mime_type) or ".bin"


class GradioSession:
    """A connected gradio_client.Client."""

    def __init__(self, client: Client):
        self._client = client

    @contextmanager
    def stage(self, inputs: Mapping[str, InputImage]) -> Iterator[dict[str, Any]]:
        """Write each payload to a temp file and wrap it as a Gradio file handle."""
        with tempfile.TemporaryDirectory(prefix="tryon-") as workdir:
            handles: dict[str, Any] = {}
            for role, image in inputs.items():
                path = Path(workdir) / f"{role}{suffix_for(image.mime_type)}"
                path.write_bytes(image.data)
                handles[role] = handle_file(str(path))
            yield handles

    async def call(self, api_name: str, args: Sequence[Any]) -> Any:
        logger.info("Calling remote procedure", api_name=api_name, arg_count=len(args))
        return await asyncio.to_thread(self._client.predict, *args, api_name=api_name)


async def connect_gradio(src: str, token: Optional[str] = None) -> GradioSession:
    """Open a session to a Gradio Space or URL (blocking handshake, off-loop)."""
    client = await asyncio.to_thread(
        Client,
        src,
        hf_token=token,
        download_files=False,
        verbose=False,
    )
    return GradioSession(client)


def gradio_session_factory(settings: Settings):
    """Session factory bound to the configured Space and access token."""

    async def factory() -> GradioSession:
        return await connect_gradio(settings.GRADIO_URL, settings.HF_TOKEN)

    return factory
