"""
Unit tests for TryOnService.

Checks that the request gate wraps every submission and is released on all
exit paths.
"""

from unittest.mock import AsyncMock

import pytest

from tryon_gateway.gate.exceptions import DuplicateInFlight, ResubmissionTooSoon
from tryon_gateway.gate.request_gate import RequestGate, payload_signature
from tryon_gateway.inference.base_client import BaseInferenceClient
from tryon_gateway.inference.downloader import DownloadedFile, ImageDownloader
from tryon_gateway.inference.exceptions import ExhaustedRetries
from tryon_gateway.models.inputs import InferenceParams
from tryon_gateway.models.outputs import NormalizedResult
from tryon_gateway.service import TryOnService


@pytest.fixture
def client() -> AsyncMock:
    mock = AsyncMock(spec=BaseInferenceClient)
    mock.submit.return_value = NormalizedResult(image_base64="QUJD")
    return mock


@pytest.fixture
def downloader() -> AsyncMock:
    return AsyncMock(spec=ImageDownloader)


@pytest.fixture
def service(client, downloader, fake_clock) -> TryOnService:
    return TryOnService(RequestGate(clock=fake_clock), client, downloader)


@pytest.mark.asyncio
async def test_generate_submits_and_releases(service, client, sample_inputs):
    params = InferenceParams(garment_description="denim jacket")

    result = await service.generate("alice", sample_inputs, params)

    assert result.image_base64 == "QUJD"
    client.submit.assert_awaited_once_with(sample_inputs, params)
    assert len(service.gate) == 0


@pytest.mark.asyncio
async def test_generate_holds_gate_during_submission(service, client, sample_inputs):
    observed = {}

    async def submit(inputs, params):
        observed["pending"] = service.gate.pending("alice")
        return NormalizedResult(image_base64="QUJD")

    client.submit.side_effect = submit

    await service.generate("alice", sample_inputs)

    assert observed["pending"].signature == payload_signature(sample_inputs)


@pytest.mark.asyncio
async def test_generate_releases_on_failure(service, client, sample_inputs):
    client.submit.side_effect = ExhaustedRetries(3, ConnectionError("down"))

    with pytest.raises(ExhaustedRetries):
        await service.generate("alice", sample_inputs)

    assert service.gate.pending("alice") is None
    # Caller can retry straight away
    client.submit.side_effect = None
    await service.generate("alice", {"front": sample_inputs["garment"], "garment": sample_inputs["front"]})


@pytest.mark.asyncio
async def test_duplicate_payload_rejected(service, client, sample_inputs):
    service.gate.try_acquire("bob", payload_signature(sample_inputs))

    with pytest.raises(DuplicateInFlight):
        await service.generate("alice", sample_inputs)

    client.submit.assert_not_called()
    assert service.gate.pending("bob") is not None


@pytest.mark.asyncio
async def test_rapid_resubmission_rejected(service, client, sample_inputs):
    service.gate.try_acquire("alice", "some-other-signature")

    with pytest.raises(ResubmissionTooSoon):
        await service.generate("alice", sample_inputs)

    client.submit.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_source(service, downloader):
    downloader.download.return_value = DownloadedFile(content=b"jpeg", content_type="image/jpeg")

    image = await service.fetch_source("https://cdn.example/look/front.jpg")

    assert image.data == b"jpeg"
    assert image.mime_type == "image/jpeg"
    assert image.filename == "front.jpg"


def test_clear_pending(service):
    service.gate.try_acquire("alice", "sig-1")
    service.gate.try_acquire("bob", "sig-2")

    assert service.clear_pending() == 2


@pytest.mark.asyncio
async def test_close(service, client, downloader):
    await service.close()

    client.close.assert_awaited_once()
    downloader.close.assert_awaited_once()


def test_from_settings(test_settings):
    service = TryOnService.from_settings(test_settings)

    assert service.gate.duplicate_window == test_settings.DUPLICATE_WINDOW
    assert service.client.normalizer.downloader is service.downloader
