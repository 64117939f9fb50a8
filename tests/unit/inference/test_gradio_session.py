"""
Unit tests for the gradio_client-backed session.

The Gradio Client itself is patched; only the adapter logic is exercised.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from tryon_gateway.inference.gradio_session import (
    GradioSession,
    connect_gradio,
    gradio_session_factory,
    suffix_for,
)


@pytest.mark.parametrize(
    "mime_type, suffix",
    [("image/png", ".png"), ("image/jpeg", ".jpg"), ("image/jpg", ".jpg"), ("x-unknown/zzz", ".bin")],
)
def test_suffix_for(mime_type, suffix):
    assert suffix_for(mime_type) == suffix


def test_stage_writes_temp_files(sample_inputs):
    session = GradioSession(MagicMock())

    with patch("tryon_gateway.inference.gradio_session.handle_file", side_effect=lambda p: {"path": p}):
        with session.stage(sample_inputs) as handles:
            front = Path(handles["front"]["path"])
            garment = Path(handles["garment"]["path"])

            assert front.name == "front.png"
            assert front.read_bytes() == sample_inputs["front"].data
            assert garment.read_bytes() == sample_inputs["garment"].data

    # Temp files only live for the duration of the call
    assert not front.exists()
    assert not garment.exists()


@pytest.mark.asyncio
async def test_call_runs_predict_with_api_name():
    client = MagicMock()
    client.predict.return_value = [{"url": "https://space.example/out.png"}]
    session = GradioSession(client)

    result = await session.call("/tryon", ["a", "b", 40])

    client.predict.assert_called_once_with("a", "b", 40, api_name="/tryon")
    assert result == [{"url": "https://space.example/out.png"}]


@pytest.mark.asyncio
async def test_connect_gradio():
    with patch("tryon_gateway.inference.gradio_session.Client") as client_cls:
        session = await connect_gradio("yisol/IDM-VTON", token="hf_test")

    client_cls.assert_called_once_with(
        "yisol/IDM-VTON",
        hf_token="hf_test",
        download_files=False,
        verbose=False,
    )
    assert isinstance(session, GradioSession)


@pytest.mark.asyncio
async def test_session_factory_uses_settings(test_settings):
    factory = gradio_session_factory(test_settings)

    with patch("tryon_gateway.inference.gradio_session.Client") as client_cls:
        await factory()

    assert client_cls.call_args.args == (test_settings.GRADIO_URL,)
    assert client_cls.call_args.kwargs["hf_token"] == test_settings.HF_TOKEN
