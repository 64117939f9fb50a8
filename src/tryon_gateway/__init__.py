"""
Try-On Gateway: request orchestration for a remote image-synthesis service.

Sits between the HTTP API and a slow, occasionally unreliable virtual try-on
backend (a Gradio Space reached through a session-oriented RPC client):
- RequestGate suppresses duplicate and overly rapid submissions per caller
- InferenceClient keeps a cached remote session, retries with backoff and
  normalizes heterogeneous result shapes into one base64 image payload

Architecture: FastAPI orchestrator + gradio_client session + httpx downloads
"""

__version__ = "0.1.0"
