"""
Integration tests for the Try-On Gateway.

Test components together without a real remote service:
- API endpoints (FastAPI TestClient with a scripted remote session)
- Gate + client + normalizer through TryOnService
"""
