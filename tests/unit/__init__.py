"""
Unit tests for the Try-On Gateway.

Test individual components in isolation:
- Request gate (duplicate and cooldown rules, concurrency, release)
- Session cache (reuse, expiry, construction timeout)
- Inference client (retry loop, backoff, parameter clamping)
- Result normalization (envelope shapes, downloads, base64 checks)
- URL downloader (fixed-delay retries, size limit)
- Upload validation and data models
"""
