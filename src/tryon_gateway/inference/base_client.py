"""
Abstract base client for remote image inference.

Defines the interface the service layer depends on, so the concrete backend
(a Gradio Space today) can be swapped without touching the request gate or
the HTTP layer.
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional

import structlog

from tryon_gateway.models.inputs import InferenceParams, InputImage
from tryon_gateway.models.outputs import NormalizedResult

logger = structlog.get_logger(__name__)


class BaseInferenceClient(ABC):
    """
    Abstract base class for inference clients.

    Responsibilities:
    - Submit raw payloads plus parameters to the remote service
    - Retry transient failures and manage any remote session
    - Return a NormalizedResult or raise an InferenceError subclass

    Does NOT handle:
    - Duplicate suppression (that's RequestGate's job)
    - Upload validation and persistence (HTTP layer / external collaborators)
    """

    @abstractmethod
    async def submit(
        self,
        inputs: Mapping[str, InputImage],
        params: Optional[InferenceParams] = None,
    ) -> NormalizedResult:
        """
        Run one inference and return its normalized image.

        Args:
            inputs: Raw payload per procedure role (e.g. "front", "garment")
            params: Scalar parameters; defaults when omitted

        Returns:
            NormalizedResult with validated base64 content

        Raises:
            ExhaustedRetries: Every attempt failed
            ResultShapeError: The remote answered with an unusable payload
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check that the remote service is reachable.

        Note:
            This should NOT raise exceptions - return False on error.
        """
        pass

    async def close(self):
        """
        Close client connections and cleanup resources.

        Should be called on shutdown. Default implementation does nothing.
        """
        logger.debug("Closing inference client", client_class=self.__class__.__name__)
