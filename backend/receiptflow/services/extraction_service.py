"""Receipt extraction service.

This service runs the model half of the pipeline for an image that
already passed the gatekeeper: build the gateway request, invoke the
model once and normalise the reply into a ``ReceiptExtraction``. It
holds no per-request state, so a single instance is shared by all
requests.

Diagnostic logging can be enabled by setting env var EXTRACTION_DEBUG=1.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

from receiptflow.core.config import Settings
from receiptflow.core.exceptions import ReceiptPipelineError
from receiptflow.core.observability import sentry_breadcrumb
from receiptflow.models.enums import PipelineState
from receiptflow.models.schemas import ReceiptExtraction
from receiptflow.services.invocation_builder import build_invocation
from receiptflow.services.model_invoker import ModelInvoker
from receiptflow.services.normalizer import normalize

logger = logging.getLogger(__name__)


class ExtractionService:
    """Service responsible for extracting structured receipt data."""

    def __init__(self, settings: Settings, invoker: Optional[ModelInvoker] = None) -> None:
        self.model: str = settings.EXTRACTION_MODEL
        self.invoker = invoker or ModelInvoker(settings)
        self.debug: bool = os.getenv("EXTRACTION_DEBUG", "0").lower() in {"1", "true", "yes"}
        if self.debug:
            logger.info("[extraction:init] model=%s", self.model)

    def _stage(self, state: PipelineState) -> None:
        sentry_breadcrumb("extraction", state.value, data={"model": self.model})
        if self.debug:
            logger.info("[extraction] %s", state.value)

    async def extract(self, image_base64: str) -> ReceiptExtraction:
        """Extract receipt data from a validated base64 image.

        Raises one of the ``ReceiptPipelineError`` subclasses on failure;
        nothing is retried here.
        """
        started = time.perf_counter()
        try:
            self._stage(PipelineState.BUILDING)
            invocation = build_invocation(image_base64, model=self.model)

            self._stage(PipelineState.INVOKING)
            result = await self.invoker.invoke(invocation)

            self._stage(PipelineState.NORMALIZING)
            extraction = normalize(result)
        except ReceiptPipelineError as exc:
            logger.warning(
                "[extraction] stopped state=%s model=%s elapsed_ms=%d",
                exc.state.value,
                self.model,
                (time.perf_counter() - started) * 1000,
            )
            raise

        logger.info(
            "[extraction] %s model=%s items=%d elapsed_ms=%d",
            PipelineState.SUCCEEDED.value,
            self.model,
            len(extraction.items),
            (time.perf_counter() - started) * 1000,
        )
        return extraction
