"""Text scanning service: store, scan, mark processed."""

from __future__ import annotations

import asyncio

from evshub.observability.logging import get_logger
from evshub.observability.telemetry import counter
from evshub.text_inputs.models import ScanResult
from evshub.text_inputs.repository import TextInputRepository
from evshub.text_inputs.scanner import scan_text_input
from evshub.utils.redaction import redact_content

logger = get_logger(__name__)


class TextScanningService:
    def process_sync(self, content: str, source: str) -> ScanResult:
        """
        Side Effects:
            - Inserts a text_inputs row, then updates it with the scan result
        """
        text_input = TextInputRepository.create(content, source)
        extracted = scan_text_input(content, source)
        TextInputRepository.mark_processed(text_input, extracted)

        counter("text_inputs.processed")
        if extracted:
            counter("text_inputs.tasks_found")
        logger.info(
            "Scanned text input %s from %s: %d task(s) (%s)",
            text_input.id,
            source,
            len(extracted),
            redact_content(content),
        )
        return ScanResult(extracted_tasks=extracted, text_input_id=text_input.id)

    async def process(self, content: str, source: str) -> ScanResult:
        return await asyncio.to_thread(self.process_sync, content, source)
