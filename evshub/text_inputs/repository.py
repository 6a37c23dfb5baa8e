"""Text input repository - raw scanned text and its extraction result."""

from __future__ import annotations

from evshub.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from evshub.observability.logging import get_logger
from evshub.tasks.models import next_epoch_id
from evshub.text_inputs.models import ScannedTask, TextInput

logger = get_logger(__name__)


class TextInputRepository:
    @staticmethod
    @retry_on_db_lock()
    def create(content: str, source: str) -> TextInput:
        """
        Store an unprocessed text input with a ``TXT<epoch-ms>`` id.

        Side Effects:
            - Inserts row into text_inputs table
        """
        text_input = TextInput(id=next_epoch_id("TXT"), content=content, source=source)

        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO text_inputs (
                    id, content, source, processed, extracted_tasks, created_at
                )
                VALUES (:id, :content, :source, :processed, :extracted_tasks, :created_at)
                """,
                text_input.to_db_dict(),
            )

        logger.debug("Stored text input %s from %s", text_input.id, source)
        return text_input

    @staticmethod
    @retry_on_db_lock()
    def mark_processed(text_input: TextInput, extracted_tasks: list[ScannedTask]) -> TextInput:
        updated = text_input.model_copy(
            update={"processed": True, "extracted_tasks": extracted_tasks}
        )
        row = updated.to_db_dict()

        with db_transaction() as conn:
            conn.execute(
                "UPDATE text_inputs SET processed = ?, extracted_tasks = ? WHERE id = ?",
                (row["processed"], row["extracted_tasks"], updated.id),
            )

        return updated

    @staticmethod
    def get_by_id(text_input_id: str) -> TextInput | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM text_inputs WHERE id = ?", (text_input_id,)
            ).fetchone()

        if not row:
            return None

        return TextInput.from_db_row(dict(row))
