"""Generation history stores.

Every generation request can be recorded as a ``Submission``: the question
sent to the model, the model name and the raw text it answered with. Stores
are injected into the generator, so nothing writes to ambient global state.

Example:
    >>> store = JsonSubmissionStore(Path("data/submissions.json"))
    >>> store.add(new_submission("2 eggs, flour", "gpt-4o-mini", "{...}"))
    >>> [s.title for s in store.list()]
    ['Submission']
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .exceptions import PersistenceError
from .models import Submission

logger = logging.getLogger(__name__)

_SUBMISSIONS = TypeAdapter(list[Submission])


def new_submission(
    question: str, model: str, response_text: str, title: str | None = None
) -> Submission:
    """Create a submission with a fresh id and the current UTC time."""
    return Submission(
        id=uuid.uuid4().hex,
        title=title or "Submission",
        question=question,
        model=model,
        response_text=response_text,
        created_at=datetime.now(timezone.utc),
    )


class InMemorySubmissionStore:
    """Submission store that lives only as long as the process."""

    def __init__(self) -> None:
        self._submissions: list[Submission] = []

    def add(self, submission: Submission) -> None:
        self._submissions.insert(0, submission)

    def list(self) -> list[Submission]:
        return list(self._submissions)


class JsonSubmissionStore:
    """Submission store backed by a JSON array on disk, newest first.

    Attributes:
        path: File holding the submissions

    Raises:
        PersistenceError: When the file exists but cannot be read or decoded
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def add(self, submission: Submission) -> None:
        """Record a submission ahead of the existing ones."""
        submissions = [submission, *self.list()]
        self._write(submissions)
        logger.info(f"Recorded submission {submission.id} ({submission.model})")

    def list(self) -> list[Submission]:
        """Return stored submissions, newest first."""
        if not self.path.exists():
            return []
        try:
            return _SUBMISSIONS.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            raise PersistenceError(
                "Could not read submissions", path=str(self.path), error=str(e)
            ) from e

    def _write(self, submissions: list[Submission]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = [submission.model_dump(mode="json") for submission in submissions]
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(
                "Could not write submissions", path=str(self.path), error=str(e)
            ) from e
