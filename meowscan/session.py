from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from . import client
from .config import MSG_NO_SELECTION, MSG_TIMEOUT
from .contracts import (
    ClassificationResult,
    ErrorKind,
    ImageFile,
    ImageSelection,
    OperationError,
    OperationFailure,
    ResolvedDiagnostic,
    SessionState,
)
from .interpreter import resolve
from .selection import validate

logger = logging.getLogger(__name__)

Classifier = Callable[[ImageSelection], Awaitable[ClassificationResult]]


class WorkflowState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DiagnosisSession:
    """
    One user's select -> submit -> result/error -> reset cycle.

    Result and error are mutually exclusive. Every reset or accepted selection
    starts a new generation; a response belonging to an older generation is
    discarded when it arrives.
    """

    def __init__(self, classifier: Optional[Classifier] = None):
        self._classifier: Classifier = classifier or client.classify
        self._selection: Optional[ImageSelection] = None
        self._result: Optional[ClassificationResult] = None
        self._diagnostic: Optional[ResolvedDiagnostic] = None
        self._error: Optional[OperationError] = None
        self._generation = 0
        self._pending: Optional[asyncio.Task] = None
        self._cancelled_task: Optional[asyncio.Task] = None

    # -- read side -------------------------------------------------------

    @property
    def selection(self) -> Optional[ImageSelection]:
        return self._selection

    @property
    def result(self) -> Optional[ClassificationResult]:
        return self._result

    @property
    def diagnostic(self) -> Optional[ResolvedDiagnostic]:
        return self._diagnostic

    @property
    def error(self) -> Optional[OperationError]:
        return self._error

    @property
    def in_flight(self) -> bool:
        return self._pending is not None

    @property
    def can_submit(self) -> bool:
        return self._selection is not None and not self.in_flight

    @property
    def state(self) -> WorkflowState:
        if self.in_flight:
            return WorkflowState.SUBMITTING
        if self._result is not None:
            return WorkflowState.SUCCEEDED
        if self._error is not None and self._error.kind != ErrorKind.VALIDATION:
            return WorkflowState.FAILED
        if self._selection is not None:
            return WorkflowState.SELECTED
        return WorkflowState.IDLE

    def snapshot(self) -> SessionState:
        return SessionState(
            selection=self._selection,
            result=self._result,
            diagnostic=self._diagnostic,
            error=self._error,
            in_flight=self.in_flight,
        )

    # -- transitions -----------------------------------------------------

    def select_image(self, file: ImageFile) -> bool:
        """Validate and adopt a new image. Returns False if it was rejected."""
        try:
            selection = validate(file, previous=self._selection)
        except OperationFailure as e:
            self._result = None
            self._diagnostic = None
            self._error = e.error
            return False

        self._supersede()
        self._selection = selection
        self._result = None
        self._diagnostic = None
        self._error = None
        return True

    async def submit(self) -> Optional[ResolvedDiagnostic]:
        """
        Classify the current selection with exactly one request.

        Returns the resolved diagnostic, or None if the attempt failed or its
        response was discarded as stale.
        """
        if self.in_flight:
            raise RuntimeError("A classification request is already in flight")
        if self._selection is None:
            self._result = None
            self._diagnostic = None
            self._error = OperationError(kind=ErrorKind.VALIDATION, message=MSG_NO_SELECTION)
            return None

        generation = self._generation
        selection = self._selection
        self._error = None
        task = asyncio.ensure_future(self._classifier(selection))
        self._pending = task

        outcome: Optional[ClassificationResult] = None
        failure: Optional[OperationError] = None
        try:
            outcome = await task
        except OperationFailure as e:
            failure = e.error
        except asyncio.CancelledError:
            if self._cancelled_task is not task:
                raise
            failure = OperationError(kind=ErrorKind.TIMEOUT, message=MSG_TIMEOUT)
        finally:
            if self._pending is task:
                self._pending = None
            if self._cancelled_task is task:
                self._cancelled_task = None

        if generation != self._generation:
            logger.info("Discarding stale classification response for %s", selection.file.filename)
            return None

        if failure is not None:
            self._result = None
            self._diagnostic = None
            self._error = failure
            return None

        self._result = outcome
        self._diagnostic = resolve(outcome)
        self._error = None
        logger.debug("Classified %s as %s", selection.file.filename, self._diagnostic.category)
        return self._diagnostic

    def cancel(self) -> bool:
        """Abort the outstanding request; it resolves as a timeout failure."""
        if self._pending is None or self._pending.done():
            return False
        self._cancelled_task = self._pending
        self._pending.cancel()
        return True

    def reset(self) -> None:
        self._supersede()
        if self._selection is not None:
            self._selection.preview.release()
        self._selection = None
        self._result = None
        self._diagnostic = None
        self._error = None

    def close(self) -> None:
        self.reset()

    def __enter__(self) -> "DiagnosisSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _supersede(self) -> None:
        # Outstanding responses from the previous generation are dropped on arrival.
        self._generation += 1
        if self._pending is not None:
            logger.debug("Superseding in-flight classification request")
            self._pending = None
