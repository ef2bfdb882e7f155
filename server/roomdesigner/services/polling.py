# ─────────────────────────────────────────────────────────────────────────────
# Prediction Poller — wait for a provider job to reach a terminal state
# ─────────────────────────────────────────────────────────────────────────────
# submitted → polling → succeeded | failed | timed-out
#
# The ceiling is wall-clock time since submission, enforced with
# asyncio.wait_for around the whole loop, so a slow status round-trip cannot
# stretch the total wait. Each iteration sleeps first (no busy loop).
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

from roomdesigner.exceptions import (
    ClientDisconnectedError,
    GenerationFailedError,
    GenerationTimeoutError,
    RoomDesignError,
    classify_provider_message,
)
from roomdesigner.schemas import JobStatus
from roomdesigner.services.replicate_client import Prediction, ReplicateClient

logger = structlog.get_logger(__name__)

DisconnectCheck = Callable[[], Awaitable[bool]]


class PredictionPoller:
    """Polls one prediction at a fixed interval until done or out of time."""

    def __init__(
        self,
        client: ReplicateClient,
        timeout_seconds: float,
        interval_seconds: float,
    ) -> None:
        self._client = client
        self._timeout = timeout_seconds
        self._interval = interval_seconds

    async def wait(
        self,
        prediction: Prediction,
        started_at: float,
        is_disconnected: DisconnectCheck | None = None,
    ) -> Prediction:
        """Return the succeeded prediction.

        Args:
            prediction: Handle returned by the submission.
            started_at: time.monotonic() reading taken right before submission.
            is_disconnected: Optional check; polling stops once it returns True.

        Raises:
            GenerationFailedError: the provider reported failure (or a more
                specific error when the provider message is recognized).
            GenerationTimeoutError: no terminal state within the ceiling.
            ClientDisconnectedError: the caller went away mid-poll.
        """
        if not prediction.status.is_terminal:
            remaining = self._timeout - (time.monotonic() - started_at)
            try:
                prediction = await asyncio.wait_for(
                    self._poll(prediction, is_disconnected),
                    timeout=max(remaining, 0.0),
                )
            except TimeoutError:
                logger.warning(
                    "prediction_timed_out",
                    prediction_id=prediction.id,
                    timeout_s=self._timeout,
                )
                raise GenerationTimeoutError(self._timeout) from None

        if prediction.status is JobStatus.failed:
            raise _failure_for(prediction)
        return prediction

    async def _poll(
        self, prediction: Prediction, is_disconnected: DisconnectCheck | None
    ) -> Prediction:
        current = prediction
        polls = 0
        while not current.status.is_terminal:
            await asyncio.sleep(self._interval)

            if is_disconnected is not None and await is_disconnected():
                # No provider-side cancel: the remote job keeps running untracked.
                logger.warning("client_disconnected_mid_poll", prediction_id=prediction.id)
                raise ClientDisconnectedError(prediction.id)

            current = await self._client.get_prediction(prediction.id)
            polls += 1
            logger.info(
                "prediction_status",
                prediction_id=prediction.id,
                status=current.status,
                polls=polls,
            )
        return current


def _failure_for(prediction: Prediction) -> RoomDesignError:
    reason = prediction.error
    logger.warning("prediction_failed", prediction_id=prediction.id, reason=reason)
    classified = classify_provider_message(reason) if reason else None
    return classified or GenerationFailedError(reason)
