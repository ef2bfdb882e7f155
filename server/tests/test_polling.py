# ─────────────────────────────────────────────────────────────────────────────
# Tests — Prediction poller
# ─────────────────────────────────────────────────────────────────────────────
# The provider client is a stub; intervals and ceilings are tiny so the
# timing properties can be checked without waiting minutes.
# ─────────────────────────────────────────────────────────────────────────────

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from roomdesigner.exceptions import (
    ClientDisconnectedError,
    ConfigurationError,
    GenerationFailedError,
    GenerationTimeoutError,
    UnsupportedMediaError,
)
from roomdesigner.schemas import JobStatus
from roomdesigner.services.polling import PredictionPoller
from roomdesigner.services.replicate_client import Prediction, ReplicateClient

INTERVAL = 0.02
CEILING = 0.3
# Scheduling slack on slow CI machines.
SLACK = 0.25


def _stub_client(*statuses: Prediction) -> MagicMock:
    client = MagicMock(spec=ReplicateClient)
    client.get_prediction = AsyncMock(side_effect=list(statuses))
    return client


def _pred(status: JobStatus, output=None, error=None) -> Prediction:
    return Prediction(id="pred-1", status=status, output=output, error=error)


def _poller(client: MagicMock, ceiling: float = CEILING) -> PredictionPoller:
    return PredictionPoller(client, timeout_seconds=ceiling, interval_seconds=INTERVAL)


class TestTerminalStates:
    @pytest.mark.asyncio
    async def test_succeeds_on_first_poll(self):
        client = _stub_client(_pred(JobStatus.succeeded, output="https://x/a.png"))

        result = await _poller(client).wait(_pred(JobStatus.queued), time.monotonic())

        assert result.status is JobStatus.succeeded
        assert result.output == "https://x/a.png"
        client.get_prediction.assert_awaited_once_with("pred-1")

    @pytest.mark.asyncio
    async def test_polls_through_processing(self):
        client = _stub_client(
            _pred(JobStatus.queued),
            _pred(JobStatus.processing),
            _pred(JobStatus.processing),
            _pred(JobStatus.succeeded, output="https://x/a.png"),
        )

        result = await _poller(client).wait(_pred(JobStatus.queued), time.monotonic())

        assert result.status is JobStatus.succeeded
        assert client.get_prediction.await_count == 4

    @pytest.mark.asyncio
    async def test_already_terminal_skips_polling(self):
        client = _stub_client()
        done = _pred(JobStatus.succeeded, output="https://x/a.png")

        assert await _poller(client).wait(done, time.monotonic()) is done
        client.get_prediction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_carries_provider_message(self):
        client = _stub_client(_pred(JobStatus.failed, error="CUDA out of memory"))

        with pytest.raises(GenerationFailedError) as exc_info:
            await _poller(client).wait(_pred(JobStatus.processing), time.monotonic())

        assert exc_info.value.reason == "CUDA out of memory"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_failure_without_message(self):
        client = _stub_client(_pred(JobStatus.failed))
        with pytest.raises(GenerationFailedError) as exc_info:
            await _poller(client).wait(_pred(JobStatus.processing), time.monotonic())
        assert exc_info.value.reason is None
        assert "reason" not in exc_info.value.to_content()

    @pytest.mark.asyncio
    async def test_safety_rejection_is_unsupported_media(self):
        client = _stub_client(_pred(JobStatus.failed, error="NSFW content detected"))
        with pytest.raises(UnsupportedMediaError) as exc_info:
            await _poller(client).wait(_pred(JobStatus.processing), time.monotonic())
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_provider_reported_timeout(self):
        client = _stub_client(_pred(JobStatus.failed, error="Prediction timed out: Timeout"))
        with pytest.raises(GenerationTimeoutError) as exc_info:
            await _poller(client).wait(_pred(JobStatus.processing), time.monotonic())
        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_errors_from_status_fetch_propagate(self):
        client = MagicMock(spec=ReplicateClient)
        client.get_prediction = AsyncMock(side_effect=ConfigurationError("provider answered 401"))
        with pytest.raises(ConfigurationError):
            await _poller(client).wait(_pred(JobStatus.processing), time.monotonic())


class TestCeiling:
    @pytest.mark.asyncio
    async def test_never_terminal_times_out(self):
        client = MagicMock(spec=ReplicateClient)
        client.get_prediction = AsyncMock(return_value=_pred(JobStatus.processing))

        start = time.monotonic()
        with pytest.raises(GenerationTimeoutError) as exc_info:
            await _poller(client).wait(_pred(JobStatus.queued), start)
        elapsed = time.monotonic() - start

        assert exc_info.value.status_code == 504
        assert elapsed < CEILING + INTERVAL + SLACK

    @pytest.mark.asyncio
    async def test_slow_round_trip_cannot_extend_wait(self):
        async def _hang(prediction_id: str) -> Prediction:
            await asyncio.sleep(30)
            return _pred(JobStatus.succeeded)

        client = MagicMock(spec=ReplicateClient)
        client.get_prediction = AsyncMock(side_effect=_hang)

        start = time.monotonic()
        with pytest.raises(GenerationTimeoutError):
            await _poller(client).wait(_pred(JobStatus.queued), start)

        assert time.monotonic() - start < CEILING + INTERVAL + SLACK

    @pytest.mark.asyncio
    async def test_ceiling_counts_from_submission(self):
        """Time spent before polling (the submission call) uses up the budget."""
        client = MagicMock(spec=ReplicateClient)
        client.get_prediction = AsyncMock(return_value=_pred(JobStatus.processing))

        submitted_long_ago = time.monotonic() - 10
        start = time.monotonic()
        with pytest.raises(GenerationTimeoutError):
            await _poller(client).wait(_pred(JobStatus.queued), submitted_long_ago)

        assert time.monotonic() - start < SLACK

    @pytest.mark.asyncio
    async def test_sleeps_between_polls(self):
        client = MagicMock(spec=ReplicateClient)
        client.get_prediction = AsyncMock(return_value=_pred(JobStatus.processing))

        with pytest.raises(GenerationTimeoutError):
            await _poller(client).wait(_pred(JobStatus.queued), time.monotonic())

        # Without a delay this would be thousands of calls.
        assert client.get_prediction.await_count <= CEILING / INTERVAL + 1


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_stops_when_client_disconnects(self):
        client = MagicMock(spec=ReplicateClient)
        client.get_prediction = AsyncMock(return_value=_pred(JobStatus.processing))
        checks = iter([False, False, True])

        async def _is_disconnected() -> bool:
            return next(checks)

        with pytest.raises(ClientDisconnectedError) as exc_info:
            await _poller(client).wait(
                _pred(JobStatus.queued), time.monotonic(), is_disconnected=_is_disconnected
            )

        assert exc_info.value.prediction_id == "pred-1"
        assert client.get_prediction.await_count == 2
