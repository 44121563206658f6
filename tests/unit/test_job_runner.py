from unittest.mock import MagicMock

from docflow.database.models import JobRecord
from docflow.worker.job_runner import JobRunner


def _make_runner(
    max_attempts: int = 3,
) -> tuple[JobRunner, MagicMock, MagicMock, MagicMock]:
    """Create a JobRunner with mocked dependencies."""
    mock_processor = MagicMock()
    mock_job_repo = MagicMock()
    mock_job_repo.mark_done.return_value = True
    mock_job_repo.mark_failed.return_value = True
    mock_job_repo.increment_attempts.return_value = True
    mock_doc_repo = MagicMock()
    settings = MagicMock(max_job_attempts=max_attempts)
    runner = JobRunner(mock_processor, mock_job_repo, mock_doc_repo, settings)
    return runner, mock_processor, mock_job_repo, mock_doc_repo


def _make_job(attempts: int = 0) -> JobRecord:
    return JobRecord(id=1, document_id=10, status="processing", attempts=attempts)


class TestSuccessfulProcessing:
    def test_calls_processor(self) -> None:
        runner, mock_processor, _job_repo, _doc_repo = _make_runner()

        runner.run(_make_job())

        mock_processor.process.assert_called_once_with(10, 1)

    def test_marks_job_done(self) -> None:
        runner, _processor, mock_job_repo, mock_doc_repo = _make_runner()

        runner.run(_make_job())

        mock_job_repo.mark_done.assert_called_once_with(1)
        mock_doc_repo.mark_failed.assert_not_called()

    def test_mark_done_error_is_not_treated_as_attempt_failure(self) -> None:
        runner, _processor, mock_job_repo, mock_doc_repo = _make_runner()
        mock_job_repo.mark_done.side_effect = Exception("connection lost")

        runner.run(_make_job(attempts=2))

        mock_job_repo.mark_failed.assert_not_called()
        mock_job_repo.increment_attempts.assert_not_called()
        mock_doc_repo.mark_failed.assert_not_called()


class TestFailureBelowMax:
    def test_increments_attempts_with_error(self) -> None:
        runner, mock_processor, mock_job_repo, mock_doc_repo = _make_runner(max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=0))

        mock_job_repo.increment_attempts.assert_called_once_with(1, "boom")
        mock_job_repo.mark_failed.assert_not_called()
        mock_doc_repo.mark_failed.assert_not_called()

    def test_does_not_mark_done(self) -> None:
        runner, mock_processor, mock_job_repo, _doc_repo = _make_runner(max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=1))

        mock_job_repo.mark_done.assert_not_called()


class TestFailureAtMax:
    def test_marks_job_and_document_failed(self) -> None:
        runner, mock_processor, mock_job_repo, mock_doc_repo = _make_runner(max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=2))

        mock_job_repo.mark_failed.assert_called_once_with(1, "boom")
        mock_job_repo.increment_attempts.assert_not_called()
        mock_doc_repo.mark_failed.assert_called_once_with(
            10, "Extraction failed after 3 attempts: boom", job_id=1
        )

    def test_document_is_failed_before_job(self) -> None:
        runner, mock_processor, mock_job_repo, mock_doc_repo = _make_runner(max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")
        calls: list[str] = []
        mock_doc_repo.mark_failed.side_effect = lambda *_, **__: calls.append("document")
        mock_job_repo.mark_failed.side_effect = lambda *_: (calls.append("job"), True)[1]

        runner.run(_make_job(attempts=2))

        assert calls == ["document", "job"]

    def test_marks_failed_when_over_max(self) -> None:
        runner, mock_processor, mock_job_repo, _doc_repo = _make_runner(max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=5))

        mock_job_repo.mark_failed.assert_called_once_with(1, "boom")

    def test_single_attempt_fails_immediately(self) -> None:
        runner, mock_processor, mock_job_repo, mock_doc_repo = _make_runner(max_attempts=1)
        mock_processor.process.side_effect = TimeoutError()

        runner.run(_make_job(attempts=0))

        mock_job_repo.mark_failed.assert_called_once_with(1, "TimeoutError")
        mock_doc_repo.mark_failed.assert_called_once_with(
            10, "Extraction failed after 1 attempts: TimeoutError", job_id=1
        )


class TestSupersededJob:
    def test_failure_below_max_does_not_requeue(self) -> None:
        runner, mock_processor, mock_job_repo, mock_doc_repo = _make_runner(max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")
        mock_job_repo.increment_attempts.return_value = False

        runner.run(_make_job(attempts=0))

        mock_job_repo.increment_attempts.assert_called_once_with(1, "boom")
        mock_job_repo.mark_failed.assert_not_called()
        mock_doc_repo.mark_failed.assert_not_called()

    def test_final_failure_is_guarded_by_job(self) -> None:
        runner, mock_processor, mock_job_repo, mock_doc_repo = _make_runner(max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")
        mock_job_repo.mark_failed.return_value = False
        mock_doc_repo.mark_failed.return_value = False

        runner.run(_make_job(attempts=2))

        assert mock_doc_repo.mark_failed.call_args.kwargs["job_id"] == 1
        mock_job_repo.increment_attempts.assert_not_called()

    def test_success_after_supersede_is_not_reported_done(self) -> None:
        runner, _processor, mock_job_repo, mock_doc_repo = _make_runner()
        mock_job_repo.mark_done.return_value = False

        runner.run(_make_job())

        mock_job_repo.mark_done.assert_called_once_with(1)
        mock_doc_repo.mark_failed.assert_not_called()
