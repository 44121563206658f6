from docflow.config.settings import Settings
from docflow.database.models import JobRecord
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.database.repositories.job_repository import JobRepository
from docflow.logging.logger import Log
from docflow.processor.processor import Processor


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        processor: Processor,
        job_repo: JobRepository,
        document_repo: DocumentRepository,
        settings: Settings,
    ) -> None:
        self._processor = processor
        self._job_repo = job_repo
        self._document_repo = document_repo
        self._settings = settings

    def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(
            f"Running job {job.id} (attempt {job.attempts + 1})",
            document_id=job.document_id,
        )
        try:
            self._processor.process(job.document_id, job.id)
        except Exception as exc:
            self._handle_failure(job, exc)
            return

        try:
            done = self._job_repo.mark_done(job.id)
        except Exception as exc:
            Log.error(f"Job {job.id} succeeded but could not be marked done: {exc}")
            return
        if not done:
            self._log_superseded(job)
            return
        Log.info(f"Job {job.id} completed successfully", document_id=job.document_id)

    def _handle_failure(self, job: JobRecord, exc: Exception) -> None:
        """Increment attempts; mark failed if at max, otherwise back to pending.

        A job superseded by a user retry is left alone, as is its document.
        """
        error = str(exc) or type(exc).__name__
        attempt = job.attempts + 1
        Log.error(f"Job {job.id} failed: {error}", document_id=job.document_id)
        if attempt >= self._settings.max_job_attempts:
            # Guarded by the job still processing, so it must run before the job update.
            self._document_repo.mark_failed(
                job.document_id,
                f"Extraction failed after {attempt} attempts: {error}",
                job_id=job.id,
            )
            if not self._job_repo.mark_failed(job.id, error):
                self._log_superseded(job)
                return
            Log.error(
                f"Job {job.id} permanently failed after {attempt} attempts",
                document_id=job.document_id,
            )
        else:
            if not self._job_repo.increment_attempts(job.id, error):
                self._log_superseded(job)
                return
            Log.warning(
                f"Job {job.id} will be retried (attempt {attempt + 1})",
                document_id=job.document_id,
            )

    def _log_superseded(self, job: JobRecord) -> None:
        Log.warning(
            f"Job {job.id} was superseded by a retry, leaving it as is",
            document_id=job.document_id,
        )
