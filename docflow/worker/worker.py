import time

from docflow.config.settings import Settings
from docflow.database.connection import get_connection
from docflow.database.models import JobRecord
from docflow.database.repositories.job_repository import JobRepository
from docflow.logging.logger import Log
from docflow.worker.job_runner import JobRunner


class Worker:
    """Poll loop: sleep -> claim -> run.

    Several worker processes may poll the same queue; SKIP LOCKED keeps
    them from claiming the same job.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings

    def run(self, max_jobs: int | None = None) -> int:
        """Main poll loop. Runs forever until interrupted.

        If max_jobs is set, stop after running that many jobs.
        Returns the number of jobs run.
        """
        Log.info("Worker started, polling for extraction jobs")
        jobs_done = 0
        try:
            while max_jobs is None or jobs_done < max_jobs:
                job = self._try_claim_job()
                if job is None:
                    Log.debug("No jobs available, sleeping")
                    time.sleep(self._settings.job_poll_interval_seconds)
                    continue
                self._job_runner.run(job)
                jobs_done += 1
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        return jobs_done

    def _try_claim_job(self) -> JobRecord | None:
        """Attempt to claim the next pending job. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
