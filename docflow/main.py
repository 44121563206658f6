import argparse
import sys
from collections.abc import Sequence

from docflow.config.settings import Settings
from docflow.database.connection import apply_schema, close_pool, init_pool
from docflow.database.repositories.document_repository import DocumentRepository
from docflow.database.repositories.job_repository import JobRepository
from docflow.inference.factory import ModelClientFactory
from docflow.logging.logger import Log
from docflow.processor.exceptions import DocumentNotFoundError
from docflow.processor.processor import build_processor
from docflow.worker.dispatcher import ExtractionDispatcher
from docflow.worker.job_runner import JobRunner
from docflow.worker.worker import Worker


def _cmd_worker(args: argparse.Namespace, settings: Settings) -> int:
    processor = build_processor(settings)
    job_repo = JobRepository(settings.max_job_attempts)
    job_runner = JobRunner(processor, job_repo, DocumentRepository(), settings)
    worker = Worker(job_repo, job_runner, settings)
    worker.run(max_jobs=args.max_jobs)
    return 0


def _dispatcher(settings: Settings) -> ExtractionDispatcher:
    return ExtractionDispatcher(DocumentRepository(), JobRepository(settings.max_job_attempts))


def _cmd_enqueue(args: argparse.Namespace, settings: Settings) -> int:
    try:
        job = _dispatcher(settings).dispatch(args.document_id)
    except DocumentNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"job_id={job.id} document_id={job.document_id} status={job.status}")
    return 0


def _cmd_retry(args: argparse.Namespace, settings: Settings) -> int:
    try:
        job = _dispatcher(settings).retry(args.document_id)
    except DocumentNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"job_id={job.id} document_id={job.document_id} status={job.status}")
    return 0


def _cmd_check_backend(args: argparse.Namespace, settings: Settings) -> int:
    model_client = ModelClientFactory.create(settings)
    if not model_client.check_connection():
        print(f"Backend unreachable: {settings.ollama_base_url}", file=sys.stderr)
        return 1
    print(f"Backend reachable: provider={settings.inference_provider}")
    for model in model_client.list_models():
        print(f"  {model.get('name', model)}")
    return 0


def _cmd_init_db(args: argparse.Namespace, settings: Settings) -> int:
    apply_schema()
    print("Schema applied")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docflow", description="Document extraction worker"
    )
    sub = parser.add_subparsers(dest="cmd")

    p_worker = sub.add_parser("worker", help="Run the extraction poll loop (default)")
    p_worker.add_argument(
        "--max-jobs", type=int, default=None, help="Stop after running N jobs"
    )
    p_worker.set_defaults(func=_cmd_worker, needs_db=True)

    p_enqueue = sub.add_parser("enqueue", help="Queue extraction for an uploaded document")
    p_enqueue.add_argument("document_id", type=int, help="Document ID")
    p_enqueue.set_defaults(func=_cmd_enqueue, needs_db=True)

    p_retry = sub.add_parser("retry", help="Reset a document to pending and queue it again")
    p_retry.add_argument("document_id", type=int, help="Document ID")
    p_retry.set_defaults(func=_cmd_retry, needs_db=True)

    p_check = sub.add_parser("check-backend", help="Check the inference backend and list models")
    p_check.set_defaults(func=_cmd_check_backend, needs_db=False)

    p_init = sub.add_parser("init-db", help="Create the database tables")
    p_init.set_defaults(func=_cmd_init_db, needs_db=True)

    parser.set_defaults(func=_cmd_worker, needs_db=True, max_jobs=None)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: parse args -> initialize pool -> run the chosen command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    if not args.needs_db:
        return args.func(args, settings)

    init_pool(settings)
    try:
        return args.func(args, settings)
    finally:
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
