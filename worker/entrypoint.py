"""
Batch worker entrypoint for scheduled runs (cron / ECS RunTask).

Environment:
    START_DATE / END_DATE : optional ISO date window
    ACCOUNTS_FILE         : optional JSON file with a list of accounts
                             (``{clickup_task_id, nome, email}``)
    INCLUDE_TRANSCRIPTS   : "true" (default) or "false"
    LIMIT                 : max meetings to list (default from settings)

The worker:
    1. Builds the ProcessingService from the DI container.
    2. Runs one batch; SIGTERM / SIGINT cancel it between meetings.
    3. Prints the BatchReport as JSON on stdout.
    4. Exits 0 on success (even if some meetings were skipped), 1 on failure.
"""

from __future__ import annotations

import json
import os
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from domain.models import Account, DateRange
from shared_utils.config_loader import get_settings
from shared_utils.constants import LogScope
from shared_utils.di_container import get_di_container
from shared_utils.error_handler import AppException, BatchProcessingError, handle_error
from shared_utils.logging_utils import get_scoped_logger

logger = get_scoped_logger(LogScope.WORKER)


def _load_accounts(path: str) -> Optional[List[Account]]:
    if not path:
        return None
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return [Account.model_validate(item) for item in raw]


def _build_service():
    try:
        return get_di_container().get_processing_service()
    except AppException:
        raise
    except Exception as exc:
        raise BatchProcessingError(f"Batch could not start: {exc}") from exc


def _install_cancel_handlers(cancel_event: threading.Event) -> None:
    def _handler(signum, frame) -> None:
        logger.warning("worker_cancel_requested", signal=signum)
        cancel_event.set()

    # signal.signal only works on the main thread
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handler)
        signal.signal(signal.SIGINT, _handler)


def main() -> int:
    """Worker main: parse env vars, build deps, run one batch."""
    cancel_event = threading.Event()
    _install_cancel_handlers(cancel_event)

    try:
        settings = get_settings()
        date_range = DateRange(
            start_date=os.environ.get("START_DATE") or None,
            end_date=os.environ.get("END_DATE") or None,
        )
        accounts = _load_accounts(os.environ.get("ACCOUNTS_FILE", ""))
        include_transcripts = os.environ.get("INCLUDE_TRANSCRIPTS", "true").lower() != "false"
        limit = int(os.environ.get("LIMIT") or settings.batch_default_limit)
    except Exception as exc:
        logger.error("worker_invalid_input", error=str(exc))
        print(f"ERROR: invalid worker configuration: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "worker_started",
        start_date=date_range.start_date,
        end_date=date_range.end_date,
        accounts=None if accounts is None else len(accounts),
    )

    try:
        service = _build_service()
        report = service.process(
            date_range=date_range,
            accounts=accounts,
            include_transcripts=include_transcripts,
            limit=limit,
            cancel_event=cancel_event,
        )
    except Exception as exc:
        error = handle_error(exc, scope=LogScope.WORKER)
        print(json.dumps(error, default=str), file=sys.stderr)
        return 1

    print(json.dumps(report.model_dump(mode="json", by_alias=True), ensure_ascii=False))
    logger.info(
        "worker_completed",
        processed=report.count,
        skipped=len(report.skipped),
        cancelled=report.cancelled,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
