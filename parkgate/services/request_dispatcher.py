# parkgate/services/request_dispatcher.py
"""
Runs each admission request in its own worker and relays one result back.

Store I/O is blocking, so requests are handed to a bounded thread pool
instead of running on the event loop. Each worker opens its own session
through the AdmissionController. Whatever happens inside the worker, the
caller gets exactly one AdmissionResult: a crash becomes INTERNAL_ERROR.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from parkgate.config import settings
from parkgate.services.admission_service import AdmissionController
from parkgate.services.results import AdmissionResult, internal_error
from parkgate.utils.logger import get_logger

logger = get_logger(__name__)

ACTIONS = ("validate", "vehicle-entry", "vehicle-exit", "vehicle-history")


class RequestDispatcher:
    def __init__(self, controller: AdmissionController, max_workers: int = None):
        self.controller = controller
        self.max_workers = max_workers or settings.DISPATCH_MAX_WORKERS
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                            thread_name_prefix="admission")

    def _run(self, action: str, payload: dict) -> AdmissionResult:
        """Worker body: route one action to the controller."""
        if action == "validate":
            return self.controller.validate(payload.get("document_id"))
        if action == "vehicle-entry":
            return self.controller.admit(payload)
        if action == "vehicle-exit":
            return self.controller.release(payload)
        if action == "vehicle-history":
            return self.controller.history(payload.get("date"))
        return internal_error("Unknown action")

    async def dispatch(self, action: str, payload: dict = None) -> AdmissionResult:
        if action not in ACTIONS:
            logger.warning(f"[Dispatch] unknown action '{action}'")
            return internal_error("Unknown action")

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(self._executor, self._run, action, payload or {})
        except Exception as e:
            logger.error(f"[Dispatch] worker for '{action}' crashed: {e}", exc_info=True)
            return internal_error()

        if not isinstance(result, AdmissionResult):
            logger.error(f"[Dispatch] worker for '{action}' returned {type(result).__name__}")
            return internal_error()
        logger.debug(f"[Dispatch] {action} → {result.outcome.value}")
        return result

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
