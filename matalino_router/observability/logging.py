"""
Structured logging for the routing core.

Every line is ``[component=... tenant=... request_id=... key=value] message``.
Components log through a ``RoutingLogger``; code that handles one request
binds it with ``for_request`` so the tenant and request id ride along on every
line, including the lifecycle trail the orchestrator writes.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

# Lifecycle states that end a request; logged at INFO, the rest at DEBUG
TERMINAL_STATES = frozenset({"completed", "rejected", "failed", "cancelled"})


class RoutingLogger:
    """Structured logger for one routing component."""

    def __init__(self, component: str):
        """
        Args:
            component: Name of the component (e.g. "orchestrator", "openai")
        """
        self.component = component
        self.logger = logging.getLogger(f"matalino_router.{component}")

    def _format_message(self, message: str, fields: Dict[str, Any]) -> str:
        parts = [f"component={self.component}"]
        parts.extend(f"{key}={value}" for key, value in fields.items() if value is not None)
        return f"[{' '.join(parts)}] {message}"

    def log(self, level: int, message: str, tenant: Optional[str] = None,
            request_id: Optional[str] = None, **fields):
        """Log ``message`` with the request context first, then ``fields``."""
        if not self.logger.isEnabledFor(level):
            return
        ordered = {"tenant": tenant, "request_id": request_id}
        ordered.update(fields)
        self.logger.log(level, self._format_message(message, ordered))

    def debug(self, message: str, **fields):
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, error: Optional[Exception] = None, **fields):
        if error is not None:
            fields["error_type"] = type(error).__name__
            fields["error_msg"] = str(error)
        self.log(logging.ERROR, message, **fields)

    def for_request(self, request) -> "RequestLog":
        """Bind this logger to a request's tenant and id."""
        return RequestLog(self, request.tenant_id, request.request_id)

    @contextmanager
    def track_call(self, method: str, model: str, request):
        """
        Time one backend call for ``request`` and log its outcome.

        Args:
            method: The adapter method being called (e.g. "generate")
            model: Registry id of the model being called
            request: The GenerationRequest being served

        Yields:
            Dict with the call's tenant, request_id, model, method and start_time
        """
        log = self.for_request(request)
        start_time = time.monotonic()
        log.debug(f"Starting {method} call", model=model, method=method)

        call = {
            "tenant": request.tenant_id,
            "request_id": request.request_id,
            "model": model,
            "method": method,
            "start_time": start_time,
        }
        try:
            yield call
        except Exception as e:
            log.error(
                f"Failed {method} call",
                error=e,
                model=model,
                method=method,
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            raise
        log.info(
            f"Completed {method} call",
            model=model,
            method=method,
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )

    def log_usage(self, usage: Dict[str, Any], model: str, request):
        """Log token usage reported by a text backend."""
        self.for_request(request).info(
            "Token usage",
            model=model,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        )


class RequestLog:
    """A ``RoutingLogger`` bound to one request's tenant and id."""

    def __init__(self, logger: RoutingLogger, tenant: str, request_id: str):
        self._logger = logger
        self.tenant = tenant
        self.request_id = request_id

    def transition(self, state: str, **fields):
        """Log a lifecycle transition (received, validated, routed, ...)."""
        level = logging.INFO if state in TERMINAL_STATES else logging.DEBUG
        self._logger.log(level, f"Request {state}", tenant=self.tenant,
                         request_id=self.request_id, state=state, **fields)

    def debug(self, message: str, **fields):
        self._logger.debug(message, tenant=self.tenant, request_id=self.request_id, **fields)

    def info(self, message: str, **fields):
        self._logger.info(message, tenant=self.tenant, request_id=self.request_id, **fields)

    def warning(self, message: str, **fields):
        self._logger.warning(message, tenant=self.tenant, request_id=self.request_id, **fields)

    def error(self, message: str, error: Optional[Exception] = None, **fields):
        self._logger.error(message, error=error, tenant=self.tenant, request_id=self.request_id, **fields)
