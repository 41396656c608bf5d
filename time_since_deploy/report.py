"""Concurrent drift report: one thread per service environment.

Rows are written in completion order, not input order. A failing service is
logged and skipped; it never stops its siblings.
"""
import sys
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, TextIO

from opentelemetry import context as otel_context
from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from .duration import format_duration
from .errors import DriftError, GitLabAPIError
from .gitlab_client import GitLabClient
from .logging_utils import logger
from .models import DeploymentDrift, Environment, ServiceEnvironment
from .tracing import default_tracer


HEADER = "SERVICE           | SHORT SHA | LAST DEPLOY"
NAME_WIDTH = 18


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_row(drift: DeploymentDrift) -> str:
    return f"{drift.service_name:<{NAME_WIDTH}}| {drift.short_sha}  | {format_duration(drift.elapsed, limit=2)}"


def fetch_drift(
    client: GitLabClient,
    project_id: int,
    service: ServiceEnvironment,
    *,
    now: Optional[Callable[[], datetime]] = None,
    cancel: Optional[threading.Event] = None,
) -> Optional[DeploymentDrift]:
    """Last deployment drift for ``service``; None if it was never deployed or the run was cancelled."""
    if cancel is not None and cancel.is_set():
        logger.debug("drift_cancelled", service=service.display_name)
        return None
    try:
        raw = client.get_environment(project_id, service.environment_id)
    except GitLabAPIError as e:
        raise DriftError(f"get prod environment: {e}") from e

    env = Environment.model_validate(raw)
    if env.last_deployment is None:
        logger.debug("environment_not_deployed", service=service.display_name)
        return None

    deployable = env.last_deployment.deployable
    if deployable is None:
        raise DriftError("last deployment has no deployable")
    if deployable.finished_at is None:
        raise DriftError("last deployment has no finish time")
    if deployable.commit is None or not deployable.commit.short_id:
        raise DriftError("last deployment has no commit")

    finished_at = deployable.finished_at
    if finished_at.tzinfo is None:
        finished_at = finished_at.replace(tzinfo=timezone.utc)

    current = (now or _utcnow)()
    return DeploymentDrift(
        service_name=service.display_name,
        short_sha=deployable.commit.short_id,
        elapsed=current - finished_at,
    )


def report_drifts(
    client: GitLabClient,
    project_id: int,
    services: Iterable[ServiceEnvironment],
    *,
    out: Optional[TextIO] = None,
    now: Optional[Callable[[], datetime]] = None,
    cancel: Optional[threading.Event] = None,
    tracer=None,
) -> None:
    """Print the header, then one row per deployed service; returns after every task ends.

    An interrupt during the join sets ``cancel`` before propagating, so tasks
    that have not sent their request yet skip it.
    """
    stream = out if out is not None else sys.stdout
    tracer = default_tracer(tracer)
    if cancel is None:
        cancel = threading.Event()

    with tracer.start_as_current_span("get-drifts", attributes={"project_id": project_id}):
        parent_ctx = otel_context.get_current()
        stream.write(HEADER + "\n")

        def _task(service: ServiceEnvironment) -> None:
            token = otel_context.attach(parent_ctx)
            try:
                with tracer.start_as_current_span(
                    "get-drift", attributes={"service": service.display_name},
                ) as span:
                    try:
                        drift = fetch_drift(client, project_id, service, now=now, cancel=cancel)
                    except (DriftError, ValidationError) as e:
                        span.record_exception(e)
                        span.set_status(Status(StatusCode.ERROR, str(e)))
                        if cancel.is_set():
                            # the shared session is torn down once the run is interrupted
                            logger.debug("drift_cancelled", service=service.display_name, error=str(e))
                        else:
                            logger.error("get_drift_failed", service=service.display_name, error=str(e))
                        return
                    if drift is not None:
                        stream.write(format_row(drift) + "\n")
            finally:
                otel_context.detach(token)

        threads = []
        for service in services:
            t = threading.Thread(
                target=_task,
                args=(service,),
                name=f"drift-{service.display_name}",
                daemon=True,
            )
            threads.append(t)
            t.start()

        try:
            for t in threads:
                t.join()
        except KeyboardInterrupt:
            cancel.set()
            raise
        stream.flush()
