# time-since-deploy - Drift report
# Licensed under Apache-2.0.

"""
Report how long ago each prod environment of a GitLab project was deployed.

Usage:
    time-since-deploy --project NAME [--trace FILE] [--config FILE] [--gitlab-url URL]

Requires GITLAB_TOKEN in the environment (or in a .env file).
"""

import argparse
import os
import sys
import threading
from typing import List, Optional, TextIO

from dotenv import load_dotenv

from .config import Settings, load_settings
from .discovery import list_service_environments, resolve_project_id
from .errors import ConfigError, DriftError
from .gitlab_client import GitLabClient
from .logging_utils import logger
from .report import report_drifts
from .tracing import Tracing, default_tracer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="time-since-deploy",
        description="Show time since the last deployment of every prod/* environment",
    )
    parser.add_argument("--project", default="",
                        help="selects the project to be used (name or namespace fragment)")
    parser.add_argument("--trace", default="",
                        help="file to write trace spans to (JSON lines)")
    parser.add_argument("--config", default="",
                        help="optional YAML file with gitlab_url, marker, separator, per_page, timeout")
    parser.add_argument("--gitlab-url", default="",
                        help="GitLab base URL (default: $GITLAB_URL or https://gitlab.com)")
    return parser


def run(settings: Settings, *, out: Optional[TextIO] = None,
        cancel: Optional[threading.Event] = None, client: Optional[GitLabClient] = None,
        tracer=None) -> None:
    """Resolve, list and report. Raises DriftError on any fatal step failure."""
    tracer = default_tracer(tracer)
    client = client or GitLabClient(settings.token, settings.gitlab_url, timeout=settings.timeout)
    with client, tracer.start_as_current_span("full-run", attributes={"project": settings.project}):
        try:
            pid = resolve_project_id(client, settings.project, tracer=tracer)
        except DriftError as e:
            raise DriftError(f"get project id: {e}") from e

        try:
            services = list_service_environments(
                client, pid,
                marker=settings.marker,
                separator=settings.separator,
                per_page=settings.per_page,
                tracer=tracer,
            )
        except DriftError as e:
            raise DriftError(f"get envs: {e}") from e

        report_drifts(client, pid, services, out=out, cancel=cancel, tracer=tracer)


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    logger.set_level(os.getenv("LOG_LEVEL", "INFO"))

    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args)
    except ConfigError as e:
        raise SystemExit(str(e))

    tracing = Tracing(settings.trace_path)
    cancel = threading.Event()
    failure = None
    try:
        run(settings, cancel=cancel, tracer=tracing.tracer)
    except DriftError as e:
        failure = str(e)
    except KeyboardInterrupt:
        cancel.set()
        print("interrupted", file=sys.stderr)
        failure = 130

    try:
        tracing.close()
    except OSError as e:
        if failure is None:
            failure = f"write trace {settings.trace_path}: {e}"
        else:
            logger.error("trace_write_failed", path=str(settings.trace_path), error=str(e))

    if failure is not None:
        raise SystemExit(failure)


if __name__ == "__main__":
    main()
