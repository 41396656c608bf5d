"""Project resolution and prod environment listing.

Both steps are fatal on failure: without a project or a complete environment
list the drift report would be meaningless.
"""
from typing import List, Optional

from pydantic import ValidationError

from .errors import GitLabAPIError, ResolveError
from .gitlab_client import GitLabClient
from .logging_utils import logger
from .models import Environment, Project, ServiceEnvironment
from .tracing import default_tracer


def resolve_project_id(client: GitLabClient, search: str, *, tracer=None) -> int:
    """Return the id of the single private project matching ``search``."""
    tracer = default_tracer(tracer)
    with tracer.start_as_current_span("get-project-id", attributes={"search": search}) as span:
        span.add_event("asking gitlab for project id")
        try:
            raw = client.list_projects(search, search_namespaces=True, visibility="private")
            projects = [Project.model_validate(p) for p in raw]
        except (GitLabAPIError, ValidationError) as e:
            raise ResolveError(f"listing projects: {e}") from e

        if len(projects) > 1:
            raise ResolveError("too many projects matched")
        if len(projects) < 1:
            raise ResolveError("no projects matched")

        project = projects[0]
        span.set_attribute("project_id", project.id)
        logger.debug("project_resolved", project_id=project.id, path=project.path_with_namespace)
        return project.id


def split_environment_name(name: str, separator: str = "/") -> Optional[str]:
    """Display name of a ``<prefix>/<service>`` environment, or None if it doesn't fit."""
    parts = (name or "").split(separator)
    if len(parts) != 2 or not all(parts):
        return None
    return parts[1]


def list_service_environments(
    client: GitLabClient,
    project_id: int,
    *,
    marker: str = "prod/",
    separator: str = "/",
    per_page: int = 20,
    tracer=None,
) -> List[ServiceEnvironment]:
    """Page through available environments matching ``marker``.

    Raises:
        ResolveError: any page fails; partial results are discarded
    """
    tracer = default_tracer(tracer)
    with tracer.start_as_current_span("get-envs", attributes={"project_id": project_id}) as span:
        all_envs: List[Environment] = []
        page: Optional[int] = 1
        while page:
            try:
                raw, next_page = client.list_environments(
                    project_id, page=page, per_page=per_page, states="available", search=marker,
                )
                all_envs.extend(Environment.model_validate(e) for e in raw)
            except (GitLabAPIError, ValidationError) as e:
                raise ResolveError(f"list environments: {e}") from e
            logger.debug("environment_page_fetched", project_id=project_id, page=page, count=len(raw))
            page = next_page

        services: List[ServiceEnvironment] = []
        for env in all_envs:
            display_name = split_environment_name(env.name, separator)
            if display_name is None:
                continue
            services.append(ServiceEnvironment(display_name=display_name, environment_id=env.id))

        span.set_attribute("environments", len(all_envs))
        span.set_attribute("services", len(services))
        logger.debug("environments_listed", project_id=project_id, total=len(all_envs), services=len(services))
        return services
