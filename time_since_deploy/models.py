from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict


# ------------------------------------------------------------
# GitLab payloads (only the fields the report reads)
# ------------------------------------------------------------

class GitLabModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Project(GitLabModel):
    id: int
    name: str = ""
    path_with_namespace: str = ""
    visibility: Optional[str] = None


class Commit(GitLabModel):
    id: Optional[str] = None
    short_id: Optional[str] = None


class Deployable(GitLabModel):
    id: Optional[int] = None
    status: Optional[str] = None
    finished_at: Optional[datetime] = None
    commit: Optional[Commit] = None


class Deployment(GitLabModel):
    id: int
    deployable: Optional[Deployable] = None


class Environment(GitLabModel):
    id: int
    name: str
    state: Optional[str] = None
    last_deployment: Optional[Deployment] = None


# ------------------------------------------------------------
# Report values
# ------------------------------------------------------------

@dataclass(frozen=True)
class ServiceEnvironment:
    """A ``prod/<service>`` environment, keyed by its display name."""

    display_name: str
    environment_id: int


@dataclass(frozen=True)
class DeploymentDrift:
    """How long ago a service's last deployment finished, and at which commit."""

    service_name: str
    short_sha: str
    elapsed: timedelta
