"""Run settings: defaults < YAML file < environment < command-line flags."""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError
from .gitlab_client import DEFAULT_GITLAB_URL, DEFAULT_TIMEOUT


TOKEN_ENV = "GITLAB_TOKEN"
URL_ENV = "GITLAB_URL"

# Keys a --config YAML file may set
FILE_KEYS = ("gitlab_url", "marker", "separator", "per_page", "timeout")


@dataclass
class Settings:
    project: str
    token: str
    gitlab_url: str = DEFAULT_GITLAB_URL
    trace_path: Optional[Path] = None
    marker: str = "prod/"
    separator: str = "/"
    per_page: int = 20
    timeout: float = DEFAULT_TIMEOUT


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read the optional YAML config; unknown keys are rejected."""
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"parse config {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"config {path}: expected a mapping at top level")

    unknown = sorted(set(raw) - set(FILE_KEYS))
    if unknown:
        raise ConfigError(f"config {path}: unknown keys {', '.join(unknown)}")
    return raw


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(values)
    try:
        if "per_page" in out:
            out["per_page"] = int(out["per_page"])
        if "timeout" in out:
            out["timeout"] = float(out["timeout"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid config value: {e}") from e
    if out.get("per_page", 1) < 1:
        raise ConfigError("per_page must be positive")
    if out.get("timeout", 1) <= 0:
        raise ConfigError("timeout must be positive")
    if "separator" in out and not out["separator"]:
        raise ConfigError("separator must not be empty")
    return out


def load_settings(args: Any, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from parsed CLI args (argparse namespace) and the environment.

    Raises:
        ConfigError: project or token missing, or the config file is invalid
    """
    env = os.environ if environ is None else environ

    project = (getattr(args, "project", None) or "").strip()
    if not project:
        raise ConfigError("project not set")

    token = (env.get(TOKEN_ENV) or "").strip()
    if not token:
        raise ConfigError("token not set")

    values: Dict[str, Any] = {}
    config_path = getattr(args, "config", None)
    if config_path:
        values.update(load_config_file(Path(config_path)))

    env_url = (env.get(URL_ENV) or "").strip()
    if env_url:
        values["gitlab_url"] = env_url

    cli_url = (getattr(args, "gitlab_url", None) or "").strip()
    if cli_url:
        values["gitlab_url"] = cli_url

    trace = getattr(args, "trace", None)
    if trace:
        values["trace_path"] = Path(trace)

    known = {f.name for f in fields(Settings)}
    values = {k: v for k, v in _coerce(values).items() if k in known}
    return Settings(project=project, token=token, **values)
