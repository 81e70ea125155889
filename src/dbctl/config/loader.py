import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from dbctl.core.models import DbctlConfig
from dbctl.utils.diagnostics import ConfigurationError

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]+))?\}")

DEFAULT_CONFIG_PATH = Path("/etc/dbctl/dbctl.yaml")
CONFIG_PATH_ENV = "DBCTL_CONFIG"

ALLOWED_KEYS = {"dbctl", "service", "endpoint", "polling"}


def interpolate_env_vars(content: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variables."""
    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, content)


def resolve_config_path(path: Optional[Path] = None) -> Path:
    """Explicit path first, then $DBCTL_CONFIG, then the packaged default."""
    if path is not None:
        return path
    from_env = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if from_env:
        return Path(from_env)
    return DEFAULT_CONFIG_PATH


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load dbctl.yaml with environment variable interpolation.

    A missing file yields an empty dict so every section falls back to its
    defaults. Keys outside dbctl, service, endpoint and polling are dropped.
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text()
        interpolated_content = interpolate_env_vars(content)
        full_config = yaml.safe_load(interpolated_content) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(str(exc), path=str(path)) from exc

    if not isinstance(full_config, dict):
        raise ConfigurationError("top level must be a mapping", path=str(path))

    return {k: v for k, v in full_config.items() if k in ALLOWED_KEYS}


def load_settings(path: Optional[Path] = None) -> DbctlConfig:
    """Resolve, load and validate the configuration into a ``DbctlConfig``."""
    config_path = resolve_config_path(path)
    config_data = load_config(config_path)
    try:
        return DbctlConfig.from_dict(config_data)
    except (ValidationError, TypeError) as exc:
        raise ConfigurationError(str(exc), path=str(config_path)) from exc
