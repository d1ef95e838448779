#!/usr/bin/env python3

import os
import json
import tomllib
import logging
import sys
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .domain.repository import WatchedRepository
from .exit_codes import ConfigError

logger = logging.getLogger("ecscicd")

LOG_FORMAT = "%(levelname)s: %(message)s"

ENV_PREFIX = "ECSCICD_"

# Variable names the trigger has always read; ECSCICD_<KEY> wins over these.
LEGACY_ENV_NAMES = {
    "PROJECT": "project",
    "BRANCH": "branch",
    "PAT_TOKEN": "token",
    "ECR": "registry",
    "AWS_DEFAULT_REGION": "region",
}

REQUIRED_KEYS = ("project", "token", "registry", "region")


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Send log records to stderr, keeping stdout for results."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


@dataclass(frozen=True)
class CIConfig:
    """
    Settings for one invocation, resolved once at startup.

    Services receive this object; nothing below the CLI reads the
    environment directly.
    """
    project: str
    token: str
    registry: str
    region: str
    branch: str = "main"
    repos_dir: str = "repos"
    dockerfile: Optional[str] = None
    push_latest: bool = False
    log_level: str = "INFO"
    command_timeout: Optional[int] = None

    @property
    def repository(self) -> WatchedRepository:
        try:
            return WatchedRepository.from_project(self.project, self.branch, self.repos_dir)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    @property
    def auth_url(self) -> str:
        """Clone URL carrying the access token."""
        return self.repository.clone_url(self.token)

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if redact and data.get('token'):
            data['token'] = '***'
        return data


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "project": "",
        "branch": "main",
        "token": "",
        "registry": "",
        "region": "",
        "repos_dir": "repos",
        "dockerfile": None,
        "push_latest": False,
        "log_level": "INFO",
        "command_timeout": None,
    }


def get_config_path(explicit: Optional[Union[str, Path]] = None,
                    env: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """
    Get the path to the configuration file, if any.

    Checks in order:
    1. The path given on the command line
    2. ECSCICD_CONFIG environment variable
    """
    env = os.environ if env is None else env
    if explicit:
        return Path(explicit).expanduser()
    if env.get(f"{ENV_PREFIX}CONFIG"):
        return Path(env[f"{ENV_PREFIX}CONFIG"]).expanduser()
    return None


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """Read a JSON, TOML or YAML configuration file."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        if config_path.suffix.lower() == '.toml':
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f)
        else:
            # Default to JSON format
            with open(config_path, 'r') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return file_config


def _coerce(value: str) -> Any:
    """Convert an environment string to bool/int where it looks like one."""
    if value.lower() in ('true', 'yes', 'on'):
        return True
    elif value.lower() in ('false', 'no', 'off'):
        return False
    elif value.isdigit():
        return int(value)
    return value


def apply_env_overrides(config: Dict[str, Any],
                        env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    PROJECT, BRANCH, PAT_TOKEN, ECR and AWS_DEFAULT_REGION are read first,
    then ECSCICD_<KEY> for any configuration key.
    For example: ECSCICD_PUSH_LATEST=true
    """
    env = os.environ if env is None else env
    config = dict(config)

    for env_key, config_key in LEGACY_ENV_NAMES.items():
        if env.get(env_key):
            config[config_key] = env[env_key]

    for env_key, value in env.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        config_key = env_key[len(ENV_PREFIX):].lower()
        if config_key not in config:
            continue
        # Identifiers stay strings even if they look numeric.
        if config_key in ("project", "branch", "token", "registry", "region", "repos_dir"):
            config[config_key] = value
        else:
            config[config_key] = _coerce(value)

    return config


def build_config(raw: Mapping[str, Any]) -> CIConfig:
    """Validate a merged settings mapping and freeze it."""
    unknown = sorted(set(raw) - set(get_default_config()))
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

    missing = [key for key in REQUIRED_KEYS if not raw.get(key)]
    if missing:
        names = {value: key for key, value in LEGACY_ENV_NAMES.items()}
        raise ConfigError(
            "Missing required settings: "
            + ", ".join(f"{key} ({names[key]})" for key in missing)
        )

    timeout = raw.get("command_timeout")
    if timeout in ("", None):
        timeout = None
    else:
        try:
            timeout = int(timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"command_timeout must be a number of seconds, got {timeout!r}") from e
        if timeout <= 0:
            raise ConfigError("command_timeout must be positive")

    push_latest = raw.get("push_latest", False)
    if isinstance(push_latest, str):
        push_latest = _coerce(push_latest)
    if push_latest in (0, 1):
        push_latest = bool(push_latest)
    if not isinstance(push_latest, bool):
        raise ConfigError(f"push_latest must be true or false, got {push_latest!r}")

    config = CIConfig(
        project=str(raw["project"]),
        token=str(raw["token"]),
        registry=str(raw["registry"]).rstrip('/'),
        region=str(raw["region"]),
        branch=str(raw.get("branch") or "main"),
        repos_dir=str(raw.get("repos_dir") or "repos"),
        dockerfile=raw.get("dockerfile") or None,
        push_latest=push_latest,
        log_level=str(raw.get("log_level") or "INFO").upper(),
        command_timeout=timeout,
    )
    try:
        WatchedRepository.from_project(config.project, config.branch, config.repos_dir)
    except ValueError as e:
        raise ConfigError(str(e)) from e
    return config


def load_config(config_path: Optional[Union[str, Path]] = None,
                env: Optional[Mapping[str, str]] = None,
                overrides: Optional[Mapping[str, Any]] = None) -> CIConfig:
    """
    Load configuration.

    Defaults, then the config file (if any), then the environment, then
    explicit overrides from the command line.
    """
    env = os.environ if env is None else env
    config = get_default_config()

    path = get_config_path(config_path, env)
    if path is not None:
        config.update(read_config_file(path))
        logger.debug(f"Loaded config from {path}")

    config = apply_env_overrides(config, env)

    if overrides:
        config.update({k: v for k, v in overrides.items() if v is not None})

    return build_config(config)
