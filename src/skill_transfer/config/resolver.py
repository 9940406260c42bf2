from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

import yaml  # PyYAML

from skill_transfer.config.models import (
    DEFAULT_DETECTOR_TIMEOUT_S,
    DEFAULT_DETECTOR_URL,
    REQUIRED_PARAMETERS,
    KnowledgeConfig,
)
from skill_transfer.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SKILL_TRANSFER_"


def _env_name(parameter: str) -> str:
    # "task_file_path" -> "SKILL_TRANSFER_TASK_FILE_PATH"
    return ENV_PREFIX + parameter.upper()


def load_params_file(path: str | Path) -> dict[str, object]:
    """Reads a flat YAML parameter file (name: value)."""
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Could not read parameter file: {p}", data={"error": str(e)}) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse parameter file: {p}", data={"error": str(e)}) from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Parameter file must hold a mapping: {p}")
    return {str(k): v for k, v in raw.items()}


def load_env(dotenv_path: Optional[str | Path] = None) -> Mapping[str, str]:
    """Returns os.environ after merging a .env file (existing variables win)."""
    from dotenv import load_dotenv

    load_dotenv(dotenv_path=dotenv_path, override=False)
    return os.environ


def resolve_config(
    *,
    cli_params: Optional[Mapping[str, object]] = None,
    params_file: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> KnowledgeConfig:
    """
    Resolves startup parameters.

    Precedence per parameter: CLI value > parameter file > environment
    (SKILL_TRANSFER_<NAME>). None values count as absent.

    Raises:
        ConfigError: when a mandatory parameter is missing or a value is invalid.
    """
    layers: list[Mapping[str, object]] = []
    if cli_params:
        layers.append(cli_params)
    if params_file is not None:
        layers.append(load_params_file(params_file))
    env = environ if environ is not None else {}
    known = (*REQUIRED_PARAMETERS, "detector_url", "detector_timeout_s")
    layers.append({name: env[_env_name(name)] for name in known if _env_name(name) in env})

    def lookup(name: str) -> object | None:
        for layer in layers:
            v = layer.get(name)
            if v is not None and v != "":
                return v
        return None

    values: dict[str, object] = {}
    for name in REQUIRED_PARAMETERS:
        v = lookup(name)
        if v is None:
            raise ConfigError(
                f"Could not find parameter '{name}' (set --{name.replace('_', '-')}, "
                f"a parameter file entry or {_env_name(name)}).",
                parameter=name,
            )
        if not isinstance(v, (str, Path)):
            raise ConfigError(f"Parameter '{name}' must be a path, got {type(v).__name__}", parameter=name)
        values[name] = Path(v).expanduser()

    detector_url = lookup("detector_url") or DEFAULT_DETECTOR_URL
    raw_timeout = lookup("detector_timeout_s")
    try:
        timeout_s = DEFAULT_DETECTOR_TIMEOUT_S if raw_timeout is None else float(raw_timeout)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Parameter 'detector_timeout_s' must be a number, got {raw_timeout!r}", parameter="detector_timeout_s") from e
    if timeout_s <= 0:
        raise ConfigError("Parameter 'detector_timeout_s' must be > 0", parameter="detector_timeout_s")

    cfg = KnowledgeConfig(
        task_file_path=values["task_file_path"],  # type: ignore[arg-type]
        setup_file_path=values["setup_file_path"],  # type: ignore[arg-type]
        motion_template_file_path=values["motion_template_file_path"],  # type: ignore[arg-type]
        motion_directory_path=values["motion_directory_path"],  # type: ignore[arg-type]
        detector_url=str(detector_url),
        detector_timeout_s=timeout_s,
    )
    logger.debug("Resolved configuration: %s", cfg)
    return cfg
