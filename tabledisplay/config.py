"""Table display configuration loading with layered precedence.

Configuration precedence (highest wins):
1. Environment variables (TABLEDISPLAY_*)
2. Project config (.tabledisplay/config.json)
3. User config (~/.tabledisplay/config.json)
4. Built-in defaults

Usage:
    from tabledisplay.config import load_config

    config = load_config(workspace_path=Path.cwd())
    config.limits.rows_limit

Environment Variables:
    TABLEDISPLAY_ROWS_LIMIT: Row count above which a table is "too big" (default: 100000)
    TABLEDISPLAY_ROW_LIMIT_TO_INDEX: Rows shown as a preview of a big table (default: 10000)
    TABLEDISPLAY_ROW_LIMIT_MSG: Advisory template with {limit}, {rows}, {preview}
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, get_type_hints

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT_MSG = (
    "Note: table is too big to display.\n"
    "      The limit is {limit} rows, but this table has {rows} rows. \n"
    "      The first {preview} rows are displayed as a preview."
)


def _parse_env_value(value: str, target_type: Type) -> Any:
    """Parse environment variable value to target type."""
    if target_type == int:
        return int(value)
    elif target_type == bool:
        return value.lower() in ("true", "1", "yes", "on")
    return value


@dataclass
class RowLimitConfig:
    """Size guard for big tables.

    Attributes:
        rows_limit: Tables with more rows than this are flagged as too big.
        row_limit_to_index: Number of rows a too-big table shows as preview.
        row_limit_msg: Advisory template; placeholders ``{limit}``,
            ``{rows}`` and ``{preview}``.
    """
    rows_limit: int = 100000
    row_limit_to_index: int = 10000
    row_limit_msg: str = DEFAULT_ROW_LIMIT_MSG

    def __post_init__(self):
        """Validate configuration values."""
        if self.rows_limit < 1:
            raise ValueError("rows_limit must be at least 1")
        if self.row_limit_to_index < 1:
            raise ValueError("row_limit_to_index must be at least 1")
        if self.row_limit_to_index > self.rows_limit:
            raise ValueError("row_limit_to_index must be <= rows_limit")
        try:
            self.format_message(0)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                f"row_limit_msg may only use {{limit}}, {{rows}} and {{preview}}: {e!r}"
            ) from e

    def format_message(self, rows: int) -> str:
        return self.row_limit_msg.format(
            limit=self.rows_limit, rows=rows, preview=self.row_limit_to_index
        )


@dataclass
class TableDisplayConfig:
    """Root configuration.

    Attributes:
        limits: Size guard settings.
    """
    limits: RowLimitConfig = field(default_factory=RowLimitConfig)


# Maps "section.field" paths to environment variable names
ENV_VAR_MAPPING: Dict[str, str] = {
    "limits.rows_limit": "TABLEDISPLAY_ROWS_LIMIT",
    "limits.row_limit_to_index": "TABLEDISPLAY_ROW_LIMIT_TO_INDEX",
    "limits.row_limit_msg": "TABLEDISPLAY_ROW_LIMIT_MSG",
}


def _find_config_files(workspace_path: Optional[Path] = None) -> List[Path]:
    """Existing config files, lowest precedence first."""
    files = []

    user_config = Path.home() / ".tabledisplay" / "config.json"
    if user_config.exists():
        files.append(user_config)

    if workspace_path:
        project_config = workspace_path / ".tabledisplay" / "config.json"
        if project_config.exists():
            files.append(project_config)

    return files


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base, returning new dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to config dict."""
    result = config_dict.copy()
    hints = get_type_hints(RowLimitConfig)

    for path, env_var in ENV_VAR_MAPPING.items():
        env_value = os.environ.get(env_var)
        if env_value is None:
            continue

        section, field_name = path.split(".")
        current = result.get(section)
        current = dict(current) if isinstance(current, dict) else {}
        try:
            current[field_name] = _parse_env_value(env_value, hints.get(field_name, str))
            logger.debug(f"Applied env override: {env_var}={env_value}")
        except (ValueError, TypeError) as e:
            logger.warning(f"Invalid value for {env_var}: {env_value} ({e})")
        result[section] = current

    return result


def _dict_to_limits(data: Dict[str, Any]) -> RowLimitConfig:
    """Convert dict to RowLimitConfig, falling back to defaults if invalid."""
    valid_fields = {f.name for f in fields(RowLimitConfig)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    unknown = set(data.keys()) - valid_fields
    if unknown:
        logger.warning(f"Unknown limits config keys (ignored): {unknown}")

    try:
        return RowLimitConfig(**filtered)
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid limits config values, using defaults: {e}")
        return RowLimitConfig()


def load_config(workspace_path: Optional[Path] = None) -> TableDisplayConfig:
    """Load configuration from files and environment.

    Args:
        workspace_path: Project directory holding ``.tabledisplay/config.json``.
            If None, only user config and environment variables are used.
    """
    merged: Dict[str, Any] = {}

    for config_file in _find_config_files(workspace_path):
        try:
            with open(config_file) as f:
                file_config = json.load(f)

            if not isinstance(file_config, dict):
                logger.warning(f"Invalid config format in {config_file} (expected object)")
                continue

            merged = _deep_merge(merged, file_config)
            logger.debug(f"Loaded config from {config_file}")

        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in {config_file}: {e}")
        except OSError as e:
            logger.warning(f"Failed to read {config_file}: {e}")

    merged = _apply_env_overrides(merged)

    limits_data = merged.get("limits", {})
    if not isinstance(limits_data, dict):
        logger.warning("Invalid 'limits' config (expected dict), using defaults")
        limits_data = {}
    return TableDisplayConfig(limits=_dict_to_limits(limits_data))


_default_config: Optional[TableDisplayConfig] = None


def get_default_config() -> TableDisplayConfig:
    """Configuration used by tables created without an explicit one.

    Loaded once per process, from the current directory.
    """
    global _default_config
    if _default_config is None:
        _default_config = load_config(Path.cwd())
    return _default_config


def reset_default_config() -> None:
    """Forget the cached default so the next table reloads it."""
    global _default_config
    _default_config = None


__all__ = [
    "DEFAULT_ROW_LIMIT_MSG",
    "RowLimitConfig",
    "TableDisplayConfig",
    "load_config",
    "get_default_config",
    "reset_default_config",
]
