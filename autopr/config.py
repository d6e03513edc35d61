"""Configuration management for the autopr tool."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from autopr.errors import AutoPRError
from autopr.models import Config
from autopr.utils.logger import get_logger
from autopr.utils.shell import get_git_root

logger = get_logger(__name__)

CONFIG_DIR_NAME = ".autopr"
ENV_OVERRIDE_PREFIX = "AUTOPR_"

# Plain environment variables and the setting each one fills
ENVIRONMENT_SETTINGS = {
    "GITHUB_TOKEN": ("github", "token"),
    "SOURCE_GITHUB_ORG": ("github", "source_org"),
    "TARGET_GITHUB_ORG": ("github", "target_org"),
    "TARGET_GITHUB_REPO": ("github", "target_repo"),
    "JIRA_TOKEN": ("jira", "token"),
    "JIRA_URL": ("jira", "url"),
    "JIRA_USER_NAME": ("jira", "username"),
    "JIRA_ACCOUNT_ID": ("jira", "account_id"),
    "JIRA_PROJECT_NAME": ("jira", "project"),
    "JIRA_BOARD_ID": ("jira", "board_id"),
    "JIRA_SPRINT_FIELD_NAME": ("jira", "sprint_field"),
}


class ConfigError(AutoPRError):
    """Configuration error."""
    pass


class ConfigManager:
    """Builds the run configuration from files and the environment.

    Loading order (later sources override earlier):
    1. Defaults from the Config model
    2. User configuration (~/.autopr/config.yaml)
    3. Project configuration (<git root>/.autopr/config.yaml)
    4. Plain environment variables (GITHUB_TOKEN, JIRA_URL, ...)
    5. AUTOPR_<SECTION>__<KEY> overrides
    """

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self._user_config_path = Path.home() / CONFIG_DIR_NAME / "config.yaml"
        self._project_config_path: Optional[Path] = None
        self._project_config_searched = False

    def _find_project_config(self) -> Optional[Path]:
        """Find project configuration file at the git root.

        The lookup runs git, so it happens on first use and only once.
        """
        if self._project_config_searched:
            return self._project_config_path
        self._project_config_searched = True

        git_root = get_git_root()
        if git_root is None:
            return None
        project_config = git_root / CONFIG_DIR_NAME / "config.yaml"
        if project_config.exists() and project_config != self._user_config_path:
            self._project_config_path = project_config
            logger.debug(f"Found project config: {project_config}")
        return self._project_config_path

    def _expand_env_vars(self, data: Any) -> Any:
        """Recursively expand environment variables in configuration data.

        Supports ${VAR}, ${VAR:-default} and $VAR.
        """
        if isinstance(data, str):
            def replace_env_var(match):
                var_expr = match.group(1)
                if ":-" in var_expr:
                    var_name, default_value = var_expr.split(":-", 1)
                    return self.environ.get(var_name, default_value)
                var_value = self.environ.get(var_expr)
                if var_value is None:
                    logger.warning(f"Environment variable '{var_expr}' not found")
                    return match.group(0)
                return var_value

            data = re.sub(r"\$\{([^}]+)\}", replace_env_var, data)

            def replace_simple_var(match):
                var_value = self.environ.get(match.group(1))
                if var_value is None:
                    logger.warning(f"Environment variable '{match.group(1)}' not found")
                    return match.group(0)
                return var_value

            data = re.sub(r"\$([A-Z_][A-Z0-9_]*)", replace_simple_var, data)

        elif isinstance(data, dict):
            return {key: self._expand_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._expand_env_vars(item) for item in data]

        return data

    def _load_yaml_file(self, path: Path) -> Dict[str, Any]:
        """Load and parse YAML configuration file.

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        if not path.exists():
            return {}

        logger.debug(f"Loading config file: {path}")
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        return self._expand_env_vars(data)

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_environment(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Fill settings from the plain environment variables."""
        for env_name, (section, key) in ENVIRONMENT_SETTINGS.items():
            value = self.environ.get(env_name)
            if value is None or value == "":
                continue
            config_data.setdefault(section, {})[key] = value
            logger.debug(f"Applied {env_name} -> {section}.{key}")
        return config_data

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply AUTOPR_ prefixed overrides.

        Double underscores separate nested keys, for example
        AUTOPR_GITHUB__TARGET_BRANCH -> github.target_branch.
        """
        for key, value in self.environ.items():
            if not key.startswith(ENV_OVERRIDE_PREFIX):
                continue

            key_parts = key[len(ENV_OVERRIDE_PREFIX):].lower().split("__")
            current = config_data
            for part in key_parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            final_key = key_parts[-1]
            if value.lower() in ("true", "false"):
                current[final_key] = value.lower() == "true"
            else:
                current[final_key] = value

            logger.debug(f"Applied env override: {'.'.join(key_parts)}")

        return config_data

    def load_config(self, include_project: bool = True) -> Config:
        """Load configuration from all sources.

        Args:
            include_project: Also read the project configuration, which
                needs git to find the repository root

        Raises:
            ConfigError: If configuration is invalid
        """
        config_data: Dict[str, Any] = {}
        config_data = self._merge_configs(config_data, self._load_yaml_file(self._user_config_path))
        project_config_path = self._find_project_config() if include_project else None
        if project_config_path:
            config_data = self._merge_configs(
                config_data, self._load_yaml_file(project_config_path)
            )
        config_data = self._apply_environment(config_data)
        config_data = self._apply_env_overrides(config_data)

        try:
            config = Config.model_validate(config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        logger.debug("Configuration loaded successfully")
        return config

    def create_default_config(self) -> Path:
        """Write a default user configuration file.

        Existing files are left alone.

        Returns:
            Path to the configuration file

        Raises:
            ConfigError: If the file cannot be written
        """
        config_path = self._user_config_path
        if config_path.exists():
            logger.warning(f"Configuration file already exists: {config_path}")
            return config_path

        config_data = Config().model_dump(mode="json")
        # Secrets belong in the environment, not on disk
        config_data["github"]["token"] = "${GITHUB_TOKEN:-}"
        config_data["jira"]["token"] = "${JIRA_TOKEN:-}"

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w") as f:
                f.write("# autopr configuration\n")
                f.write("# Environment variables override these values\n\n")
                yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Failed to create configuration file {config_path}: {e}") from e

        logger.info(f"Default configuration created: {config_path}")
        return config_path

    def list_config_files(self) -> Dict[str, Optional[Path]]:
        """List configuration file paths that exist."""
        return {
            "user": self._user_config_path if self._user_config_path.exists() else None,
            "project": self._find_project_config(),
        }


def load_config(environ: Optional[Dict[str, str]] = None) -> Config:
    """Build the configuration for one run."""
    return ConfigManager(environ).load_config()
