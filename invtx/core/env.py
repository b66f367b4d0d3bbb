"""
Environment variable management with .env file support.

Loads ``.env`` files through python-dotenv and provides typed accessors used
by ``GroupConfig.from_env()``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


class EnvManager:
    """
    Manages environment variables for invtx deployments.

    Example:
        >>> env = EnvManager()
        >>> env.load()  # Loads .env if exists
        >>> retries = env.get_int("INVTX_ALLOWED_RETRIES", 5)
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = True):
        """
        Initialize the environment manager.

        Args:
            project_root: Directory searched for the .env file
            auto_load: Automatically load .env file if found
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False

        if auto_load:
            self.load()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load environment variables from a .env file.

        Args:
            env_file: Path to .env file (defaults to .env in project root)
            override: Whether to override existing environment variables

        Returns:
            True if the file was loaded, False if it does not exist
        """
        env_file = self.project_root / ".env" if env_file is None else Path(env_file)

        if not env_file.exists():
            return False

        load_dotenv(env_file, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        """
        Get an environment variable value.

        Raises:
            ValueError: If required=True and the variable is not set
        """
        value = os.environ.get(key, default)

        if required and value is None:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)

        return value

    def require(self, key: str) -> str:
        return self.get(key, required=True)  # type: ignore[return-value]

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get environment variable as boolean."""
        value = (self.get(key, "") or "").lower()
        if value in ("true", "1", "yes", "on"):
            return True
        if value in ("false", "0", "no", "off"):
            return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Get environment variable as integer."""
        try:
            return int(self.get(key, str(default)))  # type: ignore[arg-type]
        except (ValueError, TypeError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get environment variable as float."""
        try:
            return float(self.get(key, str(default)))  # type: ignore[arg-type]
        except (ValueError, TypeError):
            return default

    def substitute(self, text: str) -> str:
        """
        Substitute ${VAR} and ${VAR:-default} references in text.

        Example:
            >>> os.environ["CHEST_SIZE"] = "27"
            >>> env.substitute("size: ${CHEST_SIZE}")
            'size: 27'
        """
        pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"

        def replace(match):
            value = os.environ.get(match.group(1))
            if value is not None:
                return value
            if match.group(2) is not None:
                return match.group(2)
            return match.group(0)

        return re.sub(pattern, replace, text)

    def substitute_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Recursively substitute environment variables in string values."""
        result: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self.substitute(value)
            elif isinstance(value, dict):
                result[key] = self.substitute_dict(value)
            elif isinstance(value, list):
                result[key] = [
                    self.substitute(item)
                    if isinstance(item, str)
                    else self.substitute_dict(item)
                    if isinstance(item, dict)
                    else item
                    for item in value
                ]
            else:
                result[key] = value
        return result


# Global instance
_global_env: EnvManager | None = None


def get_env() -> EnvManager:
    """Get the global environment manager instance."""
    global _global_env
    if _global_env is None:
        _global_env = EnvManager()
    return _global_env
