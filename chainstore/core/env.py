"""
Environment variable management with .env file support.

Configuration for the store layer is sourced from the process environment.
A ``.env`` file in the project root is loaded first when present, without
overriding variables that are already set.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


class EnvManager:
    """
    Typed access to environment variables.

    Example:
        >>> env = EnvManager()
        >>> env.get("REDIS_HOST", "localhost")
        'localhost'
        >>> env.get_int("REDIS_PORT", 6379)
        6379
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = True):
        """
        Initialize the environment manager.

        Args:
            project_root: Directory searched for the .env file
            auto_load: Load the .env file immediately if found
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False

        if auto_load:
            self.load()

    @property
    def loaded(self) -> bool:
        """Whether a .env file has been loaded."""
        return self._loaded

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load environment variables from a .env file.

        Args:
            env_file: Path to .env file (defaults to .env in project root)
            override: Whether to override existing environment variables

        Returns:
            True if the file was loaded, False otherwise
        """
        env_path = self.project_root / ".env" if env_file is None else Path(env_file)

        if not env_path.exists():
            return False

        load_dotenv(env_path, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        """
        Get an environment variable value.

        Empty strings are treated as unset.

        Raises:
            ValueError: If required=True and the variable is not set
        """
        value = os.environ.get(key) or default

        if required and value is None:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)

        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get environment variable as boolean."""
        value = (self.get(key) or "").lower()
        if value in ("true", "1", "yes", "on"):
            return True
        if value in ("false", "0", "no", "off"):
            return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Get environment variable as integer, falling back to default if unparseable."""
        try:
            return int(self.get(key, str(default)))  # type: ignore[arg-type]
        except (ValueError, TypeError):
            return default
