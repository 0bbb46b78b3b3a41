"""Dotenv file loading utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from ..errors import ConfigurationError


class DotenvLoader:
    """Loads KEY=value defaults from .env-style files."""

    @staticmethod
    def load_from_file(path: Path) -> Dict[str, str]:
        """
        Load key-value pairs from a .env file.

        Missing files yield an empty mapping.

        Raises:
            ConfigurationError: If the file exists but cannot be read
        """
        if not path.exists():
            return {}

        values: Dict[str, str] = {}
        try:
            text = path.read_text()
        except OSError as exc:
            raise ConfigurationError.load_failed("configuration", str(path)) from exc

        for line in text.splitlines():
            stripped = line.strip()
            if DotenvLoader._should_skip_line(stripped):
                continue
            key, value = DotenvLoader._parse_env_line(stripped)
            if key:
                values[key] = value

        return values

    @staticmethod
    def _should_skip_line(line: str) -> bool:
        return not line or line.startswith("#") or "=" not in line

    @staticmethod
    def _parse_env_line(line: str) -> tuple[str, str]:
        key, raw_value = line.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export ") :].strip()
        value = raw_value.strip().strip("'").strip('"')
        return key, value
