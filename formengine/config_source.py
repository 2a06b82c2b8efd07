"""
Configuration map sources.

The configuration map is read once when a form opens. Loading is a
suspension point: callers await ``fetch()`` and stay interactive meanwhile.
"""

import json
from pathlib import Path
from typing import Any, Optional, Protocol, Union
import logging

import httpx
import yaml

from .cascade_resolver import ConfigurationMap, parse_configuration_map
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_URL = "http://localhost:8080/api/configs"


class ConfigurationSource(Protocol):
    async def fetch(self) -> ConfigurationMap:
        ...


class HttpConfigurationSource:
    """Reads the configuration map from an HTTP endpoint."""

    def __init__(self, url: str = DEFAULT_CONFIG_URL, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def fetch(self) -> ConfigurationMap:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                raw = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch configuration map from {self.url}: {e}")
            raise ConfigurationError(self.url, e) from e

        return parse_configuration_map(raw, self.url)


class FileConfigurationSource:
    """Reads the configuration map from a local YAML or JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def fetch(self) -> ConfigurationMap:
        return parse_configuration_map(self._read(), str(self.path))

    def _read(self) -> Any:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                if self.path.suffix.lower() in ['.yaml', '.yml']:
                    return yaml.safe_load(f)
                return json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read configuration map {self.path}: {e}")
            raise ConfigurationError(str(self.path), e) from e
