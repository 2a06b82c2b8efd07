"""
Unit tests for configuration map sources.
"""

import asyncio
import json
import shutil
import tempfile
from pathlib import Path

import httpx
import pytest
import yaml

from formengine.config_source import DEFAULT_CONFIG_URL, FileConfigurationSource, HttpConfigurationSource
from formengine.exceptions import ConfigurationError

RAW_MAP = {'dev': {'eu': {'hostUrl': 'h1', 'tokenUrl': 't1', 'appIds': ['a', 'b']}}}


class TestHttpConfigurationSource:
    """Test cases for loading the map over HTTP."""

    def test_fetch(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=RAW_MAP)

        source = HttpConfigurationSource(transport=httpx.MockTransport(handler))
        config_map = asyncio.run(source.fetch())

        assert seen == [DEFAULT_CONFIG_URL]
        assert config_map['dev']['eu'].app_ids == ('a', 'b')

    def test_server_error(self):
        source = HttpConfigurationSource(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(source.fetch())
        assert exc_info.value.source == DEFAULT_CONFIG_URL

    def test_invalid_json(self):
        source = HttpConfigurationSource(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
        )
        with pytest.raises(ConfigurationError):
            asyncio.run(source.fetch())

    def test_bad_shape(self):
        source = HttpConfigurationSource(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=['dev']))
        )
        with pytest.raises(ConfigurationError):
            asyncio.run(source.fetch())


class TestFileConfigurationSource:
    """Test cases for loading the map from disk."""

    def setup_method(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.test_dir)

    def test_yaml(self):
        path = self.test_dir / 'map.yaml'
        path.write_text(yaml.safe_dump(RAW_MAP), encoding='utf-8')

        config_map = asyncio.run(FileConfigurationSource(path).fetch())

        assert config_map['dev']['eu'].host_url == 'h1'

    def test_json(self):
        path = self.test_dir / 'map.json'
        path.write_text(json.dumps(RAW_MAP), encoding='utf-8')

        config_map = asyncio.run(FileConfigurationSource(path).fetch())

        assert list(config_map) == ['dev']

    def test_missing_file(self):
        with pytest.raises(ConfigurationError):
            asyncio.run(FileConfigurationSource(self.test_dir / 'absent.yaml').fetch())

    def test_bundled_example_map(self):
        path = Path(__file__).parent / 'configuration_map.example.yaml'
        config_map = asyncio.run(FileConfigurationSource(path).fetch())
        assert config_map['staging']['eu'].app_ids == ()
