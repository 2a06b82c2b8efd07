"""
Unit tests for field path helpers.
"""

import pytest

from formengine.paths import index_path, is_under, join_path, lookup_path, nest_paths, split_path


class TestPathBuilding:
    """Test cases for join_path / index_path / split_path."""

    def test_join_path_top_level(self):
        assert join_path('', 'hostUrl') == 'hostUrl'

    def test_join_and_index(self):
        path = join_path(index_path('servers', 2), 'host')
        assert path == 'servers[2].host'

    def test_split_path(self):
        assert split_path('servers[2].host') == ['servers', 2, 'host']
        assert split_path('appIds[10]') == ['appIds', 10]


class TestIsUnder:
    """Test cases for subtree membership."""

    @pytest.mark.parametrize("path,prefix,expected", [
        ('appIds[1]', 'appIds[1]', True),
        ('appIds[1].host', 'appIds[1]', True),
        ('appIds[10]', 'appIds[1]', False),
        ('addressLine', 'address', False),
        ('address.street', 'address', True),
        ('anything', '', True),
    ])
    def test_is_under(self, path, prefix, expected):
        assert is_under(path, prefix) is expected


class TestLookupAndNest:
    """Test cases for lookup_path and nest_paths."""

    def test_lookup_nested_value(self):
        record = {'servers': [{'host': 'a'}, {'host': 'b'}]}
        assert lookup_path(record, 'servers[1].host') == 'b'

    def test_lookup_missing_returns_default(self):
        record = {'servers': [{'host': 'a'}]}
        assert lookup_path(record, 'servers[3].host', 'none') == 'none'
        assert lookup_path(record, 'port', 'none') == 'none'

    def test_nest_paths_rebuilds_structure(self):
        flat = {
            'name': 'edge',
            'appIds[0]': 'a',
            'appIds[1]': 'b',
            'owner.email': 'x@example.com',
        }
        assert nest_paths(flat) == {
            'name': 'edge',
            'appIds': ['a', 'b'],
            'owner': {'email': 'x@example.com'},
        }

    def test_nest_paths_keeps_empty_lists(self):
        assert nest_paths({'name': 'edge'}, ['appIds']) == {'name': 'edge', 'appIds': []}

    def test_nest_paths_list_of_objects(self):
        flat = {'servers[0].host': 'a', 'servers[0].port': 1, 'servers[1].host': 'b'}
        assert nest_paths(flat) == {'servers': [{'host': 'a', 'port': 1}, {'host': 'b'}]}
