"""
Unit tests for the dynamic list editor.
"""

import pytest

from formengine.exceptions import NotFoundError
from formengine.field_schema import FieldSchema
from formengine.form_state import FormState
from formengine.list_editor import EMPTY, POPULATED, ListRegistry

STRING_ITEM = FieldSchema('item', 'string', '')
SERVER_ITEM = FieldSchema('item', 'object', children=(
    FieldSchema('host', 'string', 'localhost'),
    FieldSchema('ports', 'array', item_schema=FieldSchema('item', 'number', None)),
))


class TestScalarList:
    """Test cases for a list of strings."""

    def setup_method(self):
        self.state = FormState()
        self.registry = ListRegistry()
        self.editor = self.registry.create('appIds', STRING_ITEM, self.state, ['a', 'b', 'c'])

    def test_seeding(self):
        assert self.editor.values() == ['a', 'b', 'c']
        assert self.editor.identities == ['item-1', 'item-2', 'item-3']
        assert self.editor.status == POPULATED
        assert self.state.get('appIds[2]') == 'c'

    def test_empty_seed(self):
        editor = self.registry.create('tags', STRING_ITEM, self.state, [])
        assert editor.status == EMPTY
        assert len(editor) == 0
        assert 'tags' in self.registry.empty_lists()

    def test_add_uses_item_default(self):
        item = self.editor.add()
        assert item.ordinal_position == 3
        assert item.value == ''
        assert self.state.get('appIds[3]') == ''

    def test_remove_shifts_later_items(self):
        first, second, third = self.editor.identities
        self.editor.remove(first)

        items = self.editor.items()
        assert [item.identity for item in items] == [second, third]
        assert [item.ordinal_position for item in items] == [0, 1]
        assert self.editor.values() == ['b', 'c']
        assert not self.state.contains('appIds[2]')

    def test_values_follow_identity_after_removal(self):
        _, second, third = self.editor.identities
        self.state.set('appIds[2]', 'edited')

        self.editor.remove(second)

        assert self.editor.position_of(third) == 1
        assert self.state.get('appIds[1]') == 'edited'

    def test_add_then_remove_restores_values(self):
        before = self.editor.values()
        item = self.editor.add('temp')
        self.editor.remove(item.identity)
        assert self.editor.values() == before

    def test_identities_never_reused(self):
        removed = self.editor.identities[-1]
        self.editor.remove(removed)
        added = self.editor.add()
        assert added.identity != removed
        assert added.identity == 'item-4'

    def test_remove_twice_raises_not_found(self):
        identity = self.editor.identities[0]
        self.editor.remove(identity)
        with pytest.raises(NotFoundError):
            self.editor.remove(identity)

    def test_remove_last_item_reports_empty(self):
        for identity in self.editor.identities:
            self.editor.remove(identity)
        assert self.editor.status == EMPTY
        assert len(self.state) == 0

    def test_move(self):
        first = self.editor.identities[0]
        self.editor.move(first, 2)
        assert self.editor.values() == ['b', 'c', 'a']
        assert self.editor.position_of(first) == 2


class TestObjectList:
    """Test cases for a list of objects containing a nested list."""

    def setup_method(self):
        self.state = FormState()
        self.registry = ListRegistry()
        self.editor = self.registry.create('servers', SERVER_ITEM, self.state, [
            {'host': 'a', 'ports': [80]},
            {'host': 'b', 'ports': [443, 8443]},
        ])

    def test_seeding_nested_lists(self):
        assert self.state.get('servers[1].ports[1]') == 8443
        assert self.registry.paths() == ['servers', 'servers[0].ports', 'servers[1].ports']
        assert self.editor.values() == [
            {'host': 'a', 'ports': [80]},
            {'host': 'b', 'ports': [443, 8443]},
        ]

    def test_add_object_defaults(self):
        item = self.editor.add()
        assert item.value == {'host': 'localhost', 'ports': []}

    def test_remove_moves_nested_editor(self):
        first, second = self.editor.identities
        self.editor.remove(first)

        nested = self.registry.require('servers[0].ports')
        assert nested.path == 'servers[0].ports'
        assert nested.values() == [443, 8443]
        assert 'servers[1].ports' not in self.registry

    def test_nested_add_after_shift(self):
        self.editor.remove(self.editor.identities[0])
        self.registry.require('servers[0].ports').add(9000)
        assert self.state.get('servers[0].ports[2]') == 9000

    def test_identities_unique_across_lists(self):
        outer = set(self.editor.identities)
        inner = set(self.registry.require('servers[1].ports').identities)
        assert not outer & inner
