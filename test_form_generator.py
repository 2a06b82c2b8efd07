"""
Unit tests for the field renderer.
"""

from formengine.field_schema import parse_fields
from formengine.form_generator import FieldRenderer, iter_leaves, iter_lists
from formengine.form_state import FormState
from formengine.list_editor import ListRegistry

FIELDS = parse_fields([
    {'name': 'name', 'type': 'string', 'value': 'untitled', 'required': True},
    {'name': 'owner', 'type': 'object', 'fields': [
        {'name': 'email', 'type': 'string', 'value': ''},
        {'name': 'notify', 'type': 'boolean', 'value': True},
    ]},
    {'name': 'market', 'type': 'string', 'value': ''},
    {'name': 'hostUrl', 'type': 'string', 'value': '', 'depends_on': 'market'},
    {'name': 'appIds', 'type': 'array', 'depends_on': 'market', 'required': True,
     'items': [{'type': 'string', 'value': '', 'label': 'App ID'}]},
])


class TestFieldRenderer:
    """Test cases for projecting schemas and state into descriptors."""

    def setup_method(self):
        self.state = FormState()
        self.lists = ListRegistry()
        self.renderer = FieldRenderer()

    def render(self, **kwargs):
        return self.renderer.render(FIELDS, self.state, self.lists, **kwargs)

    def test_hidden_dependents(self):
        descriptors = self.render()

        assert [d.path for d in descriptors] == ['name', 'owner', 'market']
        assert not self.state.contains('hostUrl')
        assert 'appIds' not in self.lists

    def test_hidden_after_shown_drops_state(self):
        self.state.set('market', 'eu')
        self.render(defaults={'hostUrl': 'h1', 'appIds': ['a', 'b']})
        self.state.set('hostUrl', 'edited')

        self.state.set('market', '')
        descriptors = self.render()

        assert [d.path for d in descriptors] == ['name', 'owner', 'market']
        assert not self.state.contains('hostUrl')
        assert not self.state.paths_under('appIds')
        assert 'appIds' not in self.lists
        assert sorted(self.state) == sorted(leaf.path for leaf in iter_leaves(descriptors))

    def test_one_leaf_per_visible_primitive(self):
        descriptors = self.render()

        leaves = [leaf.path for leaf in iter_leaves(descriptors)]
        assert leaves == ['name', 'owner.email', 'owner.notify', 'market']
        assert sorted(self.state) == sorted(leaves)

    def test_schema_defaults_seed_state(self):
        self.render()
        assert self.state.get('name') == 'untitled'
        assert self.state.get('owner.notify') is True

    def test_rendering_is_deterministic(self):
        first = self.render(defaults={'hostUrl': 'h1'})
        second = self.render(defaults={'hostUrl': 'h1'})
        assert first == second

    def test_dependents_appear_with_defaults(self):
        self.state.set('market', 'eu')
        descriptors = self.render(defaults={'hostUrl': 'h1', 'appIds': ['a', 'b']})

        by_path = {d.path: d for d in descriptors}
        assert by_path['hostUrl'].value == 'h1'
        app_ids = by_path['appIds']
        assert app_ids.required is True
        assert [child.value for child in app_ids.children] == ['a', 'b']
        assert [child.path for child in app_ids.children] == ['appIds[0]', 'appIds[1]']
        assert all(child.identity for child in app_ids.children)
        assert app_ids.children[0].label == 'App ID'

    def test_record_wins_over_defaults(self):
        self.state.set('market', 'eu')
        descriptors = self.render(record={'hostUrl': 'saved'}, defaults={'hostUrl': 'h1'})
        assert {d.path: d.value for d in descriptors}['hostUrl'] == 'saved'

    def test_existing_state_is_not_reseeded(self):
        self.state.set('market', 'eu')
        self.state.set('hostUrl', 'typed')
        descriptors = self.render(defaults={'hostUrl': 'h1'})
        assert {d.path: d.value for d in descriptors}['hostUrl'] == 'typed'

    def test_empty_defaults_give_empty_list(self):
        self.state.set('market', 'eu')
        descriptors = self.render(defaults={'appIds': []})

        app_ids = [d for d in iter_lists(descriptors)][0]
        assert app_ids.children == []
        assert self.lists.empty_lists() == ['appIds']

    def test_on_change_writes_state(self):
        descriptors = self.render()
        name = descriptors[0]
        name.on_change('edge')
        assert self.state.get('name') == 'edge'

    def test_hooks(self):
        calls = []
        renderer = FieldRenderer(
            on_change_factory=lambda path: lambda value: calls.append((path, value)),
            options_provider=lambda path: [('eu', 'EU')] if path == 'market' else None,
        )
        descriptors = renderer.render(FIELDS, self.state, self.lists)

        market = [d for d in descriptors if d.path == 'market'][0]
        assert market.options == [('eu', 'EU')]
        market.on_change('eu')
        assert calls == [('market', 'eu')]
        assert self.state.get('market') == ''
