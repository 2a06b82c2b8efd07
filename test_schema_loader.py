"""
Unit tests for the form definition loader.
"""

import json
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from formengine.exceptions import SchemaError
from formengine.schema_loader import load_form_definition, parse_form_definition

CASCADE_DEFINITION = {
    'title': 'Market Configuration',
    'cascade': {'primary': 'environment', 'secondary': 'market', 'primary_options': ['dev', 'qa']},
    'fields': [
        {'name': 'environment', 'type': 'string', 'value': ''},
        {'name': 'market', 'type': 'string', 'value': '', 'depends_on': 'environment'},
        {'name': 'hostUrl', 'type': 'string', 'value': '', 'depends_on': 'market'},
        {'name': 'appIds', 'type': 'array', 'depends_on': 'market', 'items': [{'type': 'string', 'value': ''}]},
        {'name': 'notes', 'type': 'string', 'value': ''},
    ],
}


class TestParseFormDefinition:
    """Test cases for parse_form_definition."""

    def test_cascade_definition(self):
        definition = parse_form_definition(CASCADE_DEFINITION)

        assert definition.title == 'Market Configuration'
        assert definition.cascade.primary == 'environment'
        assert definition.cascade.primary_options == ('dev', 'qa')
        assert definition.record_id_field == 'id'
        assert definition.field('notes').kind == 'string'
        assert definition.field('nope') is None

    def test_dependents_are_transitive(self):
        definition = parse_form_definition(CASCADE_DEFINITION)

        names = [schema.name for schema in definition.dependents_of('environment')]
        assert names == ['market', 'hostUrl', 'appIds']
        assert [schema.name for schema in definition.dependents_of('market')] == ['hostUrl', 'appIds']

    def test_bare_field_list(self):
        definition = parse_form_definition([{'name': 'hostUrl', 'type': 'string', 'value': ''}])
        assert definition.cascade is None
        assert len(definition.fields) == 1

    def test_unknown_dependency(self):
        raw = {'fields': [{'name': 'market', 'type': 'string', 'value': '', 'depends_on': 'region'}]}
        with pytest.raises(SchemaError) as exc_info:
            parse_form_definition(raw)
        assert exc_info.value.paths == ['market']

    def test_dependency_cycle(self):
        raw = {'fields': [
            {'name': 'a', 'type': 'string', 'value': '', 'depends_on': 'b'},
            {'name': 'b', 'type': 'string', 'value': '', 'depends_on': 'a'},
        ]}
        with pytest.raises(SchemaError) as exc_info:
            parse_form_definition(raw)
        assert 'cycle' in exc_info.value.message

    def test_cascade_secondary_must_depend_on_primary(self):
        raw = dict(CASCADE_DEFINITION)
        raw['fields'] = [
            {'name': 'environment', 'type': 'string', 'value': ''},
            {'name': 'market', 'type': 'string', 'value': ''},
        ]
        with pytest.raises(SchemaError) as exc_info:
            parse_form_definition(raw)
        assert 'cascade.secondary' in exc_info.value.paths

    def test_missing_fields_list(self):
        with pytest.raises(SchemaError):
            parse_form_definition({'title': 'Empty'})


class TestLoadFormDefinition:
    """Test cases for loading definitions from disk."""

    def setup_method(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.test_dir)

    def test_load_yaml(self):
        (self.test_dir / 'config_form.yaml').write_text(yaml.safe_dump(CASCADE_DEFINITION), encoding='utf-8')

        definition = load_form_definition('config_form.yaml', schemas_dir=self.test_dir)

        assert definition.cascade.secondary == 'market'

    def test_load_json(self):
        (self.test_dir / 'config_form.json').write_text(json.dumps(CASCADE_DEFINITION), encoding='utf-8')

        definition = load_form_definition('config_form.json', schemas_dir=self.test_dir)

        assert len(definition.fields) == 5

    def test_missing_file(self):
        with pytest.raises(SchemaError) as exc_info:
            load_form_definition('absent.yaml', schemas_dir=self.test_dir)
        assert 'file not found' in exc_info.value.message

    def test_invalid_yaml(self):
        (self.test_dir / 'broken.yaml').write_text("fields: [unclosed", encoding='utf-8')
        with pytest.raises(SchemaError):
            load_form_definition('broken.yaml', schemas_dir=self.test_dir)

    def test_bundled_definition_loads(self):
        definition = load_form_definition(str(Path(__file__).parent / 'schemas' / 'config_form.yaml'))
        assert definition.cascade.primary_options == ('dev', 'qa', 'pro', 'staging')
