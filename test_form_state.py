"""
Unit tests for FormState.
"""

import pytest

from formengine.form_state import FormState


class TestFormState:
    """Test class for the path -> leaf value mapping."""

    def setup_method(self):
        self.state = FormState({
            'hostUrl': 'h1',
            'appIds[0]': 'a',
            'appIds[1]': 'b',
            'appIds[10]': 'k',
        })

    def test_get_and_set(self):
        self.state.set('tokenUrl', 't1')
        assert self.state.get('tokenUrl') == 't1'
        assert self.state.get('missing', 'fallback') == 'fallback'
        assert 'tokenUrl' in self.state

    def test_set_requires_path(self):
        with pytest.raises(ValueError):
            self.state.set('', 'x')

    def test_set_detaches_value(self):
        value = {'nested': [1]}
        self.state.set('blob', value)
        value['nested'].append(2)
        assert self.state.get('blob') == {'nested': [1]}

    def test_clear_subtree_respects_index_boundaries(self):
        removed = self.state.clear_subtree('appIds[1]')
        assert removed == ['appIds[1]']
        assert self.state.contains('appIds[10]')

    def test_clear_subtree_whole_list(self):
        self.state.clear_subtree('appIds')
        assert list(self.state) == ['hostUrl']

    def test_extract_and_insert_subtree(self):
        leaves = self.state.extract_subtree('appIds[1]')
        assert leaves == {'': 'b'}
        self.state.insert_subtree('appIds[0]', leaves)
        assert self.state.get('appIds[0]') == 'b'
        assert not self.state.contains('appIds[1]')

    def test_snapshot_is_a_copy(self):
        snapshot = self.state.snapshot()
        snapshot['hostUrl'] = 'changed'
        assert self.state.get('hostUrl') == 'h1'
        assert len(self.state) == 4
