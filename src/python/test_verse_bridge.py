#!/usr/bin/env python3
"""
Tests for the JSON bridge: command dispatch and the message pipeline.

Providers are patched so no request leaves the test; the version store
writes into a temporary directory.
"""

import sys
import os
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

# Ensure src/python is on the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import verse_bridge
from reference_model import VersionCapability
from verse_bridge import handle_command
from verse_formatter import get_string
from verse_providers import VerseResult
from version_store import VersionStore


def fake_provider(text="<**16**> For God so loved the world"):
    provider = MagicMock()
    provider.get_result.side_effect = lambda reference, headings, verse_numbers, version: VerseResult(
        passage=str(reference), version=version, title=None, text=text,
    )
    return provider


class BridgeTestCase(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.store = VersionStore(Path(self.tmpdir.name) / "versions.json")
        # Interaction lines go to stderr; keep test output clean
        self.stderr = patch('sys.stderr', new_callable=io.StringIO)
        self.stderr.start()

    def tearDown(self):
        self.stderr.stop()
        self.tmpdir.cleanup()


# ============================================================================
# COMMAND DISPATCH
# ============================================================================

class TestCommands(BridgeTestCase):

    def test_unknown_command(self):
        result = handle_command({'command': 'transcribe'}, self.store)
        self.assertEqual(result, {'error': 'Unknown command: transcribe'})

    def test_check_dependencies(self):
        result = handle_command({'command': 'check_dependencies'})
        self.assertIn('all_installed', result)
        self.assertTrue(result['dependencies']['requests'])

    def test_list_versions(self):
        result = handle_command({'command': 'list_versions'}, self.store)
        abbreviations = [v['abbv'] for v in result['versions']]
        self.assertIn('RSV', abbreviations)
        self.assertEqual(abbreviations, sorted(abbreviations))

    def test_message_required(self):
        for command in ('find_references', 'process_message'):
            result = handle_command({'command': command}, self.store)
            self.assertEqual(result, {'error': 'message is required'})

    def test_find_references(self):
        result = handle_command({
            'command': 'find_references',
            'message': "John 3:16 but not <Romans 8:28>",
        }, self.store)

        self.assertEqual(len(result['references']), 1)
        reference = result['references'][0]
        self.assertEqual(reference['book'], 'John')
        self.assertEqual(reference['version'], 'RSV')
        self.assertEqual(reference['normalizedReference'], 'John 3:16')

    def test_find_references_with_version(self):
        result = handle_command({
            'command': 'find_references',
            'message': "Tobit 4:15",
            'version': 'nrsv',
        }, self.store)
        self.assertEqual(result['references'][0]['version'], 'NRSV')
        self.assertEqual(result['references'][0]['section'], 'DEU')

    def test_unknown_version(self):
        result = handle_command({
            'command': 'find_references',
            'message': "John 3:16",
            'version': 'XYZ',
        }, self.store)
        self.assertEqual(result, {'error': 'Unknown version: XYZ'})

    def test_add_version(self):
        result = handle_command({
            'command': 'add_version',
            'version': {'name': 'World English Bible', 'abbv': 'WEB', 'src': 'AB', 'providerId': 'abc-01'},
        }, self.store)

        self.assertEqual(result['version']['src'], 'ab')
        self.assertEqual(VersionStore(self.store.versions_file).get('WEB').provider_id, 'abc-01')

    def test_add_version_rejects_unknown_source(self):
        result = handle_command({
            'command': 'add_version',
            'version': {'name': 'Mystery', 'abbv': 'MYS', 'src': 'zz'},
        }, self.store)
        self.assertEqual(result, {'error': 'Unknown source: zz'})

    def test_add_version_missing_field(self):
        result = handle_command({'command': 'add_version', 'version': {'abbv': 'MYS'}}, self.store)
        self.assertIn('Missing field', result['error'])

    def test_add_version_requires_record(self):
        result = handle_command({'command': 'add_version'}, self.store)
        self.assertEqual(result, {'error': 'version is required'})


# ============================================================================
# MESSAGE PIPELINE
# ============================================================================

class TestProcessMessage(BridgeTestCase):

    @patch('verse_bridge.select_provider')
    def test_embed_response(self, mock_select):
        mock_select.return_value = fake_provider()

        result = handle_command({'command': 'process_message', 'message': "John 3:16"}, self.store)

        self.assertEqual(len(result['responses']), 1)
        response = result['responses'][0]
        self.assertEqual(response['type'], 'embed')
        self.assertEqual(response['title'], "John 3:16 - Revised Standard Version (RSV)")
        mock_select.assert_called_once_with('bg')

    @patch('verse_bridge.select_provider')
    def test_trailing_version_override(self, mock_select):
        mock_select.return_value = fake_provider()

        result = handle_command({'command': 'process_message', 'message': "John 3:16 KJV"}, self.store)

        self.assertEqual(result['references'][0]['version'], 'KJV')
        self.assertIn('King James Version', result['responses'][0]['title'])

    @patch('verse_bridge.select_provider')
    def test_section_not_supported(self, mock_select):
        result = handle_command({
            'command': 'process_message',
            'message': "Tobit 4:15",
            'version': 'KJV',
        }, self.store)

        response = result['responses'][0]
        self.assertTrue(response['isError'])
        self.assertEqual(response['description'], get_string('english', 'invalidsection'))
        mock_select.assert_not_called()
        self.assertIn("KJV does not support DEU", sys.stderr.getvalue())

    def test_unimplemented_source(self):
        self.store.add(VersionCapability(name='Bible Hub Version', abbreviation='BHV', source='bh'))

        result = handle_command({
            'command': 'process_message',
            'message': "John 3:16",
            'version': 'BHV',
        }, self.store)

        response = result['responses'][0]
        self.assertTrue(response['isError'])
        self.assertEqual(response['description'], get_string('english', 'sourcenotimplemented'))

    @patch('verse_bridge.select_provider')
    def test_unknown_source_does_not_abort_message(self, mock_select):
        mock_select.return_value = fake_provider()
        self.store.add(VersionCapability(name='Mystery', abbreviation='MYS', source='zz'))

        result = handle_command({
            'command': 'process_message',
            'message': "John 3:16 and Romans 8:28",
            'version': 'MYS',
        }, self.store)

        self.assertEqual(len(result['responses']), 2)
        for response in result['responses']:
            self.assertTrue(response['isError'])
            self.assertEqual(response['description'], get_string('english', 'sourcenotimplemented'))
        mock_select.assert_not_called()

    @patch('verse_bridge.select_provider')
    def test_empty_versions_file(self, mock_select):
        mock_select.return_value = fake_provider()
        self.store.versions_file.write_text("[]", encoding='utf-8')

        result = handle_command({'command': 'process_message', 'message': "John 3:16"},
                                VersionStore(self.store.versions_file))

        self.assertEqual(result['references'][0]['version'], 'RSV')
        self.assertEqual(len(result['responses']), 1)

    def test_empty_store_reports_unknown_version(self):
        self.store.versions = {}
        result = handle_command({'command': 'find_references', 'message': "John 3:16"}, self.store)
        self.assertEqual(result, {'error': 'No versions available'})

    @patch('verse_bridge.select_provider')
    def test_invalid_bracket_preference_uses_default(self, mock_select):
        mock_select.return_value = fake_provider()

        result = handle_command({
            'command': 'process_message',
            'message': "<John 3:16> and Romans 8:28",
            'preferences': {'ignoringBrackets': '<'},
        }, self.store)

        self.assertEqual([r['book'] for r in result['references']], ['Romans'])

    def test_invalid_bracket_argument_for_find_references(self):
        result = handle_command({
            'command': 'find_references',
            'message': "<John 3:16> and Romans 8:28",
            'ignoringBrackets': '[[[',
        }, self.store)
        self.assertEqual([r['book'] for r in result['references']], ['Romans'])

    @patch('verse_bridge.select_provider')
    def test_fetch_failure_drops_response(self, mock_select):
        provider = MagicMock()
        provider.get_result.return_value = None
        mock_select.return_value = provider

        result = handle_command({'command': 'process_message', 'message': "John 3:16"}, self.store)

        self.assertEqual(len(result['references']), 1)
        self.assertEqual(result['responses'], [])

    @patch('verse_bridge.select_provider')
    def test_preferences(self, mock_select):
        mock_select.return_value = fake_provider()

        result = handle_command({
            'command': 'process_message',
            'message': "<John 3:16> and Romans 8:28",
            'preferences': {'display': 'code', 'ignoringBrackets': '', 'verseNumbers': False},
            'channel': '#general',
        }, self.store)

        self.assertEqual(len(result['responses']), 2)
        self.assertTrue(all(r['type'] == 'text' for r in result['responses']))
        self.assertIn("```Dust", result['responses'][0]['content'])
        self.assertIn("[info] #general John 3:16 RSV", sys.stderr.getvalue())
        headings, verse_numbers = mock_select.return_value.get_result.call_args.args[1:3]
        self.assertTrue(headings)
        self.assertFalse(verse_numbers)

    @patch('verse_bridge.select_provider')
    def test_bracketed_reference_skipped_by_default(self, mock_select):
        mock_select.return_value = fake_provider()

        result = handle_command({
            'command': 'process_message',
            'message': "<John 3:16> and Romans 8:28",
        }, self.store)

        self.assertEqual([r['book'] for r in result['references']], ['Romans'])


# ============================================================================
# STDIN / STDOUT
# ============================================================================

class TestMain(unittest.TestCase):

    def run_main(self, stdin_text):
        stdout = io.StringIO()
        with patch('sys.stdin', io.StringIO(stdin_text)), \
             patch('sys.stdout', stdout), \
             patch('sys.stderr', io.StringIO()):
            verse_bridge.main()
        return json.loads(stdout.getvalue().strip().splitlines()[-1])

    def test_empty_input(self):
        self.assertEqual(self.run_main(""), {'type': 'error', 'error': 'No input provided'})

    def test_invalid_json(self):
        output = self.run_main("{oops")
        self.assertEqual(output['type'], 'error')
        self.assertIn('Invalid JSON input', output['error'])

    @patch('verse_bridge.handle_command')
    def test_result_emitted(self, mock_handle):
        mock_handle.return_value = {'versions': []}
        output = self.run_main(json.dumps({'command': 'list_versions'}))
        self.assertEqual(output, {'type': 'result', 'versions': []})


if __name__ == '__main__':
    unittest.main()
