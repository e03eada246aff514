#!/usr/bin/env python3
"""
Verse Recognizer Python Bridge

This module provides a JSON-based subprocess interface for the chat front end to:
1. Find Bible references in a chat message
2. Fetch and format the referenced passages
3. List and register version records

Protocol: Reads one JSON command from stdin, writes JSON lines to stdout.
Interaction logs go to stderr so stdout stays machine-readable.
"""

import asyncio
import json
import sys
import traceback
from typing import Any, Dict, List, Optional

from reference_model import CheckTarget, Reference, VersionCapability
from verse_formatter import create_embed, format_passage, get_string
from verse_processor import DEFAULT_IGNORING_BRACKETS, check_section_support, find_references
from verse_providers import SOURCE_NAMES, Source, is_valid_source, select_provider
from version_store import VersionStore

DEFAULT_PREFERENCES = {
    'display': 'default',
    'headings': True,
    'verseNumbers': True,
    'ignoringBrackets': DEFAULT_IGNORING_BRACKETS,
    'language': 'english',
}


# ============================================================================
# OUTPUT
# ============================================================================

def emit_error(error: str):
    """Emit an error to stdout as JSON."""
    result = {
        "type": "error",
        "error": error,
    }
    print(json.dumps(result), flush=True)


def emit_result(data: Dict[str, Any]):
    """Emit the final result to stdout as JSON."""
    result = {
        "type": "result",
        **data
    }
    print(json.dumps(result), flush=True)


def log_interaction(level: str, channel: Optional[str], message: str):
    """Write one interaction line to stderr, e.g. "[info] #general John 3:16 RSV"."""
    print(f"[{level}] {channel or '-'} {message}", file=sys.stderr, flush=True)


# ============================================================================
# MESSAGE PROCESSING PIPELINE
# ============================================================================

def _bracket_pair(value: Any) -> Optional[str]:
    """Usable ignoringBrackets value: a two-character pair, None to disable, else the default."""
    if not value:
        return None
    if isinstance(value, str) and len(value) == 2:
        return value
    print(f"  ⚠ Invalid ignoringBrackets {value!r}, using {DEFAULT_IGNORING_BRACKETS!r}", file=sys.stderr)
    return DEFAULT_IGNORING_BRACKETS


def _resolve_version(store: VersionStore, abbreviation: Optional[str]) -> Optional[VersionCapability]:
    if abbreviation:
        return store.get(abbreviation)
    return store.default_version()


def _version_error(abbreviation: Optional[str]) -> Dict[str, Any]:
    if abbreviation:
        return {'error': f'Unknown version: {abbreviation}'}
    return {'error': 'No versions available'}


def process_verse(reference: Reference, preferences: Dict[str, Any], channel: Optional[str] = None,
                  ignore_section_check: bool = False) -> Optional[Dict[str, Any]]:
    """
    Check, fetch and format one accepted reference.

    Returns:
        A response dict, or None when the provider could not deliver the passage
    """
    version = reference.version
    language = preferences.get('language')

    if not ignore_section_check:
        section_check = check_section_support(CheckTarget.resolved(reference), version)
        if not section_check.ok:
            section = section_check.section.value if section_check.section else 'unknown section'
            log_interaction('err', channel, f"{version.abbreviation} does not support {section}")
            return create_embed(None, get_string(language, 'verseerror'),
                                get_string(language, 'invalidsection'), is_error=True)

    if not is_valid_source(version.source):
        log_interaction('err', channel, f"{reference} {version.abbreviation} - unknown source '{version.source}'")
        return create_embed(None, get_string(language, 'verseerror'),
                            get_string(language, 'sourcenotimplemented'), is_error=True)

    provider = select_provider(version.source)
    if provider is None:
        source_name = SOURCE_NAMES[Source(version.source.lower())]
        log_interaction('err', channel, f"{reference} {version.abbreviation} - {source_name} not implemented")
        return create_embed(None, get_string(language, 'verseerror'),
                            get_string(language, 'sourcenotimplemented'), is_error=True)

    result = provider.get_result(reference, bool(preferences.get('headings')),
                                 bool(preferences.get('verseNumbers')), version)
    if result is None:
        log_interaction('err', channel, f"{reference} {version.abbreviation} - fetch failed")
        return None

    response = format_passage(result, preferences.get('display', 'default'), language)
    if response.get('isError'):
        log_interaction('err', channel, f"{reference} {version.abbreviation} - passage too long")
    else:
        log_interaction('info', channel, f"{reference} {version.abbreviation}")

    return response


async def process_message(message: str, store: VersionStore, version_abbv: Optional[str] = None,
                          preferences: Optional[Dict[str, Any]] = None, channel: Optional[str] = None,
                          debug: bool = False) -> Dict[str, Any]:
    """
    Full message pipeline:
    1. Resolve the default version (per-call override or configured default)
    2. Find references (trailing version abbreviation may override per message)
    3. Section check, fetch and format each reference

    Returns:
        {'references': [...], 'responses': [...]} or {'error': ...}
    """
    prefs = {**DEFAULT_PREFERENCES, **(preferences or {})}

    version = _resolve_version(store, version_abbv)
    if version is None:
        return _version_error(version_abbv)

    references = await find_references(
        message,
        version,
        store=store,
        ignoring_brackets=_bracket_pair(prefs.get('ignoringBrackets')),
        debug=debug,
    )

    responses: List[Dict[str, Any]] = []
    for reference in references:
        response = process_verse(reference, prefs, channel)
        if response is not None:
            responses.append(response)

    return {
        'references': [r.to_dict() for r in references],
        'responses': responses,
    }


async def find_references_only(message: str, store: VersionStore, version_abbv: Optional[str] = None,
                               ignoring_brackets: Optional[str] = DEFAULT_IGNORING_BRACKETS,
                               debug: bool = False) -> Dict[str, Any]:
    """Recognize references without fetching any text."""
    version = _resolve_version(store, version_abbv)
    if version is None:
        return _version_error(version_abbv)

    references = await find_references(message, version, store=store,
                                       ignoring_brackets=_bracket_pair(ignoring_brackets), debug=debug)
    return {'references': [r.to_dict() for r in references]}


def add_version(store: VersionStore, record: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and persist a version record."""
    source = record.get('src', 'bg')
    if not is_valid_source(source):
        return {'error': f'Unknown source: {source}'}

    try:
        version = VersionCapability.from_dict({**record, 'src': source.lower()})
    except KeyError as e:
        return {'error': f'Missing field: {e}'}

    store.add(version)
    store.save()
    return {'version': version.to_dict()}


# ============================================================================
# COMMAND DISPATCH
# ============================================================================

def check_dependencies() -> Dict[str, Any]:
    """Check if all required Python packages are installed."""
    deps: Dict[str, Any] = {
        'requests': False,
        'bs4': False,
        'lxml': False,
    }

    try:
        import requests
        deps['requests'] = True
        deps['requests_version'] = str(requests.__version__)
    except ImportError:
        pass

    try:
        import bs4
        deps['bs4'] = True
    except ImportError:
        pass

    try:
        import lxml
        deps['lxml'] = True
    except ImportError:
        pass

    all_installed = all(deps.get(k, False) for k in ['requests', 'bs4', 'lxml'])

    return {
        'dependencies': deps,
        'all_installed': all_installed,
    }


def handle_command(command: Dict[str, Any], store: Optional[VersionStore] = None) -> Dict[str, Any]:
    """
    Handle a command from the front end.

    Commands:
        - check_dependencies: Check if all required packages are installed
        - list_versions: List known version records
        - add_version: Register or replace a version record
        - find_references: Recognize references in a message (no fetching)
        - process_message: Recognize, fetch and format references in a message
    """
    cmd = command.get('command', '')

    if cmd == 'check_dependencies':
        return check_dependencies()

    store = store or VersionStore()

    if cmd == 'list_versions':
        return {'versions': [v.to_dict() for v in store.all()]}

    elif cmd == 'add_version':
        record = command.get('version')
        if not isinstance(record, dict):
            return {'error': 'version is required'}
        return add_version(store, record)

    elif cmd == 'find_references':
        message = command.get('message')
        if not message:
            return {'error': 'message is required'}

        return asyncio.run(find_references_only(
            message,
            store,
            command.get('version'),
            command.get('ignoringBrackets', DEFAULT_IGNORING_BRACKETS),
            debug=command.get('debug', False),
        ))

    elif cmd == 'process_message':
        message = command.get('message')
        if not message:
            return {'error': 'message is required'}

        return asyncio.run(process_message(
            message,
            store,
            command.get('version'),
            command.get('preferences'),
            command.get('channel'),
            debug=command.get('debug', False),
        ))

    else:
        return {'error': f'Unknown command: {cmd}'}


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def main():
    """
    Main entry point for subprocess mode.
    Reads JSON commands from stdin and writes JSON responses to stdout.
    """
    # Ensure proper stdout encoding for JSON output
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, 'reconfigure'):
            stream.reconfigure(encoding='utf-8')

    try:
        input_data = sys.stdin.read()
        if not input_data.strip():
            emit_error("No input provided")
            return

        command = json.loads(input_data)
    except json.JSONDecodeError as e:
        emit_error(f"Invalid JSON input: {e}")
        return
    except Exception as e:
        emit_error(f"Error reading input: {e}")
        return

    try:
        result = handle_command(command)
        emit_result(result)
    except Exception as e:
        emit_error(f"Error processing command: {e}\n{traceback.format_exc()}")


if __name__ == "__main__":
    main()
