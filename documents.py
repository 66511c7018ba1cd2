"""Workspace documents listing and safe single-document reads."""

import os

from file_repository import file_mtime
from timeutil import iso_from_epoch


DOCUMENT_LIMIT = 50
MAX_DOCUMENT_BYTES = 512000
DOC_SUFFIXES = ('.md', '.json')


def doc_type(name):
    lower = name.lower()
    if lower.endswith('.md'):
        return 'markdown'
    if lower.endswith('.json'):
        return 'json'
    return 'other'


def _doc_row(workspace, rel_path, name, category):
    full_path = os.path.join(workspace, rel_path)
    try:
        size = os.path.getsize(full_path)
    except OSError:
        return None
    return {
        'name': name,
        'path': rel_path,
        'type': doc_type(rel_path),
        'size': size,
        'modified': iso_from_epoch(file_mtime(full_path)),
        'category': category,
        '_mtime': file_mtime(full_path),
    }


def _listdir(path):
    try:
        return sorted(os.listdir(path))
    except Exception:
        return []


def get_documents_manifest(settings, limit=DOCUMENT_LIMIT):
    """List key files, memory notes and agent configs, newest first."""
    workspace = settings.workspace
    candidates = []

    for name in settings.key_documents:
        if os.path.isfile(os.path.join(workspace, name)):
            candidates.append((name, name, 'Core'))

    memory_dir = os.path.join(workspace, 'memory')
    for name in _listdir(memory_dir):
        if name.lower().endswith(DOC_SUFFIXES) and os.path.isfile(os.path.join(memory_dir, name)):
            candidates.append((f'memory/{name}', name, 'Memory'))

    agents_dir = os.path.join(workspace, 'agents')
    for agent_dir in _listdir(agents_dir):
        agent_path = os.path.join(agents_dir, agent_dir)
        if not os.path.isdir(agent_path):
            continue
        for name in _listdir(agent_path):
            if name.lower().endswith(DOC_SUFFIXES) and os.path.isfile(os.path.join(agent_path, name)):
                candidates.append((f'agents/{agent_dir}/{name}', f'{agent_dir}/{name}', f'Agent: {agent_dir}'))

    docs = []
    for rel_path, name, category in candidates:
        row = _doc_row(workspace, rel_path, name, category)
        if row is not None:
            docs.append(row)

    docs.sort(key=lambda d: d['_mtime'], reverse=True)
    for row in docs:
        row.pop('_mtime', None)
    return docs[:limit]


def resolve_document_path(workspace, rel_path):
    """Resolve a workspace-relative path, or None when it escapes the workspace."""
    root = os.path.realpath(workspace)
    full_path = os.path.realpath(os.path.join(root, str(rel_path or '')))
    if full_path != root and not full_path.startswith(root + os.sep):
        return None
    return full_path


def read_document(settings, rel_path):
    """Return ``(payload, status_code)`` for one workspace document."""
    full_path = resolve_document_path(settings.workspace, rel_path)
    if full_path is None:
        return {'error': 'Access denied'}, 403
    if not os.path.isfile(full_path):
        return {'error': 'Document not found'}, 404
    try:
        with open(full_path, 'r', encoding='utf-8') as handle:
            content = handle.read(MAX_DOCUMENT_BYTES)
    except Exception:
        return {'error': 'Failed to read document'}, 500
    return {
        'path': rel_path,
        'name': os.path.basename(full_path),
        'content': content,
        'size': os.path.getsize(full_path),
        'modified': iso_from_epoch(file_mtime(full_path)),
    }, 200
