"""Personal workspace views: body metrics from MEMORY.md and the projects list."""

import os
import re

from documents import resolve_document_path
from file_repository import read_records


FITNESS_DEFAULTS = {
    'weight': 164.9,
    'bodyFat': 19.8,
    'muscleMass': 125.6,
    'phase': 'Lean Bulk',
    'caloriesTarget': 2800,
    'proteinTarget': 170,
}

FITNESS_PATTERNS = (
    ('weight', re.compile(r'Weight:\s*([\d.]+)\s*lbs', re.IGNORECASE)),
    ('bodyFat', re.compile(r'Body Fat:\s*([\d.]+)%', re.IGNORECASE)),
    ('muscleMass', re.compile(r'Muscle Mass:\s*([\d.]+)\s*lbs', re.IGNORECASE)),
)

MEMORY_READ_BYTES = 512000


def parse_fitness(text):
    """Pull the latest body metrics out of free-form notes, keeping defaults for gaps."""
    out = dict(FITNESS_DEFAULTS)
    for key, pattern in FITNESS_PATTERNS:
        match = pattern.search(text or '')
        if not match:
            continue
        try:
            out[key] = float(match.group(1))
        except ValueError:
            continue
    return out


def load_fitness(settings):
    path = os.path.join(settings.workspace, 'MEMORY.md')
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as fp:
            text = fp.read(MEMORY_READ_BYTES)
    except OSError:
        return dict(FITNESS_DEFAULTS)
    return parse_fitness(text)


def load_projects(settings):
    return read_records(settings.projects_file, 'projects')


def resolve_data_file(settings, filename):
    """Return ``(full_path, status_code)`` for a file under the data directory."""
    full_path = resolve_document_path(settings.data_dir, filename)
    if full_path is None:
        return None, 403
    if not os.path.isfile(full_path):
        return None, 404
    return full_path, 200
