"""Lead aggregation across the SQLite store, the JSON document store and batch exports.

Stores are read in priority order and merged with first-seen-wins semantics on
a case-folded ``(email, website, name)`` identity.
"""

import os
import re
import shutil
import sqlite3

from command_runner import decode_json_stream
from file_repository import extract_records, file_mtime, list_files, read_json, read_records
from timeutil import iso_from_epoch, parse_any_ts


LEADS_QUERY = 'SELECT * FROM leads'
NAME_KEYS = ('name', 'business_name', 'businessName', 'company', 'title')
EMAIL_KEYS = ('email', 'contact_email', 'contactEmail')
WEBSITE_KEYS = ('website', 'url', 'site')
CREATED_KEYS = ('createdAt', 'created_at', 'timestamp', 'scrapedAt', 'scraped_at', 'date')


class SqliteDriverStore:
    """Read lead rows through the ``sqlite3`` driver."""

    name = 'driver'

    def __init__(self, db_path):
        self.db_path = db_path

    def load_rows(self):
        conn = sqlite3.connect(f'file:{self.db_path}?mode=ro', uri=True, timeout=2.0)
        try:
            conn.row_factory = sqlite3.Row
            return [dict(row) for row in conn.execute(LEADS_QUERY).fetchall()]
        finally:
            conn.close()


class SqliteCliStore:
    """Read the same rows through the ``sqlite3`` command-line tool in JSON mode."""

    name = 'cli'

    def __init__(self, db_path, runner, binary='sqlite3'):
        self.db_path = db_path
        self.runner = runner
        self.binary = binary

    def load_rows(self):
        result = self.runner.run([self.binary, '-json', '-readonly', self.db_path, LEADS_QUERY])
        if not result.ok:
            raise RuntimeError(result.stderr.strip() or 'sqlite3 CLI failed')
        if not result.stdout.strip():
            return []
        values = decode_json_stream(result.stdout)
        return extract_records(values[0] if values else None, 'leads')


class ChainedLeadStore:
    """Try each strategy in order and return the first that answers."""

    def __init__(self, strategies):
        self.strategies = list(strategies)

    def load_rows(self):
        for strategy in self.strategies:
            try:
                return strategy.load_rows()
            except (sqlite3.Error, RuntimeError, OSError) as e:
                print(f'[LEADS] {strategy.name} store unavailable: {e}')
        return []


def build_lead_store(settings, runner):
    strategies = [SqliteDriverStore(settings.leads_db)]
    if shutil.which('sqlite3'):
        strategies.append(SqliteCliStore(settings.leads_db, runner))
    return ChainedLeadStore(strategies)


def load_database_leads(settings, runner):
    if not os.path.isfile(settings.leads_db):
        return []
    return build_lead_store(settings, runner).load_rows()


def load_document_leads(settings):
    return read_records(settings.leads_file, 'leads')


def load_batch_leads(settings):
    """Read every batch export; each row carries its file's mtime as a fallback timestamp."""
    rows = []
    for path in list_files(settings.lead_batches_dir, suffixes=('.json',)):
        mtime = file_mtime(path)
        for row in extract_records(read_json(path), 'leads'):
            rows.append(dict(row, _fileMtime=mtime))
    return rows


def _first_text(record, keys):
    for key in keys:
        value = record.get(key)
        if value not in (None, ''):
            return str(value).strip()
    return ''


def normalize_website(value):
    text = str(value or '').strip().lower()
    text = re.sub(r'^[a-z]+://', '', text)
    if text.startswith('www.'):
        text = text[4:]
    return text.rstrip('/')


def normalize_lead(record, source):
    """Map a raw lead row to ``{name, email, website, source, createdAt}``."""
    created = None
    for key in CREATED_KEYS:
        if parse_any_ts(record.get(key)) > 0:
            created = iso_from_epoch(parse_any_ts(record.get(key)))
            break
    if created is None and record.get('_fileMtime'):
        created = iso_from_epoch(record['_fileMtime'])
    return {
        'name': _first_text(record, NAME_KEYS),
        'email': _first_text(record, EMAIL_KEYS),
        'website': _first_text(record, WEBSITE_KEYS),
        'source': source,
        'createdAt': created,
    }


def identity_key(lead):
    return (
        lead.get('email', '').strip().lower(),
        normalize_website(lead.get('website')),
        lead.get('name', '').strip().lower(),
    )


def same_identity(left, right):
    """Blank components never disagree; at least one component must be shared."""
    shared = False
    for a, b in zip(left, right):
        if a and b:
            if a != b:
                return False
            shared = True
    return shared


def merge_leads(sources):
    """Merge ``[(source_tag, rows), ...]`` in priority order, first occurrence wins."""
    kept = []
    keys = []
    for source, rows in sources:
        for row in rows or []:
            if not isinstance(row, dict):
                continue
            lead = normalize_lead(row, source)
            key = identity_key(lead)
            if not any(key):
                continue
            if any(same_identity(key, seen) for seen in keys):
                continue
            keys.append(key)
            kept.append(lead)

    kept.sort(key=lambda lead: parse_any_ts(lead.get('createdAt')), reverse=True)
    return kept
