"""Summaries of cached audit results with score normalization."""

import os

from file_repository import file_mtime, list_files, read_json
from timeutil import iso_from_epoch, parse_any_ts, period_starts


NAME_RULES = (
    ('businessName',),
    ('business_name',),
    ('report', 'businessName'),
    ('report', 'business_name'),
    ('report', 'business', 'name'),
    ('report', 'business', 'businessName'),
)
SCORE_RULES = (
    ('score',),
    ('overallScore',),
    ('report', 'overallScore'),
    ('report', 'score'),
    ('report', 'business', 'score'),
    ('report', 'business', 'overallScore'),
)
TIMESTAMP_RULES = (
    ('timestamp',),
    ('auditedAt',),
    ('createdAt',),
    ('report', 'timestamp'),
    ('report', 'generatedAt'),
    ('report', 'business', 'auditedAt'),
)


def extract_first(data, rules):
    """Walk ``rules`` in order and return the first non-empty value found."""
    for path in rules:
        node = data
        for key in path:
            if not isinstance(node, dict):
                node = None
                break
            node = node.get(key)
        if node not in (None, ''):
            return node
    return None


def normalize_score(raw):
    """Bring a 0-10 or 0-100 score onto 0-100; unknown scores count as 0."""
    if isinstance(raw, bool):
        return 0
    try:
        score = float(raw)
    except (TypeError, ValueError):
        return 0
    if score != score:
        return 0
    if score <= 10:
        score *= 10
    return int(round(max(0.0, min(score, 100.0))))


def load_audit_summary(path):
    data = read_json(path)
    if not isinstance(data, dict):
        return None
    epoch = parse_any_ts(extract_first(data, TIMESTAMP_RULES)) or file_mtime(path)
    stem = os.path.splitext(os.path.basename(path))[0]
    return {
        'id': str(data.get('id') or stem),
        'businessName': str(extract_first(data, NAME_RULES) or stem),
        'score': normalize_score(extract_first(data, SCORE_RULES)),
        'timestamp': iso_from_epoch(epoch),
        'file': os.path.basename(path),
        '_epoch': epoch,
    }


def load_audit_summaries(settings):
    summaries = []
    for path in list_files(settings.audit_cache_dir, suffixes=('.json',)):
        summary = load_audit_summary(path)
        if summary is not None:
            summaries.append(summary)
    return summaries


def summarize_audits(summaries, now=None):
    """Build ``{total, today, recent}`` from loaded audit summaries."""
    rows = sorted(summaries or [], key=lambda s: s.get('_epoch') or 0, reverse=True)
    today_start = period_starts(now)['today']
    today = sum(1 for s in rows if (s.get('_epoch') or 0) >= today_start)
    recent = [{k: v for k, v in s.items() if k != '_epoch'} for s in rows[:5]]
    return {
        'total': len(rows),
        'today': today,
        'recent': recent,
    }
