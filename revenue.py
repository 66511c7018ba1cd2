"""Revenue timeline built from the payments log and business-metrics history."""

from file_repository import extract_records, read_json, read_records
from timeutil import iso_from_epoch, parse_any_ts, period_starts


TIMESTAMP_KEYS = ('timestamp', 'createdAt', 'created_at', 'created', 'paidAt', 'date')
NAME_KEYS = (
    'businessName', 'business_name', 'customerName', 'customer_name',
    'clientName', 'client_name', 'client', 'name', 'description',
)
EMAIL_KEYS = ('email', 'customerEmail', 'customer_email')
SESSION_KEYS = ('sessionId', 'session_id', 'id')


def _first(record, keys):
    for key in keys:
        value = record.get(key)
        if value not in (None, ''):
            return value
    return None


def _amount(value):
    if isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return amount if amount > 0 else None


def is_synthetic(record, settings):
    """Return True when a record looks like test or placeholder data."""
    for key in NAME_KEYS:
        name = str(record.get(key) or '').strip().lower()
        if name and name in settings.synthetic_names:
            return True

    email = str(_first(record, EMAIL_KEYS) or '').strip().lower()
    if '@' in email:
        domain = email.rsplit('@', 1)[1]
        if any(domain == d or domain.endswith('.' + d) for d in settings.synthetic_email_domains):
            return True

    session = str(_first(record, SESSION_KEYS) or '').strip().lower()
    if session and any(session.startswith(prefix) for prefix in settings.synthetic_session_prefixes):
        return True
    return False


def normalize_revenue_record(record, source):
    """Map a raw payment/history row to ``{amount, timestamp, businessName, source}``."""
    amount = _amount(record.get('amount'))
    if amount is None:
        return None
    epoch = parse_any_ts(_first(record, TIMESTAMP_KEYS))
    return {
        'amount': round(amount, 2),
        'timestamp': iso_from_epoch(epoch),
        'businessName': str(_first(record, NAME_KEYS) or 'Unknown'),
        'source': source,
        '_epoch': epoch,
    }


def load_payment_records(settings):
    return read_records(settings.payments_file, 'payments')


def load_history_records(settings):
    metrics = read_json(settings.business_metrics_file, fallback={})
    return extract_records(metrics.get('history') if isinstance(metrics, dict) else None, 'history')


def aggregate_revenue(payments, history, settings, now=None):
    """Merge, filter and bucket revenue rows into the dashboard payload."""
    entries = []
    for source, rows in (('payments', payments or []), ('history', history or [])):
        for row in rows:
            if not isinstance(row, dict) or is_synthetic(row, settings):
                continue
            entry = normalize_revenue_record(row, source)
            if entry is not None:
                entries.append(entry)

    entries.sort(key=lambda e: e['_epoch'], reverse=True)
    starts = period_starts(now)
    totals = {}
    for bucket, start in starts.items():
        totals[bucket] = round(sum(e['amount'] for e in entries if e['_epoch'] > 0 and e['_epoch'] >= start), 2)

    for entry in entries:
        entry.pop('_epoch', None)

    return {
        'today': totals['today'],
        'week': totals['week'],
        'month': totals['month'],
        'payments': entries[:5],
        'totalCount': len(entries),
    }
