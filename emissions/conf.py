from django.conf import settings

DEFAULTS = {
    'MAX_WORKERS': 4,
    'CACHE_ALIAS': 'default',
    'CACHE_TIMEOUT': 60 * 5,
}


def aggregation_setting(name):
    """Read a key of the ``SCOPE_AGGREGATION`` setting, falling back to the defaults."""
    configured = getattr(settings, 'SCOPE_AGGREGATION', None) or {}
    return configured.get(name, DEFAULTS[name])
