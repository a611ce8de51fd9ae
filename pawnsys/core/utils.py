"""Utility functions for audit logging, settings and document numbering"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Max

from .models import AuditLog, Setting

logger = logging.getLogger('pawnsys.core')


def get_client_ip(request):
    meta = getattr(request, 'META', None) or {}
    forwarded = meta.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return meta.get('REMOTE_ADDR') or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None,
                     barcode=None):
    """
    Record who did what to which pledge, item or record

    The acting user comes from `user` or, failing that, `request.user`.
    `object_reference` carries the document number staff search by
    (pledge, renewal or redemption number) and `barcode` the affected item
    barcodes, comma-separated. Returns the entry, or None when it could not
    be written; a failed audit write never aborts the counter transaction.
    """
    if not (action and model_name and object_id):
        logger.warning(f"Audit entry skipped for {action or '?'} on {model_name or '?'}: missing action, model or id")
        return None

    actor = user or getattr(request, 'user', None)
    if actor is not None and not actor.is_authenticated:
        actor = None

    try:
        return AuditLog.objects.create(
            user=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            barcode=barcode,
            changes=changes or {},
            ip_address=get_client_ip(request),
        )
    except DatabaseError as e:
        logger.error(f"Audit entry for {action} {model_name}#{object_id} not written: {e}")
        return None


def pawn_config(*path, default=None):
    """
    Read a value from settings.PAWNSYS by key path

    Example: pawn_config('interest', 'standard') -> Decimal('0.5')
    """
    value = getattr(settings, 'PAWNSYS', {})
    for key in path:
        if not isinstance(value, dict) or key not in value:
            return default
        value = value[key]
    return value


def get_setting(key, default=None):
    """Return the stored value for a setting key, or default when unset"""
    setting = Setting.objects.filter(key=key).first()
    if setting is None:
        return default
    return setting.value


def get_decimal_setting(key, default):
    value = get_setting(key)
    if value in (None, ''):
        return Decimal(str(default))
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning(f"Setting '{key}' has non-numeric value {value!r}, using {default}")
        return Decimal(str(default))


def set_setting(key, value, description=''):
    setting, created = Setting.objects.update_or_create(
        key=key,
        defaults={'value': str(value), 'description': description} if description else {'value': str(value)},
    )
    return setting


def generate_sequence_number(model, field, prefix, width=4):
    """
    Generate the next sequential document number for a prefix

    Numbers look like '<prefix>-0001'. The highest existing suffix for the
    prefix is found and incremented, so gaps left by deleted rows are not
    reused. Callers that need strict uniqueness under concurrency should run
    inside transaction.atomic() and retry on IntegrityError.
    """
    lookup = {f'{field}__startswith': f'{prefix}-'}
    last_value = model.objects.filter(**lookup).aggregate(last=Max(field))['last']
    next_number = 1
    if last_value:
        try:
            next_number = int(last_value.rsplit('-', 1)[1]) + 1
        except (IndexError, ValueError):
            logger.warning(f"Unparseable sequence value {last_value!r} for prefix {prefix}")
            next_number = model.objects.filter(**lookup).count() + 1
    return f"{prefix}-{str(next_number).zfill(width)}"


TWO_PLACES = Decimal('0.01')


def money(value):
    """Round to cents, half up"""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def paginate(request, queryset, serializer_class, default_limit=50, max_limit=500):
    """
    Page a queryset with Django's Paginator and return the response body

    Query params: page (1-based), limit
    """
    from django.core.paginator import Paginator

    try:
        page = max(1, int(request.query_params.get('page', 1)))
    except ValueError:
        page = 1
    try:
        limit = min(max(1, int(request.query_params.get('limit', default_limit))), max_limit)
    except ValueError:
        limit = default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    return {
        'results': serializer_class(page_obj, many=True).data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
