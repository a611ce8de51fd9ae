import django_filters
from django.db.models import Q

from pawnsys.pledges.models import PledgeItem
from pawnsys.pledges.utils import normalize_barcode, expand_compact_barcode


class PledgeItemFilter(django_filters.FilterSet):
    """Filters shared by the inventory list and its CSV export"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Status')
    pledge_status = django_filters.CharFilter(method='filter_pledge_status', label='Pledge status')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    purity = django_filters.CharFilter(field_name='purity__code', lookup_expr='exact')
    vault = django_filters.NumberFilter(field_name='slot__box__vault_id', lookup_expr='exact')
    box = django_filters.NumberFilter(field_name='slot__box_id', lookup_expr='exact')
    unassigned = django_filters.BooleanFilter(method='filter_unassigned', label='No slot')
    date_from = django_filters.DateFilter(field_name='pledge__pledge_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='pledge__pledge_date', lookup_expr='lte')

    class Meta:
        model = PledgeItem
        fields = ['search', 'status', 'pledge_status', 'category', 'purity', 'vault', 'box',
                  'unassigned', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        """Barcode (printed or scanner form), pledge number or customer name/IC"""
        term = (value or '').strip()
        if not term:
            return queryset
        barcode = normalize_barcode(term)
        return queryset.filter(
            Q(barcode__in={barcode, expand_compact_barcode(barcode)}) |
            Q(barcode__icontains=barcode) |
            Q(pledge__pledge_no__icontains=term) |
            Q(pledge__customer__name__icontains=term) |
            Q(pledge__customer__ic_number__icontains=term.replace('-', ''))
        )

    def filter_status(self, queryset, name, value):
        statuses = [s.strip() for s in (value or '').split(',') if s.strip()]
        return queryset.filter(status__in=statuses) if statuses else queryset

    def filter_pledge_status(self, queryset, name, value):
        statuses = [s.strip() for s in (value or '').split(',') if s.strip()]
        return queryset.filter(pledge__status__in=statuses) if statuses else queryset

    def filter_unassigned(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(slot__isnull=value)
