import django_filters

from .models import Invoice


class InvoiceFilter(django_filters.FilterSet):
    """Invoice list filters; malformed dates are a 400, not a 500."""

    date_from = django_filters.DateFilter(field_name='invoice_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='invoice_date', lookup_expr='date__lte')

    class Meta:
        model = Invoice
        fields = ['patient', 'payment_status', 'appointment', 'admission']
