from django.contrib import admin
from .models import Invoice, InvoiceItem, Payment


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ['position', 'description', 'category', 'quantity', 'unit_price', 'discount', 'total']
    can_delete = False


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ['amount', 'method', 'transaction_ref', 'paid_at', 'received_by_id', 'notes']
    can_delete = False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Read-mostly: amounts change only through the billing API."""
    list_display = [
        'invoice_id', 'patient', 'invoice_date', 'total_amount',
        'paid_amount', 'balance_amount', 'payment_status'
    ]
    list_filter = ['payment_status', 'invoice_date', 'insurance_claim_status']
    search_fields = ['invoice_id', 'patient__first_name', 'patient__last_name', 'patient__patient_id']
    readonly_fields = [
        'invoice_id', 'patient', 'appointment', 'admission', 'subtotal', 'tax_percent', 'tax_amount',
        'discount_percent', 'discount_amount', 'total_amount', 'paid_amount', 'balance_amount',
        'payment_status', 'created_by_user_id', 'created_at', 'updated_at'
    ]
    inlines = [InvoiceItemInline, PaymentInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
