from django.contrib import admin
from .models import Medicine


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = [
        'medicine_id', 'name', 'category', 'batch_number', 'expiry_date',
        'stock', 'min_stock_level', 'selling_price', 'is_active'
    ]
    list_filter = ['category', 'prescription_required', 'is_active', 'expiry_date']
    search_fields = ['medicine_id', 'name', 'generic_name', 'batch_number', 'manufacturer']
    # Stock is adjusted through the API so every change is logged
    readonly_fields = ['medicine_id', 'stock', 'created_at', 'updated_at']

    fieldsets = (
        ('Medicine', {
            'fields': ('medicine_id', 'name', 'generic_name', 'category', 'manufacturer', 'prescription_required')
        }),
        ('Batch', {
            'fields': ('batch_number', 'manufacturing_date', 'expiry_date', 'storage')
        }),
        ('Inventory', {
            'fields': ('stock', 'min_stock_level', 'unit', 'purchase_price', 'selling_price')
        }),
        ('Details', {
            'fields': ('description', 'side_effects', 'supplier_name', 'supplier_contact', 'is_active')
        }),
        ('System Fields', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
