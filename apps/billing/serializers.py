# billing/serializers.py
from rest_framework import serializers
from .models import Invoice, InvoiceItem, Payment


class InvoiceItemSerializer(serializers.ModelSerializer):
    category_display = serializers.CharField(source='get_category_display', read_only=True)

    class Meta:
        model = InvoiceItem
        fields = [
            'id', 'position', 'description', 'category', 'category_display',
            'quantity', 'unit_price', 'discount', 'total'
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    method_display = serializers.CharField(source='get_method_display', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'amount', 'method', 'method_display', 'transaction_ref',
            'paid_at', 'received_by_id', 'notes'
        ]
        read_only_fields = fields


class InvoiceListSerializer(serializers.ModelSerializer):
    """List view serializer for invoices"""
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    patient_code = serializers.ReadOnlyField(source='patient.patient_id')

    class Meta:
        model = Invoice
        fields = [
            'id', 'invoice_id', 'patient', 'patient_name', 'patient_code', 'invoice_date',
            'due_date', 'total_amount', 'paid_amount', 'balance_amount', 'payment_status'
        ]


class InvoiceDetailSerializer(serializers.ModelSerializer):
    """Invoice with its line items and ledger"""
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    patient_code = serializers.ReadOnlyField(source='patient.patient_id')
    appointment_code = serializers.ReadOnlyField(source='appointment.appointment_id')
    admission_code = serializers.ReadOnlyField(source='admission.admission_id')
    status_display = serializers.CharField(source='get_payment_status_display', read_only=True)
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = '__all__'


class InvoiceItemInputSerializer(serializers.Serializer):
    """Line item as sent by clients; ranges are checked by the billing service"""
    description = serializers.CharField(max_length=255)
    category = serializers.ChoiceField(choices=InvoiceItem.CATEGORY_CHOICES, default='OTHER')
    quantity = serializers.IntegerField(default=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, default=0)


class InvoiceFieldsSerializer(serializers.Serializer):
    tax_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    discount_reason = serializers.CharField(max_length=255, required=False, allow_blank=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    insurance_provider = serializers.CharField(max_length=200, required=False, allow_blank=True)
    insurance_policy_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    insurance_claim_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    insurance_claim_status = serializers.ChoiceField(choices=Invoice.CLAIM_STATUS_CHOICES, required=False)
    insurance_approved_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)


class InvoiceCreateSerializer(InvoiceFieldsSerializer):
    """Invoice creation request"""
    patient = serializers.IntegerField()
    appointment = serializers.IntegerField(required=False, allow_null=True)
    admission = serializers.IntegerField(required=False, allow_null=True)
    items = InvoiceItemInputSerializer(many=True, required=False, default=list)


class InvoiceUpdateSerializer(InvoiceFieldsSerializer):
    """Invoice edit request; ``items`` replaces every line item when present"""
    items = InvoiceItemInputSerializer(many=True, required=False)


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    transaction_ref = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    idempotency_key = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate(self, attrs):
        """Fall back to the Idempotency-Key header passed in through the context"""
        header_key = self.context.get('idempotency_header')
        if header_key and not attrs.get('idempotency_key'):
            limit = self.fields['idempotency_key'].max_length
            if len(header_key) > limit:
                raise serializers.ValidationError({
                    'idempotency_key': f"Idempotency-Key header must be at most {limit} characters"
                })
            attrs['idempotency_key'] = header_key
        return attrs


class BillingSummarySerializer(serializers.Serializer):
    total_billed = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_paid = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_outstanding = serializers.DecimalField(max_digits=14, decimal_places=2)
