# pharmacy/serializers.py
from rest_framework import serializers
from .models import Medicine
from .services import STOCK_OPERATIONS


class MedicineSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.ReadOnlyField()
    is_expired = serializers.ReadOnlyField()

    class Meta:
        model = Medicine
        fields = '__all__'
        # Stock changes go through the stock action
        read_only_fields = ['medicine_id', 'stock', 'created_at', 'updated_at']

    def validate(self, attrs):
        manufactured = attrs.get('manufacturing_date', getattr(self.instance, 'manufacturing_date', None))
        expiry = attrs.get('expiry_date', getattr(self.instance, 'expiry_date', None))
        if manufactured and expiry and expiry <= manufactured:
            raise serializers.ValidationError({'expiry_date': 'Expiry date must be after the manufacturing date'})
        return attrs


class MedicineCreateSerializer(MedicineSerializer):
    """Opening stock may be given when a batch is first entered."""

    class Meta(MedicineSerializer.Meta):
        read_only_fields = ['medicine_id', 'created_at', 'updated_at']


class MedicineListSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.ReadOnlyField()
    is_expired = serializers.ReadOnlyField()

    class Meta:
        model = Medicine
        fields = [
            'id', 'medicine_id', 'name', 'generic_name', 'category', 'batch_number',
            'expiry_date', 'stock', 'min_stock_level', 'unit', 'selling_price',
            'prescription_required', 'is_low_stock', 'is_expired', 'is_active'
        ]


class StockUpdateSerializer(serializers.Serializer):
    operation = serializers.ChoiceField(choices=STOCK_OPERATIONS)
    quantity = serializers.IntegerField(min_value=0)


class CategoryStockSerializer(serializers.Serializer):
    category = serializers.CharField()
    count = serializers.IntegerField()
    total_stock = serializers.IntegerField()


class PharmacyStatsSerializer(serializers.Serializer):
    total_medicines = serializers.IntegerField()
    low_stock = serializers.IntegerField()
    expired = serializers.IntegerField()
    expiring_soon = serializers.IntegerField()
    total_inventory_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    by_category = CategoryStockSerializer(many=True)


class ExpiryWindowSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, default=30)
