import datetime
import re

from rest_framework import serializers

from .models import Patient


class PatientListSerializer(serializers.ModelSerializer):
    """List view serializer for patients - minimal fields"""
    full_name = serializers.ReadOnlyField()
    age = serializers.ReadOnlyField()

    class Meta:
        model = Patient
        fields = [
            'id', 'patient_id', 'full_name', 'age', 'gender',
            'phone', 'email', 'blood_group', 'created_at'
        ]


class PatientDetailSerializer(serializers.ModelSerializer):
    """Detail view serializer for patients - all fields"""
    full_name = serializers.ReadOnlyField()
    age = serializers.ReadOnlyField()
    is_insurance_valid = serializers.ReadOnlyField()

    class Meta:
        model = Patient
        fields = '__all__'


class PatientCreateUpdateSerializer(serializers.ModelSerializer):
    """Create/Update serializer for patients"""

    class Meta:
        model = Patient
        exclude = ['patient_id', 'created_by_user_id']

    def validate_phone(self, value):
        """Validate mobile number format"""
        pattern = r'^\+?1?\d{9,15}$'
        if not re.match(pattern, value):
            raise serializers.ValidationError(
                'Phone number must be in format: +999999999. Up to 15 digits allowed.'
            )
        return value

    def validate_date_of_birth(self, value):
        """Ensure date of birth is in the past"""
        if value > datetime.date.today():
            raise serializers.ValidationError('Date of birth cannot be in the future')

        age = datetime.date.today().year - value.year
        if age > 150:
            raise serializers.ValidationError('Invalid date of birth - age would be over 150 years')

        return value

    def validate_allergies(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError('Allergies must be a list of strings')
        return value

    def validate(self, attrs):
        """Cross-field validation"""
        # If insurance provider is given, policy number is required
        provider = attrs.get('insurance_provider', getattr(self.instance, 'insurance_provider', ''))
        policy = attrs.get('insurance_policy_number', getattr(self.instance, 'insurance_policy_number', ''))
        if provider and not policy:
            raise serializers.ValidationError({
                'insurance_policy_number': 'Policy number is required when insurance provider is specified'
            })
        return attrs

    def update(self, instance, validated_data):
        """Update patient profile"""
        validated_data.pop('user_id', None)  # Don't allow user change
        return super().update(instance, validated_data)
