# api/serializers.py
from datetime import date

from rest_framework import serializers

from algorithms.blood_compatibility import InvalidBloodType, parse_blood_type
from donors.models import DonorProfile, DonorNotification, DonationHistory
from hospitals.models import Hospital, EmergencyRequest


class BloodTypeField(serializers.CharField):
    """Accepts any casing/whitespace ('ab+ ') and stores the canonical code"""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        try:
            return parse_blood_type(value)
        except InvalidBloodType as e:
            raise serializers.ValidationError(str(e))


class DonorSerializer(serializers.ModelSerializer):
    """
    Public donor registration and profile
    """
    blood_type = BloodTypeField(max_length=3)
    agree_terms = serializers.BooleanField(write_only=True, required=False)
    can_donate = serializers.BooleanField(read_only=True)
    days_until_available = serializers.IntegerField(read_only=True)

    class Meta:
        model = DonorProfile
        fields = [
            'id',
            'full_name',
            'age',
            'blood_type',
            'phone',
            'email',
            'emergency_contact',
            'address',
            'city',
            'state',
            'pincode',
            'last_donation_date',
            'medical_conditions',
            'is_available',
            'available_for_emergency',
            'donation_count',
            'can_donate',
            'days_until_available',
            'agree_terms',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['donation_count', 'created_at', 'updated_at']

    def validate(self, attrs):
        # Terms only apply when registering
        if self.instance is None and not attrs.get('agree_terms'):
            raise serializers.ValidationError(
                {'agree_terms': "Please agree to the terms and conditions"}
            )
        attrs.pop('agree_terms', None)
        return attrs

    def update(self, instance, validated_data):
        # Setting availability by hand takes the donor out of the cooldown restore
        if 'is_available' in validated_data:
            instance.on_cooldown = False
        return super().update(instance, validated_data)


class DonorSearchResultSerializer(serializers.ModelSerializer):
    """
    Donor as shown in search results (no medical details)
    """
    days_since_last_donation = serializers.SerializerMethodField()

    class Meta:
        model = DonorProfile
        fields = [
            'id',
            'full_name',
            'blood_type',
            'phone',
            'address',
            'city',
            'state',
            'is_available',
            'last_donation_date',
            'days_since_last_donation',
            'created_at',
        ]

    def get_days_since_last_donation(self, obj):
        if not obj.last_donation_date:
            return None
        return (date.today() - obj.last_donation_date).days


class RecordDonationSerializer(serializers.Serializer):
    hospital = serializers.PrimaryKeyRelatedField(
        queryset=Hospital.objects.all(), required=False, allow_null=True
    )
    emergency_request = serializers.PrimaryKeyRelatedField(
        queryset=EmergencyRequest.objects.all(), required=False, allow_null=True
    )
    units = serializers.IntegerField(min_value=1, max_value=10, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class HospitalSerializer(serializers.ModelSerializer):
    coordinates = serializers.SerializerMethodField()

    class Meta:
        model = Hospital
        fields = ['id', 'name', 'address', 'phone', 'coordinates']

    def get_coordinates(self, obj):
        if obj.latitude is None or obj.longitude is None:
            return None
        return {'lat': obj.latitude, 'lng': obj.longitude}


class EmergencyRequestSerializer(serializers.ModelSerializer):
    """
    Emergency request with hospital details
    """
    blood_type = BloodTypeField(max_length=3)
    hospital_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    urgency_label = serializers.CharField(source='get_urgency_level_display', read_only=True)

    class Meta:
        model = EmergencyRequest
        fields = [
            'id',
            'patient_name',
            'blood_type',
            'units_needed',
            'urgency_level',
            'urgency_label',
            'medical_condition',
            'hospital',
            'hospital_name',
            'hospital_address',
            'city',
            'contact_person',
            'contact_phone',
            'additional_notes',
            'status',
            'donors_notified',
            'hospitals_notified',
            'broadcast_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'status', 'donors_notified', 'hospitals_notified', 'broadcast_at',
            'created_at', 'updated_at',
        ]

    def validate(self, attrs):
        # A hospital picked from the directory fills in name and address
        hospital = attrs.get('hospital')
        if hospital is not None:
            attrs['hospital_name'] = hospital.name
            attrs['hospital_address'] = hospital.address
        elif not attrs.get('hospital_name') and self.instance is None:
            raise serializers.ValidationError({'hospital_name': "Select a hospital or enter its name"})
        return attrs


class DonorNotificationSerializer(serializers.ModelSerializer):
    donor_name = serializers.CharField(source='donor.full_name', read_only=True)
    donor_blood_type = serializers.CharField(source='donor.blood_type', read_only=True)

    class Meta:
        model = DonorNotification
        fields = [
            'id',
            'donor',
            'donor_name',
            'donor_blood_type',
            'emergency_request',
            'status',
            'is_read',
            'sent_at',
            'notified_at',
            'responded_at',
        ]


class DonationHistorySerializer(serializers.ModelSerializer):
    hospital_name = serializers.CharField(source='hospital.name', read_only=True, default=None)

    class Meta:
        model = DonationHistory
        fields = [
            'id',
            'donor',
            'hospital',
            'hospital_name',
            'emergency_request',
            'date_donated',
            'units_donated',
            'notes',
            'created_at',
        ]
