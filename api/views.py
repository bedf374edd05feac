# api/views.py
import logging

from django.db.models.functions import Lower
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAdminUser

from algorithms.blood_compatibility import (
    BLOOD_TYPES,
    InvalidBloodType,
    check_compatibility,
    get_blood_type_profile,
    is_compatible,
    parse_blood_type,
)
from donors.models import DonorProfile, DonationHistory
from donors.utils import search_donors, record_donation, toggle_availability
from hospitals.models import Hospital, EmergencyRequest
from hospitals.utils import search_hospitals, close_emergency_request, RequestClosed
from .serializers import (
    DonorSerializer,
    DonorSearchResultSerializer,
    RecordDonationSerializer,
    DonationHistorySerializer,
    HospitalSerializer,
    EmergencyRequestSerializer,
    DonorNotificationSerializer,
)

logger = logging.getLogger(__name__)

LIVES_SAVED_PER_DONATION = 3

TRUE_VALUES = ('1', 'true', 'yes', 'on')


# ============================================
# BLOOD COMPATIBILITY
# ============================================
@api_view(['GET'])
@permission_classes([AllowAny])
def blood_types(request):
    """All blood types with their population profile"""
    return Response([
        {'blood_type': bt, **get_blood_type_profile(bt)._asdict()}
        for bt in BLOOD_TYPES
    ])


@api_view(['GET'])
@permission_classes([AllowAny])
def compatibility_report(request, blood_type):
    """Who can give to / receive from the given blood type"""
    try:
        report = check_compatibility(blood_type)
    except InvalidBloodType as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Compatibility checked for {report['blood_type']}")
    return Response(report)


@api_view(['GET'])
@permission_classes([AllowAny])
def compatibility_check(request):
    """Check a single donor -> recipient pair: ?donor=O-&recipient=AB+"""
    donor = request.query_params.get('donor')
    recipient = request.query_params.get('recipient')

    if not donor or not recipient:
        return Response(
            {"error": "Both donor and recipient blood types are required"},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        donor = parse_blood_type(donor)
        recipient = parse_blood_type(recipient)
    except InvalidBloodType as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'donor': donor,
        'recipient': recipient,
        'compatible': is_compatible(donor, recipient),
    })


# ============================================
# DONORS
# ============================================
class DonorViewSet(mixins.CreateModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.UpdateModelMixin,
                   mixins.ListModelMixin,
                   viewsets.GenericViewSet):
    """
    Register donors (POST) and search available donors (GET ?blood_type=&city=&state=&compatible=)
    """
    queryset = DonorProfile.objects.all()

    def get_permissions(self):
        if self.action in ('list', 'retrieve', 'create'):
            return [AllowAny()]
        return [IsAdminUser()]

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return DonorSearchResultSerializer
        if self.action == 'record_donation':
            return RecordDonationSerializer
        return DonorSerializer

    def list(self, request, *args, **kwargs):
        blood_type = request.query_params.get('blood_type')
        if not blood_type:
            return Response({"error": "Please select a blood group"}, status=status.HTTP_400_BAD_REQUEST)

        compatible = request.query_params.get('compatible', '').lower() in TRUE_VALUES
        try:
            donors = search_donors(
                blood_type,
                city=request.query_params.get('city', ''),
                state=request.query_params.get('state', ''),
                compatible=compatible,
            )
        except InvalidBloodType as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        serializer = self.get_serializer(donors, many=True)
        return Response(serializer.data)

    def perform_create(self, serializer):
        donor = serializer.save()
        logger.info(f"Donor registered: {donor.full_name} ({donor.blood_type}, {donor.city})")

    @action(detail=True, methods=['post'])
    def record_donation(self, request, pk=None):
        """Log a donation and start the donor's cooldown"""
        donor = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        record_donation(
            donor,
            hospital=serializer.validated_data.get('hospital'),
            emergency_request=serializer.validated_data.get('emergency_request'),
            units=serializer.validated_data['units'],
            notes=serializer.validated_data['notes'],
        )
        return Response(DonorSerializer(donor).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def toggle_availability(self, request, pk=None):
        donor = toggle_availability(self.get_object())
        return Response({'id': donor.id, 'is_available': donor.is_available})

    @action(detail=True, methods=['get'])
    def donation_history(self, request, pk=None):
        donor = self.get_object()
        history = DonationHistory.objects.filter(donor=donor).select_related('hospital')
        return Response(DonationHistorySerializer(history, many=True).data)


# ============================================
# HOSPITALS
# ============================================
class HospitalViewSet(viewsets.ReadOnlyModelViewSet):
    """Hospital directory; ?q= runs the autocomplete search"""
    queryset = Hospital.objects.filter(is_active=True).order_by('name')
    serializer_class = HospitalSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list' and 'q' in self.request.query_params:
            return search_hospitals(self.request.query_params['q'])
        return queryset


# ============================================
# EMERGENCY REQUESTS
# ============================================
class EmergencyRequestViewSet(mixins.CreateModelMixin,
                              mixins.RetrieveModelMixin,
                              mixins.ListModelMixin,
                              viewsets.GenericViewSet):
    """
    Live board of emergency requests (most urgent first) and request creation
    """
    queryset = EmergencyRequest.objects.select_related('hospital')
    serializer_class = EmergencyRequestSerializer

    def get_permissions(self):
        if self.action in ('list', 'retrieve', 'create'):
            return [AllowAny()]
        return [IsAdminUser()]

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        status_filter = self.request.query_params.get('status', 'open')
        if status_filter != 'all':
            queryset = queryset.filter(status=status_filter)
        return queryset.by_urgency()

    def perform_create(self, serializer):
        emergency_request = serializer.save()
        logger.info(
            f"Emergency request {emergency_request.id} created: {emergency_request.blood_type} "
            f"x{emergency_request.units_needed} at {emergency_request.hospital_name}"
        )

    def _close(self, request, new_status):
        emergency_request = self.get_object()
        try:
            close_emergency_request(emergency_request, new_status)
        except RequestClosed as e:
            return Response({"error": str(e)}, status=status.HTTP_409_CONFLICT)
        return Response(self.get_serializer(emergency_request).data)

    @action(detail=True, methods=['post'])
    def fulfil(self, request, pk=None):
        return self._close(request, 'fulfilled')

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        return self._close(request, 'cancelled')

    @action(detail=True, methods=['get'])
    def notifications(self, request, pk=None):
        emergency_request = self.get_object()
        notifications = emergency_request.donor_notifications.select_related('donor')
        return Response(DonorNotificationSerializer(notifications, many=True).data)


# ============================================
# STATS
# ============================================
@api_view(['GET'])
@permission_classes([AllowAny])
def dashboard_stats(request):
    """Headline numbers for the home page"""
    total_donations = DonationHistory.objects.count()
    cities_covered = (
        DonorProfile.objects.exclude(city='')
        .annotate(city_key=Lower('city'))
        .order_by()
        .values('city_key')
        .distinct()
        .count()
    )

    return Response({
        'total_donors': DonorProfile.objects.count(),
        'active_donors': DonorProfile.objects.filter(is_available=True).count(),
        'lives_saved': total_donations * LIVES_SAVED_PER_DONATION,
        'cities_covered': cities_covered,
        'open_requests': EmergencyRequest.objects.open().count(),
    })
