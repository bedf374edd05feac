# api/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# Create router and register viewsets
router = DefaultRouter()
router.register(r'donors', views.DonorViewSet, basename='donor')
router.register(r'hospitals', views.HospitalViewSet, basename='hospital')
router.register(r'emergency-requests', views.EmergencyRequestViewSet, basename='emergency-request')

app_name = 'api'

urlpatterns = [
    # Custom endpoints
    path('blood-types/', views.blood_types, name='blood-types'),
    path('compatibility/', views.compatibility_check, name='compatibility-check'),
    path('compatibility/<str:blood_type>/', views.compatibility_report, name='compatibility-report'),
    path('stats/', views.dashboard_stats, name='dashboard-stats'),

    # Router URLs
    path('', include(router.urls)),
]

# Available endpoints:
# GET  /api/blood-types/                            - Blood types with population profile
# GET  /api/compatibility/?donor=O-&recipient=A+    - Check one donor/recipient pair
# GET  /api/compatibility/{blood_type}/             - Full compatibility report
#
# GET  /api/donors/?blood_type=&city=&state=        - Search available donors
# POST /api/donors/                                 - Register as donor
# GET  /api/donors/{id}/                            - Donor detail
# POST /api/donors/{id}/record_donation/            - Record a donation (staff)
# POST /api/donors/{id}/toggle_availability/        - Toggle availability (staff)
# GET  /api/donors/{id}/donation_history/           - Donation history (staff)
#
# GET  /api/hospitals/?q=aiims                      - Hospital autocomplete
#
# GET  /api/emergency-requests/                     - Live board (open, most urgent first)
# POST /api/emergency-requests/                     - Create and broadcast
# POST /api/emergency-requests/{id}/fulfil/         - Mark fulfilled (staff)
# POST /api/emergency-requests/{id}/cancel/         - Cancel (staff)
# GET  /api/emergency-requests/{id}/notifications/  - Donors reached (staff)
#
# GET  /api/stats/                                  - Home page statistics
