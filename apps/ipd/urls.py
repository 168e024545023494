# ipd/urls.py
from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import WardViewSet, BedViewSet, AdmissionViewSet

router = SimpleRouter()
router.register(r'wards', WardViewSet, basename='ward')
router.register(r'beds', BedViewSet, basename='bed')
router.register(r'admissions', AdmissionViewSet, basename='admission')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# /api/ipd/wards/                              - Ward CRUD
# /api/ipd/beds/                               - Bed CRUD (status is read-only)
# GET  /api/ipd/beds/available/?ward_type=     - Beds ready for admission
# GET  /api/ipd/beds/stats/                    - Occupancy statistics
# POST /api/ipd/beds/{id}/maintenance/         - AVAILABLE/RESERVED -> MAINTENANCE
# POST /api/ipd/beds/{id}/reserve/             - AVAILABLE -> RESERVED
# POST /api/ipd/beds/{id}/mark-available/      - MAINTENANCE/RESERVED -> AVAILABLE
# POST /api/ipd/admissions/                    - Admit patient
# POST /api/ipd/admissions/{id}/discharge/     - Discharge patient
# POST /api/ipd/admissions/{id}/transfer/      - Move to another bed
# GET  /api/ipd/admissions/{id}/transfers/     - Transfer history
# GET|POST /api/ipd/admissions/{id}/notes/     - Treatment notes
# GET|POST /api/ipd/admissions/{id}/vitals/    - Vital records
# GET|POST /api/ipd/admissions/{id}/medications/ - Medications
# GET  /api/ipd/admissions/active/             - Currently admitted
# GET  /api/ipd/admissions/stats/              - Census
