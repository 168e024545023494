from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import DoctorProfileViewSet

router = SimpleRouter()
router.register(r'', DoctorProfileViewSet, basename='doctor')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# GET    /api/doctors/                     - List doctors
# POST   /api/doctors/                     - Create doctor profile
# GET    /api/doctors/specializations/     - Distinct specializations
# GET    /api/doctors/{id}/                - Doctor details
# PUT    /api/doctors/{id}/                - Update doctor (full)
# PATCH  /api/doctors/{id}/                - Update doctor (partial)
# DELETE /api/doctors/{id}/                - Delete doctor
# GET    /api/doctors/{id}/slots/?date=    - Slots for a date
# GET    /api/doctors/{id}/availability/   - Weekly availability
# PUT    /api/doctors/{id}/availability/   - Replace weekly availability
