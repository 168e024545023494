from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import PatientViewSet

router = SimpleRouter()
router.register(r'', PatientViewSet, basename='patient')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# GET    /api/patients/          - List all patients
# POST   /api/patients/          - Register new patient
# GET    /api/patients/me/       - Calling patient's own profile
# GET    /api/patients/{id}/     - Get patient details
# PUT    /api/patients/{id}/     - Update patient (full)
# PATCH  /api/patients/{id}/     - Update patient (partial)
# DELETE /api/patients/{id}/     - Delete patient
