# opd/urls.py
from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import OPDRecordViewSet

router = SimpleRouter()
router.register(r'records', OPDRecordViewSet, basename='opd-record')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# GET|POST /api/opd/records/                     - List / record a visit
# GET      /api/opd/records/{id}/                - Record with prescriptions
# PATCH    /api/opd/records/{id}/                - Edit clinical fields
# POST     /api/opd/records/{id}/prescriptions/  - Append prescriptions
# GET      /api/opd/records/patient/{id}/        - Patient visit history
# GET      /api/opd/records/stats/               - Visit counts
