# diagnostics/urls.py
from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import LabTestViewSet, LabOrderViewSet

router = SimpleRouter()
router.register(r'tests', LabTestViewSet, basename='lab-test')
router.register(r'orders', LabOrderViewSet, basename='lab-order')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# GET|POST /api/lab/tests/                         - Test catalog
# DELETE   /api/lab/tests/{id}/                    - Deactivate a test
# GET      /api/lab/tests/categories/              - Category choices
# GET|POST /api/lab/orders/                        - List / place orders
# POST     /api/lab/orders/{id}/collect-sample/    - PENDING -> IN_PROGRESS
# POST     /api/lab/orders/{id}/result/            - IN_PROGRESS -> COMPLETED
# POST     /api/lab/orders/{id}/cancel/            - Cancel before a result
# GET      /api/lab/orders/patient/{id}/           - Patient lab history
# GET      /api/lab/orders/stats/                  - Lab workload
