# pharmacy/urls.py
from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import MedicineViewSet

router = SimpleRouter()
router.register(r'medicines', MedicineViewSet, basename='medicine')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# GET|POST     /api/pharmacy/medicines/                  - List / add medicines
# DELETE       /api/pharmacy/medicines/{id}/             - Deactivate a medicine
# POST|PUT     /api/pharmacy/medicines/{id}/stock/       - add / subtract / set stock
# GET          /api/pharmacy/medicines/low-stock/        - At or below minimum level
# GET          /api/pharmacy/medicines/expired/          - Past expiry date
# GET          /api/pharmacy/medicines/expiring-soon/    - Expiring within ?days=30
# GET          /api/pharmacy/medicines/stats/            - Inventory summary
# GET          /api/pharmacy/medicines/categories/       - Category choices
