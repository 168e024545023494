from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import InvoiceViewSet

router = SimpleRouter()
router.register(r'', InvoiceViewSet, basename='invoice')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# GET    /api/billing/                       - List invoices (?patient, ?payment_status, ?date_from, ?date_to)
# POST   /api/billing/                       - Create invoice
# GET    /api/billing/stats/                 - Billing statistics
# GET    /api/billing/patient/{patient_id}/  - Patient billing history
# GET    /api/billing/{id}/                  - Invoice details
# PUT    /api/billing/{id}/                  - Update invoice (not when paid)
# PATCH  /api/billing/{id}/                  - Update invoice (partial)
# DELETE /api/billing/{id}/                  - Delete invoice (no payments)
# GET    /api/billing/{id}/payments/         - Payment ledger
# POST   /api/billing/{id}/payments/         - Add payment
# GET    /api/billing/{id}/document/         - Printable invoice
