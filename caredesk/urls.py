from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView

from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView
)

urlpatterns = [
    # Root redirect to admin
    path('', RedirectView.as_view(url='/admin/', permanent=False), name='index'),

    path('admin/', admin.site.urls),

    # API endpoints
    path('api/patients/', include('apps.patients.urls')),
    path('api/doctors/', include('apps.doctors.urls')),
    path('api/appointments/', include('apps.appointments.urls')),
    path('api/opd/', include('apps.opd.urls')),
    path('api/ipd/', include('apps.ipd.urls')),
    path('api/lab/', include('apps.diagnostics.urls')),
    path('api/pharmacy/', include('apps.pharmacy.urls')),
    path('api/billing/', include('apps.billing.urls')),
    path('api/dashboard/', include('apps.dashboard.urls')),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
