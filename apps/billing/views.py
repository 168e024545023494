# billing/views.py
import logging

from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, STAFF_ROLES, FRONT_DESK_ROLES, ADMIN, PATIENT
from common.exceptions import error_response
from . import services
from .filters import InvoiceFilter
from .models import Invoice
from .serializers import (
    InvoiceListSerializer,
    InvoiceDetailSerializer,
    InvoiceCreateSerializer,
    InvoiceUpdateSerializer,
    PaymentSerializer,
    PaymentCreateSerializer,
    BillingSummarySerializer,
)

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List Invoices",
        parameters=[
            OpenApiParameter(name='date_from', type=str, description='Invoices from date (YYYY-MM-DD)'),
            OpenApiParameter(name='date_to', type=str, description='Invoices to date (YYYY-MM-DD)'),
        ],
        tags=['Billing']
    ),
    retrieve=extend_schema(summary="Get Invoice Details", tags=['Billing']),
    partial_update=extend_schema(summary="Partially Update Invoice", request=InvoiceUpdateSerializer, tags=['Billing']),
    destroy=extend_schema(
        summary="Delete Invoice",
        responses={204: None, 409: OpenApiResponse(description="Invoice has payments")},
        tags=['Billing']
    ),
)
class InvoiceViewSet(viewsets.ModelViewSet):
    """
    Invoices and their payment ledger.

    Derived amounts are read-only; they are recomputed by the billing
    services on every write.
    """
    queryset = Invoice.objects.select_related('patient', 'appointment', 'admission')
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES + [PATIENT],
        'retrieve': STAFF_ROLES + [PATIENT],
        'document': STAFF_ROLES + [PATIENT],
        'patient_history': STAFF_ROLES + [PATIENT],
        'create': FRONT_DESK_ROLES,
        'payments': FRONT_DESK_ROLES,
        'update': [ADMIN],
        'partial_update': [ADMIN],
        'destroy': [ADMIN],
        'stats': [ADMIN],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = InvoiceFilter
    search_fields = ['invoice_id', 'patient__first_name', 'patient__last_name', 'patient__patient_id']
    ordering_fields = ['invoice_date', 'total_amount', 'balance_amount']
    ordering = ['-invoice_date']

    def get_serializer_class(self):
        if self.action == 'list':
            return InvoiceListSerializer
        elif self.action == 'create':
            return InvoiceCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return InvoiceUpdateSerializer
        return InvoiceDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()

        # Patients only ever see their own bills
        if getattr(self.request.user, 'role', None) == PATIENT:
            queryset = queryset.filter(patient__user_id=self.request.user.id)

        return queryset

    def _detail(self, invoice, status_code=status.HTTP_200_OK, message=None):
        invoice = self.get_queryset().prefetch_related('items', 'payments').get(pk=invoice.pk)
        body = {'success': True, 'data': InvoiceDetailSerializer(invoice).data}
        if message:
            body['message'] = message
        return Response(body, status=status_code)

    @extend_schema(
        summary="Create Invoice",
        request=InvoiceCreateSerializer,
        responses={201: InvoiceDetailSerializer},
        tags=['Billing']
    )
    def create(self, request, *args, **kwargs):
        serializer = InvoiceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        invoice = services.create_invoice(
            patient_pk=data.pop('patient'),
            items=[dict(item) for item in data.pop('items')],
            actor_id=request.user.id,
            appointment_pk=data.pop('appointment', None),
            admission_pk=data.pop('admission', None),
            **data
        )
        return self._detail(invoice, status.HTTP_201_CREATED)

    @extend_schema(
        summary="Update Invoice",
        request=InvoiceUpdateSerializer,
        responses={200: InvoiceDetailSerializer, 409: OpenApiResponse(description="Invoice already paid")},
        tags=['Billing']
    )
    def update(self, request, *args, **kwargs):
        invoice = self.get_object()
        serializer = InvoiceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        items = data.pop('items', None)

        invoice = services.update_invoice(
            invoice.pk,
            items=[dict(item) for item in items] if items is not None else None,
            **data
        )
        return self._detail(invoice, message='Invoice updated')

    def destroy(self, request, *args, **kwargs):
        services.delete_invoice(self.get_object().pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="List or Add Payments",
        request=PaymentCreateSerializer,
        parameters=[
            OpenApiParameter(
                name='Idempotency-Key', type=str, location=OpenApiParameter.HEADER, required=False,
                description='Retries with the same key are recorded once'
            ),
        ],
        responses={
            200: InvoiceDetailSerializer,
            400: OpenApiResponse(description="Invoice already paid or amount out of range"),
        },
        tags=['Billing']
    )
    @action(detail=True, methods=['get', 'post'])
    def payments(self, request, pk=None):
        """GET returns the ledger; POST appends a payment"""
        invoice = self.get_object()

        if request.method == 'GET':
            serializer = PaymentSerializer(invoice.payments.all(), many=True)
            return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

        serializer = PaymentCreateSerializer(
            data=request.data,
            context={'idempotency_header': request.headers.get('Idempotency-Key')}
        )
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        invoice = services.add_payment(
            invoice.pk,
            amount=data['amount'],
            method=data['method'],
            actor_id=request.user.id,
            transaction_ref=data['transaction_ref'],
            notes=data['notes'],
            idempotency_key=data.get('idempotency_key'),
        )
        return self._detail(invoice, message='Payment recorded')

    @extend_schema(summary="Invoice Document", responses={200: OpenApiResponse(description="Printable invoice")}, tags=['Billing'])
    @action(detail=True, methods=['get'])
    def document(self, request, pk=None):
        """Invoice payload for printing"""
        invoice = self.get_object()
        return Response({'success': True, 'data': services.invoice_document(invoice)})

    @extend_schema(summary="Patient Billing History", tags=['Billing'])
    @action(detail=False, methods=['get'], url_path=r'patient/(?P<patient_pk>\d+)')
    def patient_history(self, request, patient_pk=None):
        if request.user.role == PATIENT:
            from apps.patients.models import Patient
            if not Patient.objects.filter(pk=patient_pk, user_id=request.user.id).exists():
                return error_response(
                    'permission_denied',
                    'Patients can only view their own billing history',
                    status_code=status.HTTP_403_FORBIDDEN,
                )

        invoices, summary = services.patient_history(patient_pk)
        serializer = InvoiceListSerializer(invoices.select_related('patient'), many=True)
        return Response({
            'success': True,
            'count': len(serializer.data),
            'summary': BillingSummarySerializer(summary).data,
            'data': serializer.data
        })

    @extend_schema(summary="Billing Statistics", tags=['Billing'])
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Today's billing, open invoices and month-to-date revenue"""
        return Response({'success': True, 'data': services.billing_stats()})
