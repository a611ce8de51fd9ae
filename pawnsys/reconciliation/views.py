import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.utils import create_audit_log, paginate
from pawnsys.pledges.serializers import PledgeItemSerializer
from . import services
from .models import Reconciliation
from .serializers import (
    ReconciliationSerializer, ReconciliationDetailSerializer, ReconciliationItemSerializer,
    StartReconciliationSerializer, ScanSerializer, CompleteReconciliationSerializer,
    CancelReconciliationSerializer,
)

logger = logging.getLogger('pawnsys.reconciliation')


def _summary(reconciliation):
    return {
        'expected': reconciliation.expected_items,
        'scanned': reconciliation.scanned_items,
        'matched': reconciliation.matched_items,
        'missing': reconciliation.missing_items,
        'unexpected': reconciliation.unexpected_items,
        'progress': reconciliation.progress,
        'outcome': reconciliation.outcome or None,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reconciliation_list(request):
    """Past and current reconciliations (filters: status, type)"""
    queryset = Reconciliation.objects.select_related('started_by', 'completed_by')
    status_param = request.query_params.get('status')
    if status_param:
        queryset = queryset.filter(status=status_param)
    type_param = request.query_params.get('type')
    if type_param:
        queryset = queryset.filter(reconciliation_type=type_param)
    return Response(paginate(request, queryset.order_by('-started_at'), ReconciliationSerializer, default_limit=20))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reconciliation_in_progress(request):
    reconciliation = services.active_session()
    return Response({
        'in_progress': reconciliation is not None,
        'reconciliation': ReconciliationSerializer(reconciliation).data if reconciliation else None,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reconciliation_start(request):
    serializer = StartReconciliationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        reconciliation = services.start_reconciliation(
            user=request.user,
            reconciliation_type=data['reconciliation_type'],
            notes=data.get('notes', ''),
            force_start=data.get('force_start', False),
        )
    except services.ReconciliationError as e:
        active = services.active_session()
        return Response(
            {
                'error': str(e),
                'reconciliation': ReconciliationSerializer(active).data if active else None,
            },
            status=status.HTTP_422_UNPROCESSABLE_ENTITY
        )

    create_audit_log(
        request=request, action='reconciliation_start', model_name='Reconciliation',
        object_id=reconciliation.id, object_reference=reconciliation.reconciliation_no,
        changes={'type': reconciliation.reconciliation_type, 'expected': reconciliation.expected_items},
    )
    logger.info(f"User {request.user.username} started reconciliation {reconciliation.reconciliation_no}")
    return Response(ReconciliationSerializer(reconciliation).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reconciliation_force_cancel(request):
    reconciliation = services.force_cancel_active()
    if reconciliation is None:
        return Response({'error': 'No in-progress reconciliation found'}, status=status.HTTP_404_NOT_FOUND)
    create_audit_log(
        request=request, action='reconciliation_cancel', model_name='Reconciliation',
        object_id=reconciliation.id, object_reference=reconciliation.reconciliation_no,
        changes={'forced': True},
    )
    return Response(ReconciliationSerializer(reconciliation).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reconciliation_scan(request, pk):
    reconciliation = get_object_or_404(Reconciliation, pk=pk)
    serializer = ScanSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        row, message = services.record_scan(
            reconciliation, serializer.validated_data['barcode'],
            user=request.user, notes=serializer.validated_data.get('notes', ''),
        )
    except services.ReconciliationError as e:
        logger.warning(f"Scan rejected in {reconciliation.reconciliation_no}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    reconciliation.refresh_from_db()
    create_audit_log(
        request=request, action='barcode_scan', model_name='Reconciliation',
        object_id=reconciliation.id, object_reference=reconciliation.reconciliation_no,
        barcode=row.barcode, changes={'status': row.status},
    )
    return Response({
        'status': row.status,
        'message': message,
        'scan': ReconciliationItemSerializer(row).data,
        'item': PledgeItemSerializer(row.pledge_item).data if row.pledge_item_id else None,
        'summary': _summary(reconciliation),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reconciliation_complete(request, pk):
    reconciliation = get_object_or_404(Reconciliation, pk=pk)
    serializer = CompleteReconciliationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        reconciliation, result = services.complete_reconciliation(
            reconciliation, user=request.user, notes=serializer.validated_data.get('notes'),
        )
    except services.ReconciliationError as e:
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    create_audit_log(
        request=request, action='reconciliation_complete', model_name='Reconciliation',
        object_id=reconciliation.id, object_reference=reconciliation.reconciliation_no,
        barcode=', '.join(item.barcode for item in result.missing)[:1000] or None,
        changes=_summary(reconciliation),
    )
    logger.info(f"User {request.user.username} completed reconciliation {reconciliation.reconciliation_no} ({result.outcome})")
    return Response({
        'reconciliation': ReconciliationSerializer(reconciliation).data,
        'summary': _summary(reconciliation),
        'result': result.as_dict(),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reconciliation_cancel(request, pk):
    reconciliation = get_object_or_404(Reconciliation, pk=pk)
    serializer = CancelReconciliationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        reconciliation = services.cancel_reconciliation(reconciliation, serializer.validated_data.get('reason', ''))
    except services.ReconciliationError as e:
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    create_audit_log(
        request=request, action='reconciliation_cancel', model_name='Reconciliation',
        object_id=reconciliation.id, object_reference=reconciliation.reconciliation_no,
    )
    return Response(ReconciliationSerializer(reconciliation).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reconciliation_detail(request, pk):
    reconciliation = get_object_or_404(
        Reconciliation.objects.select_related('started_by', 'completed_by').prefetch_related(
            'items__pledge_item__pledge__customer', 'items__pledge_item__category',
            'items__pledge_item__slot__box__vault', 'items__scanned_by',
        ),
        pk=pk,
    )
    return Response(ReconciliationDetailSerializer(reconciliation).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reconciliation_report(request, pk):
    """Completed reconciliation with items grouped by status and the accuracy rate"""
    reconciliation = get_object_or_404(Reconciliation, pk=pk)
    if reconciliation.status != 'completed':
        return Response({'error': 'Reconciliation not yet completed'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    items = reconciliation.items.select_related(
        'pledge_item__pledge__customer', 'pledge_item__category', 'pledge_item__slot__box__vault', 'scanned_by'
    )
    grouped = {'matched': [], 'missing': [], 'unexpected': []}
    for row in ReconciliationItemSerializer(items, many=True).data:
        grouped[row['status']].append(row)

    summary = _summary(reconciliation)
    summary['accuracy_rate'] = reconciliation.accuracy_rate
    return Response({
        'reconciliation': ReconciliationSerializer(reconciliation).data,
        'summary': summary,
        'items': grouped,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reconciliation_expected_items(request):
    """Items the vault should hold, for seeding an offline scanning session"""
    return Response([
        {
            'item_id': item.item_id,
            'barcode': item.barcode,
            'pledge_no': item.pledge_no,
            'description': item.description,
            'location': item.location,
        }
        for item in services.expected_items()
    ])
