import logging

from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.utils import create_audit_log
from .models import HardwareDevice
from .serializers import HardwareDeviceSerializer, DeviceStatusSerializer
from . import services

logger = logging.getLogger('pawnsys.hardware')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def device_list_create(request):
    """List devices (type, connection and active filters) or register one"""
    if request.method == 'GET':
        devices = HardwareDevice.objects.select_related('created_by', 'updated_by')
        device_type = request.query_params.get('type')
        if device_type:
            devices = devices.filter(type=device_type)
        connection = request.query_params.get('connection')
        if connection:
            devices = devices.filter(connection=connection)
        active = request.query_params.get('active')
        if active in ('true', 'false'):
            devices = devices.filter(is_active=active == 'true')
        devices = devices.order_by('type', 'name')

        data = HardwareDeviceSerializer(devices, many=True).data
        grouped = {}
        for device in data:
            grouped.setdefault(device['type'], []).append(device)
        summary = devices.aggregate(
            total=Count('id'),
            active=Count('id', filter=Q(is_active=True)),
            connected=Count('id', filter=Q(status='connected')),
        )
        return Response({'devices': data, 'grouped': grouped, 'summary': summary})

    serializer = HardwareDeviceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        device = serializer.save(created_by=request.user, updated_by=request.user, status='unknown')
        if device.is_default:
            device.set_as_default()
    create_audit_log(
        request=request, action='create', model_name='HardwareDevice', object_id=device.id,
        object_name=device.name, changes={'type': device.type, 'connection': device.connection},
    )
    logger.info(f"User {request.user.username} registered {device.type} '{device.name}'")
    return Response(HardwareDeviceSerializer(device).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def device_detail(request, pk):
    device = get_object_or_404(HardwareDevice, pk=pk)

    if request.method == 'GET':
        return Response(HardwareDeviceSerializer(device).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = HardwareDeviceSerializer(device, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            device = serializer.save(updated_by=request.user)
            if device.is_default:
                device.set_as_default()
        return Response(HardwareDeviceSerializer(device).data)

    name = device.name
    device.delete()
    create_audit_log(request=request, action='delete', model_name='HardwareDevice', object_id=pk, object_name=name)
    logger.info(f"User {request.user.username} removed device '{name}'")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def device_toggle_active(request, pk):
    device = get_object_or_404(HardwareDevice, pk=pk)
    device.is_active = not device.is_active
    device.updated_by = request.user
    device.save(update_fields=['is_active', 'updated_by', 'updated_at'])
    message = 'Device activated' if device.is_active else 'Device deactivated'
    return Response({'is_active': device.is_active, 'message': message})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def device_set_default(request, pk):
    """Make a device the default of its type"""
    device = get_object_or_404(HardwareDevice, pk=pk)
    if not device.is_active:
        return Response({'error': 'An inactive device cannot be the default'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    with transaction.atomic():
        device.set_as_default()
    logger.info(f"User {request.user.username} set '{device.name}' as default {device.type}")
    return Response({'is_default': True, 'message': 'Device set as default'})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def device_update_status(request, pk):
    """Status reported by the workstation after a print or scan"""
    device = get_object_or_404(HardwareDevice, pk=pk)
    serializer = DeviceStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    device.update_status(serializer.validated_data['status'])
    return Response({'status': device.status, 'last_tested_at': device.last_tested_at})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def device_test_connection(request, pk):
    device = get_object_or_404(HardwareDevice, pk=pk)
    result = services.test_connection(device)
    device.update_status(result['status'])
    result['last_tested_at'] = device.last_tested_at
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def device_defaults(request):
    """Active default device for each type (null when none)"""
    defaults = {}
    for device_type, _ in HardwareDevice.TYPE_CHOICES:
        device = HardwareDevice.default_for_type(device_type)
        defaults[device_type] = HardwareDeviceSerializer(device).data if device else None
    return Response(defaults)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def device_options(request):
    return Response({
        'types': dict(HardwareDevice.TYPE_CHOICES),
        'connections': dict(HardwareDevice.CONNECTION_CHOICES),
        'statuses': dict(HardwareDevice.STATUS_CHOICES),
        'paper_sizes': dict(HardwareDevice.PAPER_SIZE_CHOICES),
    })
