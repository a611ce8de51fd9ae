import logging
from decimal import Decimal

from django.core.cache import cache
from django.db.models import Q, Sum, Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.cache_utils import (
    make_cache_key, remember_cache_key, invalidate_customer_cache, CUSTOMER_LIST, CUSTOMER_LIST_CACHE_TTL
)
from pawnsys.core.utils import create_audit_log
from .ic import clean_ic, parse_mykad
from .models import Customer
from .serializers import CustomerSerializer, CustomerListSerializer, BlacklistSerializer

logger = logging.getLogger('pawnsys.customers')

OUTSTANDING_STATUSES = ['active', 'overdue']


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List customers (search by name, IC, phone) or register a new customer"""
    if request.method == 'GET':
        search = request.query_params.get('search', '').strip()
        blacklisted = request.query_params.get('blacklisted', None)

        cache_key = make_cache_key(CUSTOMER_LIST, search, blacklisted or '')
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            logger.debug(f"Cache hit for customer list (search={search!r})")
            return Response(cached_data)

        queryset = Customer.objects.all().order_by('-created_at')
        if search:
            query = Q(name__icontains=search) | Q(phone__icontains=search) | Q(customer_no__icontains=search)
            ic_search = clean_ic(search)
            if ic_search:
                query |= Q(ic_number__icontains=ic_search)
            queryset = queryset.filter(query)
        if blacklisted is not None:
            queryset = queryset.filter(is_blacklisted=blacklisted.lower() in ('1', 'true', 'yes'))

        response_data = CustomerListSerializer(queryset, many=True).data
        cache.set(cache_key, response_data, CUSTOMER_LIST_CACHE_TTL)
        remember_cache_key(CUSTOMER_LIST, cache_key, CUSTOMER_LIST_CACHE_TTL)
        return Response(response_data)

    serializer = CustomerSerializer(data=request.data)
    if serializer.is_valid():
        customer = serializer.save(created_by=request.user)
        invalidate_customer_cache()
        create_audit_log(
            request=request, action='create', model_name='Customer', object_id=customer.id,
            object_name=customer.name, object_reference=customer.customer_no,
        )
        logger.info(f"User {request.user.username} registered customer {customer.customer_no}")
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)
    logger.warning(f"Customer creation validation failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        return Response(CustomerSerializer(customer).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            invalidate_customer_cache()
            create_audit_log(
                request=request, action='update', model_name='Customer', object_id=customer.id,
                object_name=customer.name, object_reference=customer.customer_no,
                changes={key: str(value) for key, value in serializer.validated_data.items()},
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    if customer.pledges.filter(status__in=OUTSTANDING_STATUSES).exists():
        logger.warning(f"Refused to delete customer {customer.customer_no}: outstanding pledges")
        return Response(
            {'error': 'Customer has active pledges and cannot be deleted'},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY
        )
    if customer.pledges.exists():
        return Response(
            {'error': 'Customer has pledge history and cannot be deleted'},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY
        )
    customer_no = customer.customer_no
    customer.delete()
    invalidate_customer_cache()
    create_audit_log(request=request, action='delete', model_name='Customer', object_id=pk, object_reference=customer_no)
    logger.info(f"User {request.user.username} deleted customer {customer_no}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_search_by_ic(request):
    """Look up a customer by IC number (dashes optional)"""
    ic_number = clean_ic(request.query_params.get('ic', '')).upper()
    if not ic_number:
        return Response({'error': 'ic query parameter is required'}, status=status.HTTP_400_BAD_REQUEST)

    customer = Customer.objects.filter(ic_number=ic_number).first()
    if customer is None:
        return Response({'error': 'Customer not found', 'ic_number': ic_number}, status=status.HTTP_404_NOT_FOUND)
    return Response(CustomerSerializer(customer).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def parse_ic(request):
    """Decode a MyKad number into birth date, gender, state and default city/postcode"""
    ic_number = request.query_params.get('ic', '')
    parsed = parse_mykad(ic_number)
    if not parsed['ic_number']:
        return Response({'error': 'ic query parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    parsed['date_of_birth'] = parsed['date_of_birth'].isoformat() if parsed['date_of_birth'] else None
    parsed['exists'] = Customer.objects.filter(ic_number=parsed['ic_number']).exists()
    return Response(parsed)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_pledges(request, pk):
    """All pledges for a customer, newest first"""
    from pawnsys.pledges.serializers import PledgeListSerializer

    customer = get_object_or_404(Customer, pk=pk)
    pledges = customer.pledges.all().order_by('-pledge_date', '-id')
    status_filter = request.query_params.get('status')
    if status_filter:
        pledges = pledges.filter(status__in=[s.strip() for s in status_filter.split(',') if s.strip()])
    return Response(PledgeListSerializer(pledges, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_active_pledges(request, pk):
    """Outstanding (active or overdue) pledges for a customer"""
    from pawnsys.pledges.serializers import PledgeListSerializer

    customer = get_object_or_404(Customer, pk=pk)
    pledges = customer.pledges.filter(status__in=OUTSTANDING_STATUSES).order_by('due_date')
    return Response(PledgeListSerializer(pledges, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_statistics(request, pk):
    """Pledge counts and amounts for a customer"""
    customer = get_object_or_404(Customer, pk=pk)
    pledges = customer.pledges.all()

    by_status = {row['status']: row['count'] for row in pledges.order_by().values('status').annotate(count=Count('id'))}
    outstanding = pledges.filter(status__in=OUTSTANDING_STATUSES)
    totals = pledges.aggregate(total_loan=Sum('loan_amount'), total_weight=Sum('total_net_weight'))

    return Response({
        'customer_id': customer.id,
        'customer_no': customer.customer_no,
        'total_pledges': pledges.count(),
        'by_status': by_status,
        'active_pledges': outstanding.count(),
        'outstanding_amount': outstanding.aggregate(total=Sum('loan_amount'))['total'] or Decimal('0.00'),
        'total_loan_amount': totals['total_loan'] or Decimal('0.00'),
        'total_net_weight': totals['total_weight'] or Decimal('0.000'),
        'total_renewals': sum(pledges.values_list('renewal_count', flat=True)),
        'is_blacklisted': customer.is_blacklisted,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def customer_blacklist(request, pk):
    """Blacklist or clear a customer"""
    customer = get_object_or_404(Customer, pk=pk)
    serializer = BlacklistSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    customer.is_blacklisted = serializer.validated_data['is_blacklisted']
    customer.blacklist_reason = serializer.validated_data.get('reason', '') if customer.is_blacklisted else ''
    customer.save(update_fields=['is_blacklisted', 'blacklist_reason', 'updated_at'])
    invalidate_customer_cache()

    create_audit_log(
        request=request, action='blacklist', model_name='Customer', object_id=customer.id,
        object_name=customer.name, object_reference=customer.customer_no,
        changes={'is_blacklisted': customer.is_blacklisted, 'reason': customer.blacklist_reason},
    )
    logger.info(f"User {request.user.username} set blacklist={customer.is_blacklisted} on {customer.customer_no}")
    return Response(CustomerSerializer(customer).data)
