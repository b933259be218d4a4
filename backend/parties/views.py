import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from backend.core.exceptions import ConflictError
from backend.core.permissions import IsAdminRole
from .models import Customer, CustomerProduct
from .serializers import CustomerSerializer, CustomerProductSerializer, CustomerProductCreateSerializer

logger = logging.getLogger(__name__)


def customer_queryset():
    return Customer.objects.prefetch_related('customer_products__product')


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List all customers (any user) or create a new customer (admin)"""
    if request.method == 'GET':
        customers = customer_queryset().all()
        serializer = CustomerSerializer(customers, many=True)
        return Response(serializer.data)

    if not IsAdminRole().has_permission(request, None):
        return Response({'error': 'Admin role required.'}, status=status.HTTP_403_FORBIDDEN)
    serializer = CustomerSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    customer = serializer.save()
    logger.info(f"Customer {customer.id} created by user {request.user.id}")
    return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        serializer = CustomerSerializer(customer)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)
    else:  # DELETE
        with transaction.atomic():
            # Join rows go first, then the customer itself
            CustomerProduct.objects.filter(customer=customer).delete()
            customer.delete()
        logger.info(f"Customer {pk} deleted by user {request.user.id}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def customer_search(request, query):
    """Case-insensitive substring search over name, email, phone and city"""
    query = query.strip()
    customers = customer_queryset().filter(
        Q(name__icontains=query) |
        Q(email__icontains=query) |
        Q(phone__icontains=query) |
        Q(city__icontains=query)
    ).order_by('name')
    serializer = CustomerSerializer(customers, many=True)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def customer_add_product(request, pk):
    """Link a single product to a customer"""
    customer = get_object_or_404(Customer, pk=pk)
    serializer = CustomerProductCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    product = serializer.validated_data['product']

    if CustomerProduct.objects.filter(customer=customer, product=product).exists():
        raise ConflictError(
            'Product already linked to this customer',
            details={'product_id': 'This product is already linked to this customer'},
        )
    customer_product = CustomerProduct.objects.create(customer=customer, product=product)
    return Response(CustomerProductSerializer(customer_product).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def customer_remove_product(request, pk, product_id):
    """Unlink a product from a customer"""
    customer_product = get_object_or_404(CustomerProduct, customer_id=pk, product_id=product_id)
    customer_product.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
