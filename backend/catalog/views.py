import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.cache_utils import (
    cached_query, CATEGORIES_CACHE_TTL, CATEGORIES_PREFIX, LOW_STOCK_CACHE_TTL, LOW_STOCK_PREFIX
)
from backend.core.exceptions import DomainValidationError
from backend.core.permissions import IsAdminRole
from .models import Category, Product
from .filters import ProductFilter
from .serializers import CategorySerializer, ProductSerializer, StockUpdateSerializer
from .utils import bulk_create_products, read_products_csv

logger = logging.getLogger(__name__)


@cached_query(cache_ttl=CATEGORIES_CACHE_TTL, key_prefix=CATEGORIES_PREFIX)
def get_category_list():
    return CategorySerializer(Category.objects.order_by('name'), many=True).data


@cached_query(cache_ttl=LOW_STOCK_CACHE_TTL, key_prefix=LOW_STOCK_PREFIX)
def get_low_stock_list():
    products = Product.objects.select_related('category').filter(is_low_stock=True).order_by('stock', 'name')
    return ProductSerializer(products, many=True).data


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List all categories (any user) or create a new category (admin)"""
    if request.method == 'GET':
        return Response(get_category_list())

    if not IsAdminRole().has_permission(request, None):
        return Response({'error': 'Admin role required.'}, status=status.HTTP_403_FORBIDDEN)
    serializer = CategorySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data, status=status.HTTP_201_CREATED)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def product_list_create(request):
    """List all products or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category').all()
        filterset = ProductFilter(request.query_params, queryset=queryset)
        serializer = ProductSerializer(filterset.qs, many=True)
        return Response(serializer.data)

    serializer = ProductSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    product = serializer.save()
    logger.info(f"Product {product.article_number} created by user {request.user.id}")
    return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product.objects.select_related('category'), pk=pk)

    if request.method == 'GET':
        serializer = ProductSerializer(product)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)
    else:  # DELETE
        product.delete()
        logger.info(f"Product {pk} deleted by user {request.user.id}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def product_update_stock(request, pk):
    """Set the stock level; the low-stock flag follows from Product.save()"""
    product = get_object_or_404(Product, pk=pk)
    serializer = StockUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    product.stock = serializer.validated_data['stock']
    product.save(update_fields=['stock'])
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def product_low_stock(request):
    """Products at or below their minimum stock, lowest stock first"""
    return Response(get_low_stock_list())


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
@parser_classes([JSONParser, MultiPartParser, FormParser])
def product_bulk_upload(request):
    """
    Create many products at once from a JSON list or an uploaded CSV file.

    Rows that fail validation are skipped and reported; valid rows are kept.
    """
    upload = request.FILES.get('file')
    if upload is not None:
        rows = read_products_csv(upload)
    else:
        rows = request.data.get('products') if hasattr(request.data, 'get') else None

    if not isinstance(rows, list) or not rows:
        raise DomainValidationError('Invalid products data')

    created, errors = bulk_create_products(rows)
    body = {
        'message': f"{len(created)} products created successfully",
        'created': len(created),
        'failed': len(errors),
        'products': ProductSerializer(created, many=True).data,
        'errors': errors,
    }
    if not created:
        body['error'] = 'No products were created'
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    return Response(body, status=status.HTTP_201_CREATED)
