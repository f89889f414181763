import logging
from dataclasses import replace

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from stockdesk.core.utils import create_audit_log, query_list, store_error_response
from stockdesk.datastore.exceptions import DataStoreUnavailable, RecordNotFound
from stockdesk.datastore.gateway import get_gateway
from stockdesk.datastore.records import strip_undefined
from .importer import parse_bulk_text
from .models import CarLine
from .query import (
    INVENTORY_SEARCH_FIELDS, filter_products, sort_products,
    suggest_products, find_by_code,
)
from .serializers import (
    ProductSerializer, ProductCreateSerializer, ProductUpdateSerializer,
    ProductQuerySerializer, BulkImportSerializer, StockEntrySerializer,
)

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND = 'Producto no encontrado'
AUDITED_FIELDS = ('code', 'name', 'line', 'details', 'stock', 'price', 'image_url', 'price_usd', 'details_en')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """Inventory view or new product entry"""
    gateway = get_gateway()

    if request.method == 'GET':
        query = ProductQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            products = gateway.fetch_all()
        except DataStoreUnavailable as e:
            return store_error_response(e)
        products = filter_products(
            products,
            term=query.validated_data['search'],
            fields=INVENTORY_SEARCH_FIELDS,
            lines=query_list(request, 'line'),
        )
        products = sort_products(products, query.validated_data['sort'], query.validated_data['order'])
        serializer = ProductSerializer(products, many=True)
        return Response(serializer.data, headers={'X-Data-Store': gateway.backend})

    serializer = ProductCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        product = gateway.insert(serializer.validated_data)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    logger.info(f"Product {product.code} created ({gateway.backend})")
    create_audit_log(
        request=request,
        action='create',
        model_name='Product',
        object_id=product.id,
        object_name=product.name,
        object_reference=product.code,
        changes={'stock': product.stock, 'price': product.price},
    )
    return Response(
        {'message': 'Producto creado exitosamente', 'product': ProductSerializer(product).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve or manually edit a product"""
    gateway = get_gateway()
    try:
        product = gateway.get(pk)
    except DataStoreUnavailable as e:
        return store_error_response(e)
    if product is None:
        return Response({'error': PRODUCT_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)

    serializer = ProductUpdateSerializer(data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    fields = serializer.validated_data
    try:
        gateway.update(pk, fields)
    except RecordNotFound:
        return Response({'error': PRODUCT_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)
    except DataStoreUnavailable as e:
        return store_error_response(e, "Error al guardar cambios.")

    updated = gateway.reload(pk, replace(product, **strip_undefined(fields)))
    changes = {
        name: {'old': getattr(product, name), 'new': getattr(updated, name)}
        for name in AUDITED_FIELDS
        if getattr(product, name) != getattr(updated, name)
    }
    if changes:
        create_audit_log(
            request=request,
            action='update',
            model_name='Product',
            object_id=pk,
            object_name=updated.name,
            object_reference=updated.code,
            changes=changes,
        )
    return Response(ProductSerializer(updated).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def product_bulk_import(request):
    """Import products from pasted spreadsheet text"""
    serializer = BulkImportSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = parse_bulk_text(serializer.validated_data['text'])
    if not result.products:
        return Response(
            {'error': result.summary(), 'errors': result.errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    gateway = get_gateway()
    try:
        store_message = gateway.bulk_insert(result.products)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    create_audit_log(
        request=request,
        action='bulk_import',
        model_name='Product',
        object_id='bulk',
        object_name=f"{len(result.products)} products",
        changes={'created': len(result.products), 'skipped': len(result.errors), 'errors': result.errors},
    )
    return Response({
        'message': result.summary(),
        'store_message': store_message,
        'created': len(result.products),
        'errors': result.errors,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def line_list(request):
    """The closed set of vehicle lines"""
    return Response([{'value': value, 'label': label} for value, label in CarLine.choices])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_entry_suggestions(request):
    """Autocomplete for the stock intake screen (code or name)"""
    term = request.query_params.get('q', '')
    try:
        products = suggest_products(get_gateway().fetch_all(), term)
    except DataStoreUnavailable as e:
        return store_error_response(e)
    return Response(ProductSerializer(products, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_entry_lookup(request):
    """Resolve a typed code: exact match first, then the first partial match"""
    code = request.query_params.get('code', '')
    try:
        product = find_by_code(get_gateway().fetch_all(), code)
    except DataStoreUnavailable as e:
        return store_error_response(e)
    if product is None:
        return Response({'error': PRODUCT_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)
    return Response(ProductSerializer(product).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_entry(request):
    """Add received units to a product's stock"""
    serializer = StockEntrySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product_id = serializer.validated_data['product_id']
    quantity = serializer.validated_data['quantity']
    gateway = get_gateway()
    try:
        gateway.adjust_stock_by(product_id, quantity)
    except RecordNotFound:
        return Response({'error': PRODUCT_NOT_FOUND}, status=status.HTTP_404_NOT_FOUND)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    product = gateway.reload(product_id)
    logger.info(f"Stock entry of {quantity} units for product {product_id} ({gateway.backend})")
    create_audit_log(
        request=request,
        action='stock_entry',
        model_name='Product',
        object_id=product_id,
        object_name=product.name if product else None,
        object_reference=product.code if product else None,
        changes={'quantity': quantity, 'stock': product.stock if product else None},
    )
    return Response({
        'message': f"Se ingresaron {quantity} unidades.",
        'product': ProductSerializer(product).data if product else None,
    })
