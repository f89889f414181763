import logging
from dataclasses import replace

from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from stockdesk.catalog.query import EXPORT_SEARCH_FIELDS, filter_products
from stockdesk.core.utils import create_audit_log, query_list, store_error_response
from stockdesk.datastore.exceptions import DataStoreUnavailable, RecordNotFound
from stockdesk.datastore.gateway import get_gateway
from stockdesk.documents.renderer import document_filename, export_prefix, render_export_list
from .serializers import ExportListQuerySerializer, ExportProductUpdateSerializer, TranslateSerializer
from .translator import build_export_rows, editor_defaults, suggest_english_details

logger = logging.getLogger(__name__)


def _export_rows(request, query):
    products = filter_products(
        get_gateway().fetch_all(),
        term=query['search'],
        fields=EXPORT_SEARCH_FIELDS,
        lines=query_list(request, 'line'),
        exclude=query_list(request, 'exclude'),
    )
    return build_export_rows(products)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def export_list_preview(request):
    """Export rows in code order with English descriptions and USD prices"""
    serializer = ExportListQuerySerializer(data=request.query_params)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    query = serializer.validated_data

    try:
        rows = _export_rows(request, query)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    return Response({
        'title': query['title'],
        'count': len(rows),
        'rows': [row.to_json() for row in rows],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def export_list_pdf(request):
    serializer = ExportListQuerySerializer(data=request.query_params)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    query = serializer.validated_data

    try:
        rows = _export_rows(request, query)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    pdf = render_export_list(rows, query['title'])
    filename = document_filename(export_prefix(), query['title'])
    disposition = 'inline' if query['inline'] else 'attachment'
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'{disposition}; filename="{filename}"'
    return response


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def export_product_update(request, pk):
    """Editor values of a product's export fields, or save them"""
    gateway = get_gateway()
    try:
        product = gateway.get(pk)
    except DataStoreUnavailable as e:
        return store_error_response(e)
    if product is None:
        return Response({'error': 'Producto no encontrado'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response({'id': product.id, 'code': product.code, **editor_defaults(product)})

    serializer = ExportProductUpdateSerializer(data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    fields = serializer.validated_data
    try:
        gateway.update(pk, fields)
    except RecordNotFound:
        return Response({'error': 'Producto no encontrado'}, status=status.HTTP_404_NOT_FOUND)
    except DataStoreUnavailable as e:
        return store_error_response(e, "Error al guardar cambios.")

    logger.info(f"Export fields of product {product.code} updated: {sorted(fields)}")
    create_audit_log(
        request=request,
        action='update',
        model_name='Product',
        object_id=pk,
        object_name=product.name,
        object_reference=product.code,
        changes={
            name: {'old': getattr(product, name), 'new': value}
            for name, value in fields.items()
        },
    )
    updated = gateway.reload(pk, replace(product, **fields))
    return Response({'id': updated.id, 'code': updated.code, **editor_defaults(updated)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def export_translate(request):
    """Dictionary translation suggestion for the export editor"""
    serializer = TranslateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    details, name = data['details'], data['name']
    if data.get('product_id'):
        try:
            product = get_gateway().get(data['product_id'])
        except DataStoreUnavailable as e:
            return store_error_response(e)
        if product is None:
            return Response({'error': 'Producto no encontrado'}, status=status.HTTP_404_NOT_FOUND)
        details, name = product.details, product.name

    return Response({'suggestion': suggest_english_details(details, name)})
