from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from stockdesk.catalog.query import PRICE_LIST_SEARCH_FIELDS, filter_products, price_list_order
from stockdesk.core.utils import create_audit_log, query_list, store_error_response
from stockdesk.datastore.exceptions import DataStoreError, DataStoreUnavailable
from stockdesk.datastore.gateway import get_gateway
from stockdesk.documents.renderer import PRICE_LIST_PREFIX, document_filename, render_price_list
from .adjustment import (
    adjustment_caption, build_price_list_rows, confirmation_summary, format_percentage,
)
from .serializers import PriceListQuerySerializer, BulkPriceUpdateSerializer


def _price_list_rows(request, query):
    products = filter_products(
        get_gateway().fetch_all(),
        term=query['search'],
        fields=PRICE_LIST_SEARCH_FIELDS,
        lines=query_list(request, 'line'),
        exclude=query_list(request, 'exclude'),
    )
    return build_price_list_rows(price_list_order(products), query['adjustment'])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def price_list_preview(request):
    """Price list rows with base and adjusted prices; nothing is written"""
    serializer = PriceListQuerySerializer(data=request.query_params)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    query = serializer.validated_data

    try:
        rows = _price_list_rows(request, query)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    return Response({
        'title': query['title'],
        'adjustment': format_percentage(query['adjustment']),
        'adjustment_note': adjustment_caption(query['adjustment']),
        'count': len(rows),
        'rows': [row.to_json() for row in rows],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def price_list_pdf(request):
    """Same rows as the preview, rendered as a PDF (rows without price are left out)"""
    serializer = PriceListQuerySerializer(data=request.query_params)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    query = serializer.validated_data

    try:
        rows = _price_list_rows(request, query)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    pdf = render_price_list(rows, query['title'], adjustment_caption(query['adjustment']))
    filename = document_filename(PRICE_LIST_PREFIX, query['title'])
    disposition = 'inline' if query['inline'] else 'attachment'
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'{disposition}; filename="{filename}"'
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def bulk_update_preview(request):
    """Confirmation text and number of priced products a bulk update would touch"""
    serializer = BulkPriceUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    percentage = serializer.validated_data['percentage']
    lines = serializer.validated_data['lines']

    try:
        products = filter_products(get_gateway().fetch_all(), lines=lines)
    except DataStoreUnavailable as e:
        return store_error_response(e)

    return Response({
        'summary': confirmation_summary(percentage, lines),
        'percentage': format_percentage(percentage),
        'lines': lines,
        'in_scope': sum(1 for product in products if product.price is not None),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def bulk_update_commit(request):
    """Persistently apply a percentage to the selected lines (all when none)"""
    serializer = BulkPriceUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    percentage = serializer.validated_data['percentage']
    lines = serializer.validated_data['lines']

    if not serializer.validated_data['confirm']:
        return Response({
            'error': 'Confirmation required',
            'summary': confirmation_summary(percentage, lines),
        }, status=status.HTTP_400_BAD_REQUEST)

    try:
        message = get_gateway().bulk_adjust_price(percentage, lines)
    except DataStoreError as e:
        return store_error_response(e, "Error al actualizar.")

    if percentage != 0:
        create_audit_log(
            request=request,
            action='price_change',
            model_name='Product',
            object_id='bulk',
            object_name=', '.join(lines) or 'ALL',
            changes={'percentage': percentage, 'lines': lines, 'result': message},
        )
    return Response({'message': message})
