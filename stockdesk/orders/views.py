import logging

from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from stockdesk.catalog.query import search_orderable
from stockdesk.catalog.serializers import ProductSerializer
from stockdesk.core.utils import create_audit_log, store_error_response
from stockdesk.datastore.exceptions import DataStoreError, DataStoreUnavailable
from stockdesk.datastore.gateway import get_gateway
from .cart import Cart
from .checkout import CheckoutError, checkout
from .serializers import CustomerSerializer, CartAddSerializer, CartQuantitySerializer, CheckoutSerializer

logger = logging.getLogger(__name__)

MSG_ORDER_FAILED = "Error al procesar el pedido."
MSG_ORDER_DONE = "Pedido procesado correctamente."
MSG_REMITO_FAILED = "Pedido procesado, pero no se pudo generar el remito."


def _cart_response(cart, changed=None, status_code=status.HTTP_200_OK):
    data = cart.to_json()
    if changed is not None:
        data['changed'] = changed
    return Response(data, status=status_code)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def cart_detail(request):
    """Current cart, or set the customer name"""
    cart = Cart.from_session(request.session)
    if request.method == 'GET':
        return _cart_response(cart)

    serializer = CustomerSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    cart.customer_name = serializer.validated_data['customer_name']
    cart.save(request.session)
    return _cart_response(cart)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_add_item(request):
    """Add one unit of a product, never beyond its stock"""
    serializer = CartAddSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        product = get_gateway().get(serializer.validated_data['product_id'])
    except DataStoreUnavailable as e:
        return store_error_response(e)
    if product is None:
        return Response({'error': 'Producto no encontrado'}, status=status.HTTP_404_NOT_FOUND)

    cart = Cart.from_session(request.session)
    changed = cart.add(product)
    if changed:
        cart.save(request.session)
    return _cart_response(cart, changed=changed)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_item_quantity(request, product_id):
    """Change a line's quantity by `delta` (minimum 1, maximum the stock)"""
    serializer = CartQuantitySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    cart = Cart.from_session(request.session)
    if cart.find(product_id) is None:
        return Response({'error': 'El producto no está en el pedido'}, status=status.HTTP_404_NOT_FOUND)
    changed = cart.set_quantity(product_id, serializer.validated_data['delta'])
    if changed:
        cart.save(request.session)
    return _cart_response(cart, changed=changed)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def cart_item_remove(request, product_id):
    cart = Cart.from_session(request.session)
    changed = cart.remove(product_id)
    if changed:
        cart.save(request.session)
    return _cart_response(cart, changed=changed)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_clear(request):
    cart = Cart.from_session(request.session)
    cart.clear()
    cart.save(request.session)
    return _cart_response(cart)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_checkout(request):
    """
    Store the order with its stock decrements and return the remito PDF.
    The cart is only cleared once the order is stored, even when the remito
    cannot be rendered.
    """
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    cart = Cart.from_session(request.session)
    customer_name = serializer.validated_data.get('customer_name')
    try:
        result = checkout(cart, get_gateway(), customer_name=customer_name)
    except CheckoutError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except DataStoreError as e:
        return store_error_response(e, MSG_ORDER_FAILED)

    order = result.order
    create_audit_log(
        request=request,
        action='order_checkout',
        model_name='Order',
        object_id=order.id,
        object_name=order.customer_name,
        object_reference=order.reference,
        changes={
            'total_items': order.total_items,
            'items': [{'id': item['id'], 'code': item.get('code'), 'quantity': item['quantity']} for item in order.items],
        },
    )

    Cart().save(request.session)

    if result.pdf is None:
        return Response({
            'message': MSG_REMITO_FAILED,
            'order_id': order.id,
            'reference': order.reference,
        }, status=status.HTTP_201_CREATED)

    response = HttpResponse(result.pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{result.filename}"'
    response['X-Order-Id'] = order.id
    response['X-Order-Reference'] = order.reference
    response['X-Message'] = MSG_ORDER_DONE
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_product_search(request):
    """First five in-stock products matching name or code"""
    term = request.query_params.get('q', '')
    try:
        products = search_orderable(get_gateway().fetch_all(), term)
    except DataStoreUnavailable as e:
        return store_error_response(e)
    return Response(ProductSerializer(products, many=True).data)
