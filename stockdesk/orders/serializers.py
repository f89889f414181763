from rest_framework import serializers


class CustomerSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=255, allow_blank=True)


class CartAddSerializer(serializers.Serializer):
    product_id = serializers.CharField()


class CartQuantitySerializer(serializers.Serializer):
    delta = serializers.IntegerField()


class CheckoutSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
