from rest_framework import serializers

from .models import CarLine
from .query import SORT_FIELDS, ORDER_ASC, ORDER_DESC, SORT_CODE, stock_status


class ProductSerializer(serializers.Serializer):
    """Read representation of a product record"""
    id = serializers.CharField(read_only=True)
    code = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    line = serializers.CharField(read_only=True)
    details = serializers.CharField(read_only=True)
    stock = serializers.IntegerField(read_only=True)
    price = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    image_url = serializers.CharField(read_only=True)
    price_usd = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    details_en = serializers.CharField(read_only=True)
    stock_status = serializers.SerializerMethodField()

    def get_stock_status(self, obj):
        return stock_status(obj.stock)


class ProductCreateSerializer(serializers.Serializer):
    """New product entry: code, name and line are required"""
    code = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=200)
    line = serializers.ChoiceField(choices=CarLine.choices)
    details = serializers.CharField(required=False, allow_blank=True, default='')
    stock = serializers.IntegerField(required=False, default=0)
    price = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True, default=None)
    image_url = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True, default=None)

    def validate_code(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Code cannot be blank.")
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name cannot be blank.")
        return value


class ProductUpdateSerializer(serializers.Serializer):
    """Manual edit of a product; null values leave the field untouched"""
    code = serializers.CharField(max_length=50, required=False)
    name = serializers.CharField(max_length=200, required=False)
    line = serializers.ChoiceField(choices=CarLine.choices, required=False)
    details = serializers.CharField(required=False, allow_blank=True)
    stock = serializers.IntegerField(required=False)
    price = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    image_url = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    price_usd = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    details_en = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ProductQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, default='')
    sort = serializers.ChoiceField(choices=SORT_FIELDS, required=False, default=SORT_CODE)
    order = serializers.ChoiceField(choices=(ORDER_ASC, ORDER_DESC), required=False, default=ORDER_ASC)


class BulkImportSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class StockEntrySerializer(serializers.Serializer):
    product_id = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1)
