from rest_framework import serializers


class ExportListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, default='')
    title = serializers.CharField(required=False, allow_blank=True, default='EXPORT PRICE LIST')
    inline = serializers.BooleanField(required=False, default=False)


class ExportProductUpdateSerializer(serializers.Serializer):
    """Inline export editor: USD price and English description override"""
    price_usd = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    details_en = serializers.CharField(required=False, allow_blank=True)


class TranslateSerializer(serializers.Serializer):
    details = serializers.CharField(required=False, allow_blank=True, default='')
    name = serializers.CharField(required=False, allow_blank=True, default='')
    product_id = serializers.CharField(required=False)
