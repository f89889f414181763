from rest_framework import serializers

from stockdesk.catalog.models import CarLine


class PriceListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, default='')
    adjustment = serializers.DecimalField(max_digits=7, decimal_places=2, required=False, default=0)
    title = serializers.CharField(required=False, allow_blank=True, default='Lista de Precios General')
    inline = serializers.BooleanField(required=False, default=False)


class BulkPriceUpdateSerializer(serializers.Serializer):
    percentage = serializers.DecimalField(max_digits=7, decimal_places=2)
    lines = serializers.ListField(
        child=serializers.ChoiceField(choices=CarLine.choices),
        required=False,
        default=list,
    )
    confirm = serializers.BooleanField(required=False, default=False)
