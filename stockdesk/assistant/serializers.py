from rest_framework import serializers


class NavigateSerializer(serializers.Serializer):
    route = serializers.CharField(max_length=200)


class MessageSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=2000)
    route = serializers.CharField(max_length=200, required=False)
