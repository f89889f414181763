from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from stockdesk.core.routes import INVENTORY_ROUTE
from .client import GeminiAssistant
from .contexts import get_page_context
from .conversation import Conversation
from .serializers import NavigateSerializer, MessageSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def assistant_context(request):
    """Role and quick suggestions for a screen (default entry for unknown routes)"""
    route = request.query_params.get('route', INVENTORY_ROUTE)
    return Response({'route': route, **get_page_context(route).to_json()})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def conversation_detail(request):
    """Current conversation, or clear its transcript"""
    conversation = Conversation.from_session(request.session)
    if request.method == 'DELETE':
        conversation.clear()
        conversation.save(request.session)
    return Response(conversation.to_json())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def conversation_toggle(request):
    conversation = Conversation.from_session(request.session)
    conversation.toggle()
    conversation.save(request.session)
    return Response(conversation.to_json())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def assistant_navigate(request):
    """The user moved to another screen"""
    serializer = NavigateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    conversation = Conversation.from_session(request.session)
    conversation.navigate(serializer.validated_data['route'])
    conversation.save(request.session)
    return Response(conversation.to_json())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def assistant_message(request):
    """Ask the assistant; the reply is always a message, even when the model fails"""
    serializer = MessageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    conversation = Conversation.from_session(request.session)
    route = serializer.validated_data.get('route')
    if route:
        conversation.navigate(route)

    text = serializer.validated_data['text']
    conversation.add_user_message(text)
    reply = conversation.add_reply(GeminiAssistant().ask(text, conversation.route))
    conversation.save(request.session)
    return Response({'reply': reply, 'conversation': conversation.to_json()})
