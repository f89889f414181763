from django.urls import path
from . import views

urlpatterns = [
    path('assistant/context/', views.assistant_context, name='assistant-context'),
    path('assistant/conversation/', views.conversation_detail, name='assistant-conversation'),
    path('assistant/conversation/toggle/', views.conversation_toggle, name='assistant-conversation-toggle'),
    path('assistant/navigate/', views.assistant_navigate, name='assistant-navigate'),
    path('assistant/messages/', views.assistant_message, name='assistant-message'),
]
