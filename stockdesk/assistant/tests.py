"""
Test suite for the help assistant
Tests: page contexts, Gemini client error mapping, session conversation, endpoints
"""
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework import status

from stockdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .client import (
    GeminiAssistant, MSG_MISSING_KEY, MSG_AUTH_ERROR, MSG_TECHNICAL_ERROR, MSG_EMPTY_REPLY,
    SYSTEM_PREAMBLE, system_instruction,
)
from .contexts import DEFAULT_CONTEXT, PAGE_CONTEXTS, get_page_context
from .conversation import Conversation, NAVIGATION_NOTICE, SENDER_AI, SENDER_USER


class PageContextTests(TestCase):
    """Test screen-specific assistant instructions"""

    def test_known_routes(self):
        """Test every screen has a role and four suggestions"""
        for route, context in PAGE_CONTEXTS.items():
            self.assertEqual(get_page_context(route), context)
            self.assertEqual(len(context.suggestions), 4)
        self.assertIn('Ingreso de Stock', get_page_context('/ingreso').role)

    def test_unknown_route_uses_default(self):
        """Test unknown routes get the generic context"""
        self.assertEqual(get_page_context('/nada'), DEFAULT_CONTEXT)

    def test_system_instruction(self):
        """Test the preamble is combined with the screen role"""
        instruction = system_instruction('/pedidos')
        self.assertTrue(instruction.startswith(SYSTEM_PREAMBLE))
        self.assertIn("'Pedidos / Remito'", instruction)


@mock.patch('stockdesk.assistant.client.genai')
class GeminiAssistantTests(TestCase):
    """Test the Gemini client never raises and maps failures to messages"""

    def test_missing_key(self, genai):
        """Test no call is made without an API key"""
        self.assertEqual(GeminiAssistant(api_key='').ask('hola', '/'), MSG_MISSING_KEY)
        genai.GenerativeModel.assert_not_called()

    def test_reply_text(self, genai):
        """Test the model text is returned with the screen instructions"""
        genai.GenerativeModel.return_value.generate_content.return_value = mock.Mock(text='Usá la barra de búsqueda.')
        reply = GeminiAssistant(api_key='key', model_name='gemini-test', temperature=0.7).ask('¿Cómo busco?', '/')
        self.assertEqual(reply, 'Usá la barra de búsqueda.')
        genai.configure.assert_called_once_with(api_key='key')
        kwargs = genai.GenerativeModel.call_args.kwargs
        self.assertEqual(kwargs['model_name'], 'gemini-test')
        self.assertEqual(kwargs['system_instruction'], system_instruction('/'))
        self.assertEqual(kwargs['generation_config'], {'temperature': 0.7})
        genai.GenerativeModel.return_value.generate_content.assert_called_once_with('¿Cómo busco?')

    def test_empty_reply(self, genai):
        """Test an empty response"""
        genai.GenerativeModel.return_value.generate_content.return_value = mock.Mock(text='')
        self.assertEqual(GeminiAssistant(api_key='key').ask('hola', '/'), MSG_EMPTY_REPLY)

    def test_blocked_reply(self, genai):
        """Test a response without text parts"""
        response = mock.Mock()
        type(response).text = mock.PropertyMock(side_effect=ValueError('no parts'))
        genai.GenerativeModel.return_value.generate_content.return_value = response
        self.assertEqual(GeminiAssistant(api_key='key').ask('hola', '/'), MSG_EMPTY_REPLY)

    def test_auth_errors(self, genai):
        """Test authentication failures get the credentials message"""
        for error in ('401 Unauthorized', 'API_KEY_INVALID', 'API keys are not supported by this API'):
            genai.GenerativeModel.return_value.generate_content.side_effect = RuntimeError(error)
            with self.assertLogs('stockdesk.assistant.client', level='ERROR'):
                self.assertEqual(GeminiAssistant(api_key='key').ask('hola', '/'), MSG_AUTH_ERROR)

    def test_other_errors(self, genai):
        """Test any other failure gets the technical error message"""
        genai.GenerativeModel.return_value.generate_content.side_effect = ConnectionError('timeout')
        with self.assertLogs('stockdesk.assistant.client', level='ERROR'):
            self.assertEqual(GeminiAssistant(api_key='key').ask('hola', '/'), MSG_TECHNICAL_ERROR)


class ConversationTests(TestCase):
    """Test the session conversation"""

    def test_navigation_notice_only_when_open_with_messages(self):
        """Test a screen change adds a notice to an open, non-empty conversation"""
        conversation = Conversation()
        conversation.navigate('/precios')
        self.assertEqual(conversation.messages, [])

        conversation.toggle()
        conversation.add_user_message('hola')
        self.assertTrue(conversation.navigate('/pedidos'))
        self.assertEqual(conversation.messages[-1]['text'], NAVIGATION_NOTICE)
        self.assertEqual(conversation.messages[-1]['sender'], SENDER_AI)

        self.assertFalse(conversation.navigate('/pedidos'))
        self.assertEqual(len(conversation.messages), 2)

    def test_closed_conversation_gets_no_notice(self):
        """Test no notice while the panel is closed"""
        conversation = Conversation(messages=[{'id': '1', 'text': 'hola', 'sender': SENDER_USER}])
        conversation.navigate('/precios')
        self.assertEqual(len(conversation.messages), 1)

    def test_suggestions_hidden_once_chat_starts(self):
        """Test quick suggestions are offered for short transcripts only"""
        conversation = Conversation(route='/ingreso')
        self.assertEqual(len(conversation.to_json()['suggestions']), 4)
        conversation.add_user_message('hola')
        conversation.add_reply('¡Hola!')
        self.assertEqual(conversation.to_json()['suggestions'], [])

    def test_session_round_trip(self):
        """Test the conversation is restored from the session"""
        session = {}
        conversation = Conversation(is_open=True, route='/precios')
        conversation.add_user_message('hola')
        conversation.save(session)
        restored = Conversation.from_session(session)
        self.assertTrue(restored.is_open)
        self.assertEqual(restored.route, '/precios')
        self.assertEqual(restored.messages[0]['text'], 'hola')


@override_settings(GEMINI_API_KEY='test-key')
class AssistantAPITests(TestCase):
    """Test assistant endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_context(self):
        """Test screen context endpoint"""
        response = self.client.get('/api/v1/assistant/context/', {'route': '/exportacion'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['suggestions'], list(PAGE_CONTEXTS['/exportacion'].suggestions))

    def test_toggle_and_navigate(self):
        """Test panel state and navigation are kept in the session"""
        response = self.client.post('/api/v1/assistant/conversation/toggle/')
        self.assertTrue(response.data['is_open'])
        response = self.client.post('/api/v1/assistant/navigate/', {'route': '/ingreso'}, format='json')
        self.assertEqual(response.data['route'], '/ingreso')
        response = self.client.get('/api/v1/assistant/conversation/')
        self.assertTrue(response.data['is_open'])
        self.assertEqual(response.data['route'], '/ingreso')

    @mock.patch('stockdesk.assistant.views.GeminiAssistant.ask', return_value='Escribí el código.')
    def test_message(self, ask):
        """Test a question and its reply are appended to the transcript"""
        response = self.client.post('/api/v1/assistant/messages/',
                                    {'text': '¿Cómo cargo stock?', 'route': '/ingreso'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reply']['text'], 'Escribí el código.')
        ask.assert_called_once_with('¿Cómo cargo stock?', '/ingreso')
        messages = response.data['conversation']['messages']
        self.assertEqual([m['sender'] for m in messages], [SENDER_USER, SENDER_AI])

    def test_clear(self):
        """Test clearing the transcript"""
        with mock.patch('stockdesk.assistant.views.GeminiAssistant.ask', return_value='ok'):
            self.client.post('/api/v1/assistant/messages/', {'text': 'hola'}, format='json')
        response = self.client.delete('/api/v1/assistant/conversation/')
        self.assertEqual(response.data['messages'], [])

    def test_message_requires_text(self):
        """Test empty questions are rejected"""
        response = self.client.post('/api/v1/assistant/messages/', {'text': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
