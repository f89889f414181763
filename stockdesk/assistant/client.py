"""
Gemini client of the help assistant.

`GeminiAssistant.ask` always returns text for the user: failures of the
hosted model are logged and turned into canned Spanish messages.
"""
import logging

import google.generativeai as genai
from django.conf import settings

from .contexts import get_page_context

logger = logging.getLogger(__name__)

SYSTEM_PREAMBLE = "Eres el Asistente Virtual de Jobuzetti Stock Manager. Responde de forma breve, concisa y en español."

MSG_MISSING_KEY = "⚠️ Configuración incompleta: No se detectó la API Key de Gemini. Por favor, revisa el código."
MSG_AUTH_ERROR = "⚠️ Error de Autenticación: La API Key configurada no es válida o ha expirado."
MSG_TECHNICAL_ERROR = "Lo siento, ocurrió un error técnico al procesar tu consulta. Por favor intenta nuevamente."
MSG_EMPTY_REPLY = "No se recibió respuesta del modelo."

AUTH_ERROR_MARKERS = (
    '401',
    'API keys are not supported',
    'UNAUTHENTICATED',
    'CREDENTIALS_MISSING',
    'API_KEY_INVALID',
)


def system_instruction(route):
    return f"{SYSTEM_PREAMBLE} {get_page_context(route).role}"


def is_auth_error(error):
    text = str(error)
    return any(marker in text for marker in AUTH_ERROR_MARKERS)


def response_text(response):
    # .text raises ValueError when the candidate carries no text part (e.g. blocked)
    try:
        return response.text or ''
    except ValueError:
        return ''


class GeminiAssistant:
    def __init__(self, api_key=None, model_name=None, temperature=None):
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model_name = model_name or settings.GEMINI_MODEL
        self.temperature = settings.GEMINI_TEMPERATURE if temperature is None else temperature

    def ask(self, message, route):
        """Single-turn question answered with the instructions of the current screen"""
        if not self.api_key:
            return MSG_MISSING_KEY

        try:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=system_instruction(route),
                generation_config={'temperature': self.temperature},
            )
            response = model.generate_content(message)
        except Exception as e:
            logger.error(f"Error calling Gemini ({self.model_name}) for route '{route}': {str(e)}")
            if is_auth_error(e):
                return MSG_AUTH_ERROR
            return MSG_TECHNICAL_ERROR

        return response_text(response) or MSG_EMPTY_REPLY
