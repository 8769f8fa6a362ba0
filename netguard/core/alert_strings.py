"""Alert Strings - localized title/message pairs for alert_on_failure notifications.

Invariants:
    - All strings are pure data (no IO)
    - Every AlertLocale has an entry for every AlertCategory
    - alert_category() chooses by error type/kind, never by message text
"""

from enum import Enum

from netguard.core.domain_types import AlertCategory
from netguard.core.errors import (
    AttemptTimeoutError,
    ErrorKind,
    TransientServerError,
    TransportError,
)


class AlertLocale(str, Enum):
    EN = "en"
    PT_BR = "pt_BR"
    ES = "es"


_ALERTS: dict[AlertLocale, dict[AlertCategory, tuple[str, str]]] = {
    AlertLocale.EN: {
        AlertCategory.TIMEOUT: (
            "Request Timeout",
            "The request took too long. Please try again.",
        ),
        AlertCategory.SERVER: (
            "Server Error",
            "Our servers are experiencing issues. Please try again later.",
        ),
        AlertCategory.NETWORK: (
            "Network Error",
            "Please check your internet connection and try again.",
        ),
    },
    AlertLocale.PT_BR: {
        AlertCategory.TIMEOUT: (
            "Tempo Esgotado",
            "A solicitacao demorou demais. Tente novamente.",
        ),
        AlertCategory.SERVER: (
            "Erro no Servidor",
            "Nossos servidores estao com problemas. Tente novamente mais tarde.",
        ),
        AlertCategory.NETWORK: (
            "Erro de Rede",
            "Verifique sua conexao com a internet e tente novamente.",
        ),
    },
    AlertLocale.ES: {
        AlertCategory.TIMEOUT: (
            "Tiempo Agotado",
            "La solicitud tardo demasiado. Intentalo de nuevo.",
        ),
        AlertCategory.SERVER: (
            "Error del Servidor",
            "Nuestros servidores tienen problemas. Intentalo mas tarde.",
        ),
        AlertCategory.NETWORK: (
            "Error de Red",
            "Comprueba tu conexion a internet e intentalo de nuevo.",
        ),
    },
}


def alert_category(error: BaseException | None) -> AlertCategory:
    """Map a terminal error onto the alert flavour shown to the user."""
    if isinstance(error, (AttemptTimeoutError, TimeoutError)):
        return AlertCategory.TIMEOUT
    if isinstance(error, TransientServerError):
        return AlertCategory.SERVER
    if isinstance(error, TransportError):
        if error.kind is ErrorKind.TIMEOUT:
            return AlertCategory.TIMEOUT
        if error.kind is ErrorKind.SERVER_ERROR:
            return AlertCategory.SERVER
    return AlertCategory.NETWORK


def get_alert_text(
    category: AlertCategory, locale: AlertLocale = AlertLocale.EN,
) -> tuple[str, str]:
    """Return (title, message) for the category in the given locale."""
    return _ALERTS[locale][category]


def resolve_locale(value: str) -> AlertLocale:
    """Parse a locale setting, falling back to English for unknown values."""
    try:
        return AlertLocale(value)
    except ValueError:
        return AlertLocale.EN
