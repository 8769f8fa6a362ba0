"""Alert Strings tests - pure data functions for user-facing failure alerts.

Tests cover:
    - Every locale has text for every category
    - alert_category picks by error type / kind
    - Unknown locale settings fall back to English
"""

from netguard.core.alert_strings import (
    AlertLocale,
    alert_category,
    get_alert_text,
    resolve_locale,
)
from netguard.core.domain_types import AlertCategory
from netguard.core.errors import (
    AttemptTimeoutError,
    ErrorKind,
    PermanentClientError,
    TransientServerError,
    TransportError,
)


def test_all_locales_cover_all_categories():
    for locale in AlertLocale:
        for category in AlertCategory:
            title, message = get_alert_text(category, locale)
            assert title and message


def test_timeout_errors_map_to_timeout_alert():
    assert alert_category(AttemptTimeoutError(1.0)) is AlertCategory.TIMEOUT
    assert alert_category(TransportError("t", ErrorKind.TIMEOUT)) is AlertCategory.TIMEOUT


def test_server_errors_map_to_server_alert():
    assert alert_category(TransientServerError(500)) is AlertCategory.SERVER
    assert alert_category(TransportError.from_status(503)) is AlertCategory.SERVER


def test_everything_else_is_generic_network_alert():
    assert alert_category(PermanentClientError(404)) is AlertCategory.NETWORK
    assert alert_category(ValueError("x")) is AlertCategory.NETWORK
    assert alert_category(None) is AlertCategory.NETWORK


def test_english_titles():
    assert get_alert_text(AlertCategory.TIMEOUT)[0] == "Request Timeout"
    assert get_alert_text(AlertCategory.SERVER)[0] == "Server Error"
    assert get_alert_text(AlertCategory.NETWORK)[0] == "Network Error"


def test_resolve_locale():
    assert resolve_locale("pt_BR") is AlertLocale.PT_BR
    assert resolve_locale("xx") is AlertLocale.EN
