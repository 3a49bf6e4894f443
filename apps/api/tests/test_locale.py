import pytest

from services.locale import LocaleContext, normalize_language, resolve_locale


@pytest.mark.parametrize(
    "value,expected",
    [
        ("de", "DE"),
        ("de-CH", "DE"),
        (" it ", "IT"),
        ("EN", "EN"),
        ("es", "FR"),
        ("", "FR"),
        (None, "FR"),
    ],
)
def test_normalize_language(value, expected):
    assert normalize_language(value) == expected


def test_resolve_locale_prefers_query_then_header_then_accept_language():
    assert resolve_locale(lang="it", header_language="DE", accept_language="en-US").language == "IT"
    assert resolve_locale(header_language="DE", accept_language="en-US").language == "DE"
    assert resolve_locale(accept_language="en-GB,en;q=0.9,fr;q=0.8").language == "EN"
    assert resolve_locale().language == "FR"


def test_translate_formats_params_and_falls_back():
    german = LocaleContext(language="DE")
    assert german.t("credits.purchaseSuccess", credits=12).startswith("12")
    assert german.t("unknown.key") == "unknown.key"

    english = LocaleContext(language="EN")
    assert english.t("auth.passwordTooShort", min_length=6) == "Password must be at least 6 characters"


def test_every_message_has_all_supported_languages():
    from services.locale import MESSAGES

    for key, entry in MESSAGES.items():
        assert set(entry) == {"FR", "DE", "IT", "EN"}, key
