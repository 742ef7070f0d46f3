import groq
import httpx
import pytest

from dudelang.client.languages import DEFAULT_SOURCE, DEFAULT_TARGET, find_language
from dudelang.features.translation.service import (
    SlangTranslator,
    TranslationError,
    split_translation,
    strip_numbering_line,
)
from dudelang.tests.mocks import FakeGroq

JA = DEFAULT_SOURCE
EN = DEFAULT_TARGET


def test_split_on_sentinel_line():
    result = split_translation("This is wild\n---\nまじ卍 is teen slang for extreme excitement.")
    assert result.translation == "This is wild"
    assert result.explanation == "まじ卍 is teen slang for extreme excitement."


def test_split_without_sentinel_keeps_everything():
    result = split_translation("  This is wild  ")
    assert result.translation == "This is wild"
    assert result.explanation == ""


def test_split_only_on_first_sentinel():
    result = split_translation("A\n---\nB\n---\nC")
    assert result.translation == "A"
    assert result.explanation == "B\n---\nC"


@pytest.mark.parametrize(
    "line,expected",
    [
        ("1. Sentence one", "Sentence one"),
        ("2) Sentence two", "Sentence two"),
        ("- Bullet", "Bullet"),
        ("• Dot bullet", "Dot bullet"),
        ("2024 was a year", "2024 was a year"),
    ],
)
def test_strip_numbering_line(line, expected):
    assert strip_numbering_line(line) == expected


def test_translate_uses_groq_and_splits():
    fake = FakeGroq(replies=["This is wild\n---\nslang explanation"])
    translator = SlangTranslator(client=fake)

    result = translator.translate("まじ卍", JA, EN)

    assert result.translation == "This is wild"
    assert result.explanation == "slang explanation"
    call = fake.chat.completions.calls[0]
    assert call["model"] == "llama-3.1-8b-instant"
    assert "まじ卍" in call["messages"][-1]["content"]
    assert "Japanese" in call["messages"][-1]["content"]


def test_empty_input_skips_model():
    fake = FakeGroq()
    result = SlangTranslator(client=fake).translate("   ", JA, EN)
    assert result.translation == ""
    assert result.explanation == ""
    assert fake.chat.completions.calls == []


def test_same_language_returns_input():
    fake = FakeGroq()
    result = SlangTranslator(client=fake).translate("hello", EN, EN)
    assert result.translation == "hello"
    assert fake.chat.completions.calls == []


def test_examples_strip_numbering_and_blanks():
    fake = FakeGroq(replies=["1. First one.\n\n2. Second one.\n- Third one."])
    lines = SlangTranslator(client=fake).examples("This is wild", EN)
    assert lines == ["First one.", "Second one.", "Third one."]


def test_explain():
    fake = FakeGroq(replies=["  It means excited.  "])
    assert SlangTranslator(client=fake).explain("まじ卍", JA) == "It means excited."


def test_missing_key_raises_translation_error():
    translator = SlangTranslator(api_key=None)
    with pytest.raises(TranslationError):
        translator.translate("まじ卍", JA, EN)


def test_groq_auth_error_is_user_facing():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    error = groq.AuthenticationError("invalid key", response=httpx.Response(401, request=request), body=None)
    translator = SlangTranslator(client=FakeGroq(error=error))
    with pytest.raises(TranslationError) as exc:
        translator.translate("まじ卍", JA, EN)
    assert "API key" in str(exc.value)


def test_groq_connection_error_is_translation_error():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    translator = SlangTranslator(client=FakeGroq(error=groq.APIConnectionError(request=request)))
    with pytest.raises(TranslationError):
        translator.translate("まじ卍", JA, EN)


def test_find_language():
    assert find_language("ko").name == "Korean"
    assert find_language("xx") is None
