"""Debounce, stale-result discarding and gating in TranslationSession."""

import asyncio

import pytest

from dudelang.client.controller import FeatureGate
from dudelang.client.translation_session import FeatureLockedError, TranslationSession
from dudelang.features.translation.service import TranslationError
from dudelang.tests.mocks import FakeTranslator


class GateStub:
    def __init__(self, is_subscribed=False):
        self.gate = FeatureGate(is_subscribed=is_subscribed)


def _session(translator, subscribed=False, debounce=0.05):
    return TranslationSession(translator, GateStub(subscribed), debounce_seconds=debounce)


@pytest.mark.asyncio
async def test_rapid_input_translates_once():
    translator = FakeTranslator()
    session = _session(translator)

    for text in ["ま", "まじ", "まじ卍"]:
        session.set_input(text)
    await session.wait()

    assert translator.calls == ["まじ卍"]
    assert session.translation == "T(まじ卍)"
    assert session.token == 3


@pytest.mark.asyncio
async def test_stale_result_is_discarded():
    translator = FakeTranslator(delays={"slow": 0.3})
    session = _session(translator, debounce=0.01)

    session.set_input("slow")
    await asyncio.sleep(0.05)  # "slow" is now in flight
    session.set_input("fast")
    await session.wait()
    await asyncio.sleep(0.35)  # let the abandoned request finish

    assert session.translation == "T(fast)"
    assert session.is_loading is False


@pytest.mark.asyncio
async def test_explanation_hidden_for_free():
    session = _session(FakeTranslator(), subscribed=False)
    session.set_input("まじ卍")
    await session.wait()
    assert session.translation == "T(まじ卍)"
    assert session.explanation == ""


@pytest.mark.asyncio
async def test_explanation_shown_for_pro():
    session = _session(FakeTranslator(), subscribed=True)
    session.set_input("まじ卍")
    await session.wait()
    assert session.explanation == "E(まじ卍)"


@pytest.mark.asyncio
async def test_examples_refused_for_free():
    session = _session(FakeTranslator(), subscribed=False)
    session.set_input("まじ卍")
    await session.wait()
    with pytest.raises(FeatureLockedError):
        await session.show_examples()


@pytest.mark.asyncio
async def test_examples_for_pro():
    session = _session(FakeTranslator(), subscribed=True)
    session.set_input("まじ卍")
    await session.wait()
    assert await session.show_examples() == ["T(まじ卍) one.", "T(まじ卍) two."]


@pytest.mark.asyncio
async def test_blank_input_clears_without_calling():
    translator = FakeTranslator()
    session = _session(translator)
    session.set_input("   ")
    await session.wait()
    assert translator.calls == []
    assert session.translation == ""


@pytest.mark.asyncio
async def test_translation_error_is_recorded():
    class Failing(FakeTranslator):
        def translate(self, text, source, target):
            raise TranslationError("Service error: down")

    session = _session(Failing())
    session.set_input("まじ卍")
    await session.wait()
    assert session.error == "Service error: down"
    assert session.translation == ""
    assert session.is_loading is False


@pytest.mark.asyncio
async def test_swap_languages_retranslates():
    translator = FakeTranslator()
    session = _session(translator)
    session.set_input("hello")
    await session.wait()

    source, target = session.source, session.target
    session.swap_languages()
    await session.wait()

    assert (session.source, session.target) == (target, source)
    assert translator.calls == ["hello", "hello"]


@pytest.mark.asyncio
async def test_clearing_input_mid_translation_stops_loading():
    translator = FakeTranslator(delays={"slow": 0.3})
    session = _session(translator, debounce=0.01)

    session.set_input("slow")
    await asyncio.sleep(0.05)
    assert session.is_loading is True

    session.set_input("")
    await session.wait()
    await asyncio.sleep(0.35)

    assert session.is_loading is False
    assert session.translation == ""
