import pytest

from dudelang.client.languages import DEFAULT_SOURCE as JA, DEFAULT_TARGET as EN
from dudelang.client.saved import SavedTranslationsStore
from dudelang.client.storage import SAVED_TRANSLATIONS_KEY, LocalStorage


@pytest.fixture
def saved(tmp_path):
    return SavedTranslationsStore(LocalStorage(tmp_path / "storage.json"))


def test_toggle_saves_then_removes(saved):
    assert saved.toggle("まじ卍", "This is wild", JA, EN) is True
    assert saved.is_saved("まじ卍", "This is wild", JA, EN)

    assert saved.toggle("まじ卍", "This is wild", JA, EN) is False
    assert saved.list() == []


def test_newest_first(saved):
    saved.toggle("一", "one", JA, EN)
    saved.toggle("二", "two", JA, EN)
    assert [item["inputText"] for item in saved.list()] == ["二", "一"]


def test_entry_shape(saved):
    saved.toggle("まじ卍", "This is wild", JA, EN)
    entry = saved.list()[0]
    assert set(entry) == {"id", "inputText", "outputText", "sourceLanguage", "targetLanguage", "timestamp"}
    assert entry["sourceLanguage"] == "ja"
    assert entry["targetLanguage"] == "en"
    assert isinstance(entry["timestamp"], int)


def test_blank_pair_is_not_saved(saved):
    assert saved.toggle("", "x", JA, EN) is False
    assert saved.list() == []


def test_remove_and_clear(saved):
    saved.toggle("一", "one", JA, EN)
    saved.toggle("二", "two", JA, EN)
    first_id = saved.list()[0]["id"]

    saved.remove(first_id)
    assert [item["inputText"] for item in saved.list()] == ["一"]

    saved.clear()
    assert saved.list() == []
    assert saved.storage.get_item(SAVED_TRANSLATIONS_KEY) is None


def test_malformed_value_reads_as_empty(saved):
    saved.storage.set_item(SAVED_TRANSLATIONS_KEY, "oops")
    assert saved.list() == []
