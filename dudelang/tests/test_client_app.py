import httpx
import pytest

from dudelang.client.api_client import SubscriptionApiClient
from dudelang.client.app import ClientApp
from dudelang.client.config import ClientSettings
from dudelang.client.controller import SubscriptionState, View
from dudelang.features.translation.service import SlangTranslator
from dudelang.tests.mocks import FakeGroq


@pytest.mark.asyncio
async def test_client_app_boots_from_settings(tmp_path):
    settings = ClientSettings(
        _env_file=None,
        DUDELANG_STORAGE_FILE=str(tmp_path / "storage.json"),
        TRANSLATION_DEBOUNCE_SECONDS=0.01,
    )

    def handler(request):
        return httpx.Response(200, json={"isSubscribed": False})

    http = httpx.AsyncClient(base_url="http://server.test", transport=httpx.MockTransport(handler))
    api = SubscriptionApiClient("http://server.test", client=http)
    translator = SlangTranslator(client=FakeGroq(replies=["This is wild\n---\nexplained"]))

    async with ClientApp(settings, api=api, translator=translator) as client:
        assert client.controller.state == SubscriptionState.FREE
        assert (tmp_path / "storage.json").exists()

        client.session.set_input("まじ卍")
        await client.session.wait()
        assert client.session.translation == "This is wild"
        assert client.session.explanation == ""
        assert client.session.debounce_seconds == 0.01


@pytest.mark.asyncio
async def test_saved_and_settings_views(tmp_path):
    settings = ClientSettings(
        _env_file=None,
        DUDELANG_STORAGE_FILE=str(tmp_path / "storage.json"),
        TRANSLATION_DEBOUNCE_SECONDS=0.01,
        STRIPE_PRICE_MONTHLY="price_m",
    )
    http = httpx.AsyncClient(
        base_url="http://server.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"isSubscribed": False})),
    )
    api = SubscriptionApiClient("http://server.test", client=http)
    translator = SlangTranslator(client=FakeGroq(replies=["This is wild\n---\nexplained"]))

    async with ClientApp(settings, api=api, translator=translator) as client:
        client.session.set_input("まじ卍")
        await client.session.wait()
        assert client.save_current() is True

        saved = client.open_saved()
        assert client.controller.view == View.SAVED
        assert [(item["inputText"], item["outputText"]) for item in saved] == [("まじ卍", "This is wild")]

        assert client.open_settings() == {"monthly": "price_m"}
        assert client.controller.view == View.SETTINGS

        with pytest.raises(ValueError):
            client.controller.navigate(View.SUCCESS)
        client.controller.return_home()
        assert client.controller.view == View.HOME
