"""API tests for the checkout payment routes."""

from __future__ import annotations

from typing import Any, Iterator, Optional
from urllib.parse import parse_qsl, urlsplit

import httpx
import pytest
from fastapi.testclient import TestClient

from hostedpay.api.app import create_app
from hostedpay.api.dependencies import (
    get_frame_controller_factory,
    get_key_value_store,
)
from hostedpay.crypto.shasign import sign
from hostedpay.env import Settings
from hostedpay.infrastructure.http.http_client import AsyncHttpClient
from hostedpay.infrastructure.secrets import SecretProvider
from hostedpay.infrastructure.session_repository_impl import (
    PaymentSessionRepositoryImpl,
)
from tests.fixtures import (
    DEFAULT_TEST_SECRETS,
    InMemoryKeyValueStore,
    InMemorySecretStore,
)
from tests.fixtures.gateway_stub import ACCEPT_URL, EXCEPTION_URL, GatewayStub

KNOWN_VECTOR = "F08286B2CE9CF087C0810D9E1C261D2DF7202E4CB269C19E524D36C5CC746996"


def _client(
    settings: Settings,
    gateway: GatewayStub,
    kv_store: InMemoryKeyValueStore,
    secrets: Optional[dict[str, str]] = None,
) -> TestClient:
    app = create_app(
        settings,
        secret_provider=SecretProvider(
            InMemorySecretStore(DEFAULT_TEST_SECRETS if secrets is None else secrets)
        ),
        http_client=AsyncHttpClient(transport=gateway.transport()),
    )
    app.dependency_overrides[get_key_value_store] = lambda: kv_store
    return TestClient(app)


@pytest.fixture
def client(
    test_settings: Settings, gateway: GatewayStub, kv_store: InMemoryKeyValueStore
) -> Iterator[TestClient]:
    with _client(test_settings, gateway, kv_store) as c:
        yield c


class TestGetShaSign:
    def test_known_vector(self, client: TestClient) -> None:
        client.app.state.secret_provider.override(sha_phrase="secretphrase")
        response = client.post(
            "/pitch/get-shasign", json={"ORDERID": "ABC", "AMOUNT": "100"}
        )
        assert response.status_code == 200
        assert response.json() == {"shasign": KNOWN_VECTOR}

    def test_numbers_accepted(self, client: TestClient) -> None:
        client.app.state.secret_provider.override(sha_phrase="secretphrase")
        response = client.post(
            "/pitch/get-shasign", json={"ORDERID": "ABC", "AMOUNT": 100}
        )
        assert response.json()["shasign"] == KNOWN_VECTOR

    def test_nested_values_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/pitch/get-shasign", json={"ORDERID": {"nested": 1}, "FLAG": True}
        )
        assert response.status_code == 400
        assert "FLAG" in response.json()["detail"]

    def test_float_without_stable_text_form_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/pitch/get-shasign", json={"ORDERID": "ABC", "AMOUNT": 1.5e-7}
        )
        assert response.status_code == 400

    def test_integral_float_signs_like_integer(self, client: TestClient) -> None:
        client.app.state.secret_provider.override(sha_phrase="secretphrase")
        response = client.post(
            "/pitch/get-shasign", json={"ORDERID": "ABC", "AMOUNT": 100.0}
        )
        assert response.json()["shasign"] == KNOWN_VECTOR

    def test_phrase_not_loaded(
        self,
        test_settings: Settings,
        gateway: GatewayStub,
        kv_store: InMemoryKeyValueStore,
    ) -> None:
        with _client(test_settings, gateway, kv_store, secrets={}) as c:
            response = c.post("/pitch/get-shasign", json={"ORDERID": "ABC"})
        assert response.status_code == 500
        assert response.json()["detail"] == "SHA phrase not loaded"


class TestRedirectUrl:
    def test_signed_url(self, client: TestClient, test_settings: Settings) -> None:
        response = client.post(
            "/pitch/redirect-url",
            json={
                "orderId": "HLX-1",
                "acceptUrl": ACCEPT_URL,
                "exceptionUrl": EXCEPTION_URL,
            },
        )
        assert response.status_code == 200
        body = response.json()
        parts = urlsplit(body["url"])
        assert body["url"].startswith(test_settings.hosted_page_url + "?")
        query = dict(parse_qsl(parts.query))
        assert query.pop("SHASIGN") == body["shasign"]
        assert query["ACCOUNT.PSPID"] == "epdq1717240"
        assert body["shasign"] == sign(query, "dummy")

    def test_missing_field(self, client: TestClient) -> None:
        response = client.post(
            "/pitch/redirect-url",
            json={"orderId": "HLX-1", "acceptUrl": ACCEPT_URL},
        )
        assert response.status_code == 400
        assert "exceptionUrl" in response.json()["detail"]


class TestConfirmPayment:
    def test_success(self, client: TestClient, gateway: GatewayStub) -> None:
        response = client.post(
            "/pitch/confirm-payment", json={"aliasId": "a", "orderId": "b"}
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "result": "STATUS=9"}

        form = gateway.last_form
        assert form["ALIASOPERATION"] == "BYPSP"
        signature = form.pop("SHASIGN")
        expected_input = "".join(f"{k}={form[k]}dummy" for k in sorted(form))
        assert expected_input.startswith("ALIAS=adummy")
        assert signature == sign(form, "dummy")

    def test_missing_order_id(self, client: TestClient, gateway: GatewayStub) -> None:
        response = client.post("/pitch/confirm-payment", json={"aliasId": "a"})
        assert response.status_code == 400
        assert gateway.requests == []

    def test_challenge(self, client: TestClient, gateway: GatewayStub) -> None:
        gateway.body = (
            '<?xml version="1.0"?><ncresponse STATUS="46" HTML_ANSWER="SGVsbG8=" />'
        )
        response = client.post(
            "/pitch/confirm-payment", json={"aliasId": "c", "orderId": "d"}
        )
        assert response.status_code == 200
        assert response.json()["challenge"] == "SGVsbG8="

    def test_already_processed(self, client: TestClient, gateway: GatewayStub) -> None:
        gateway.body = (
            '<?xml version="1.0"?><ncresponse NCERROR="50001113" STATUS="0" />'
        )
        response = client.post(
            "/pitch/confirm-payment", json={"aliasId": "e", "orderId": "f"}
        )
        body = response.json()
        assert body["success"] is True
        assert body["alreadyProcessed"] is True

    def test_provider_failure_is_redacted(
        self, client: TestClient, gateway: GatewayStub
    ) -> None:
        gateway.status_code = 500
        gateway.body = "internal trace PSWD=s3cret-pass"
        response = client.post(
            "/pitch/confirm-payment", json={"aliasId": "a", "orderId": "b"}
        )
        assert response.status_code == 500
        assert "s3cret-pass" not in response.text
        assert "supportContact" not in response.json()["detail"]

    def test_timeout_asks_for_support_contact(
        self, client: TestClient, gateway: GatewayStub
    ) -> None:
        gateway.error = lambda request: httpx.ReadTimeout("slow", request=request)
        response = client.post(
            "/pitch/confirm-payment", json={"aliasId": "a", "orderId": "b"}
        )
        assert response.status_code == 500
        assert response.json()["detail"]["supportContact"] is True

    def test_tampered_redirect_rejected(
        self, client: TestClient, gateway: GatewayStub
    ) -> None:
        redirect = {"Alias.AliasId": "a", "Alias.OrderId": "b"}
        response = client.post(
            "/pitch/confirm-payment",
            json={
                "aliasId": "a",
                "orderId": "b",
                "shaSign": sign({**redirect, "Alias.AliasId": "z"}, "dummy"),
                "redirectParams": redirect,
            },
        )
        assert response.status_code == 400
        assert gateway.requests == []

    def test_verified_redirect_accepted(
        self, client: TestClient, gateway: GatewayStub
    ) -> None:
        redirect = {"Alias.AliasId": "a", "Alias.OrderId": "b"}
        response = client.post(
            "/pitch/confirm-payment",
            json={
                "aliasId": "a",
                "orderId": "b",
                "shaSign": sign(redirect, "dummy").lower(),
                "redirectParams": redirect,
            },
        )
        assert response.status_code == 200
        assert len(gateway.requests) == 1

    def test_signed_redirect_for_other_ids_rejected(
        self, client: TestClient, gateway: GatewayStub
    ) -> None:
        redirect = {"Alias.AliasId": "legit", "Alias.OrderId": "ORDER-1"}
        response = client.post(
            "/pitch/confirm-payment",
            json={
                "aliasId": "other-alias",
                "orderId": "ORDER-999",
                "shaSign": sign(redirect, "dummy"),
                "redirectParams": redirect,
            },
        )
        assert response.status_code == 400
        assert gateway.requests == []

    @pytest.mark.parametrize(
        "extra",
        [
            {"shaSign": "ABC123"},
            {"redirectParams": {"Alias.AliasId": "a", "Alias.OrderId": "b"}},
        ],
    )
    def test_half_of_signed_redirect_rejected(
        self, client: TestClient, gateway: GatewayStub, extra: dict
    ) -> None:
        response = client.post(
            "/pitch/confirm-payment",
            json={"aliasId": "a", "orderId": "b", **extra},
        )
        assert response.status_code == 400
        assert gateway.requests == []


class TestPaymentsDisabled:
    def test_payment_routes_answer_503(
        self,
        test_settings: Settings,
        gateway: GatewayStub,
        kv_store: InMemoryKeyValueStore,
    ) -> None:
        settings = test_settings.model_copy(update={"payments_disabled": True})
        with _client(settings, gateway, kv_store) as c:
            confirm = c.post(
                "/pitch/confirm-payment", json={"aliasId": "a", "orderId": "b"}
            )
            redirect = c.post("/pitch/redirect-url", json={"orderId": "HLX-1"})
            health = c.get("/health")
        assert confirm.status_code == 503
        assert redirect.status_code == 503
        assert gateway.requests == []
        assert health.json()["paymentsDisabled"] is True


class TestPaymentSessions:
    def test_snapshot_round_trip(self, client: TestClient) -> None:
        snapshot = {
            "paymentDone": True,
            "paymentMethod": "card",
            "aliasId": "ALIAS42",
            "orderId": "HLX-1",
            "shaSign": "ABC",
        }
        assert client.put("/pitch/payment-sessions/sess-0001", json=snapshot).status_code == 200

        response = client.get("/pitch/payment-sessions/sess-0001")
        assert response.status_code == 200
        assert response.json() == snapshot

        assert client.delete("/pitch/payment-sessions/sess-0001").status_code == 204
        assert client.get("/pitch/payment-sessions/sess-0001").status_code == 404

    def test_invalid_session_id(self, client: TestClient) -> None:
        assert client.get("/pitch/payment-sessions/a b").status_code == 422


class TestFrameControllerFactory:
    async def test_controllers_trust_configured_gateway_origins(
        self,
        test_settings: Settings,
        session_repository: PaymentSessionRepositoryImpl,
    ) -> None:
        settings = test_settings.model_copy(
            update={"gateway_origins": ["https://gateway.test"]}
        )
        sent: list[dict[str, Any]] = []

        async def post_to_frame(message: dict[str, Any]) -> None:
            sent.append(message)

        factory = get_frame_controller_factory(settings, session_repository)
        controller = factory(
            "session-0001",
            "https://gateway.test/Tokenization/HostedPage?SHASIGN=AB",
            ACCEPT_URL,
            EXCEPTION_URL,
            post_to_frame,
        )
        await controller.mount()

        assert controller.allowed_origins == ("https://gateway.test",)
        assert (
            await controller.handle_message({"flexMsg": "ready"}, origin="https://evil.test")
            is False
        )
        assert (
            await controller.handle_message(
                {"flexMsg": "ready"}, origin="https://gateway.test"
            )
            is True
        )


def test_health_reports_secrets(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["secretsLoaded"] is True
    assert client.head("/pitch/").status_code == 200
