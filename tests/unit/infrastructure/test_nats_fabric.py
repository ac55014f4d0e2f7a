"""Unit tests for NATSFabricAdapter."""

import json
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest
import pytest_asyncio
from nats.errors import BadSubjectError, ConnectionClosedError, MaxPayloadError
from nats.errors import NoRespondersError as NATSNoRespondersError
from nats.errors import TimeoutError as NATSTimeoutError

from dxl_epo_client.application.client import EpoClient
from dxl_epo_client.application.registry_lookup import ServiceRegistryLookup
from dxl_epo_client.domain.constants import (
    DXL_SERVICE_REGISTRY_QUERY_TOPIC,
    EPO_REMOTE_SERVICE_TYPE,
)
from dxl_epo_client.domain.exceptions import (
    DiscoveryError,
    DispatchTransportError,
    FabricConnectionError,
    NoRespondersError,
    NotConnectedError,
    RequestTimeoutError,
)
from dxl_epo_client.domain.models import FabricRequest
from dxl_epo_client.infrastructure.config import NATSConnectionConfig
from dxl_epo_client.infrastructure.nats_fabric import NATSFabricAdapter, charset_from_headers
from tests.builders import RegistryBuilder


def make_msg(data=b"{}", headers=None, subject="/t"):
    msg = MagicMock()
    msg.data = data
    msg.headers = headers
    msg.subject = subject
    return msg


@pytest.fixture
def mock_nc():
    """Create a mock NATS client."""
    nc = MagicMock()
    nc.is_connected = True
    nc.is_closed = False
    nc.request = AsyncMock(return_value=make_msg())
    nc.subscribe = AsyncMock()
    nc.close = AsyncMock()
    return nc


@pytest.fixture
def mock_nats_module(mock_nc):
    """Mock the nats module."""
    with patch("dxl_epo_client.infrastructure.nats_fabric.nats") as mock:
        mock.connect = AsyncMock(return_value=mock_nc)
        yield mock


@pytest_asyncio.fixture
async def adapter(mock_nats_module, metrics):
    adapter = NATSFabricAdapter(NATSConnectionConfig(request_timeout=3.0), metrics=metrics)
    await adapter.connect()
    return adapter


class TestCharsetFromHeaders:
    def test_default(self):
        assert charset_from_headers(None) == "utf-8"
        assert charset_from_headers({}) == "utf-8"
        assert charset_from_headers({"Content-Type": "application/json"}) == "utf-8"

    def test_charset(self):
        headers = {"Content-Type": 'application/json; charset="ISO-8859-1"'}
        assert charset_from_headers(headers) == "ISO-8859-1"


class TestNATSFabricAdapterConnection:
    """Test NATSFabricAdapter connection management."""

    def test_init_with_defaults(self):
        adapter = NATSFabricAdapter()
        assert isinstance(adapter._config, NATSConnectionConfig)
        assert adapter._nc is None
        assert adapter._subscriptions == {}

    @pytest.mark.asyncio
    async def test_connect(self, mock_nats_module, metrics):
        config = NATSConnectionConfig(servers=["nats://fabric:4222"])
        adapter = NATSFabricAdapter(config, metrics=metrics)

        await adapter.connect()

        mock_nats_module.connect.assert_awaited_once_with(**config.to_connection_params())
        assert await adapter.is_connected()
        assert metrics.get_all()["gauges"]["fabric.connected"] == 1

    @pytest.mark.asyncio
    async def test_connect_failure(self, mock_nats_module):
        mock_nats_module.connect = AsyncMock(side_effect=OSError("refused"))
        adapter = NATSFabricAdapter()

        with pytest.raises(FabricConnectionError, match="refused"):
            await adapter.connect()
        assert not await adapter.is_connected()

    @pytest.mark.asyncio
    async def test_disconnect(self, adapter, mock_nc):
        subscription = MagicMock()
        subscription.unsubscribe = AsyncMock()
        mock_nc.subscribe.return_value = subscription
        await adapter.add_event_callback("/events", print)

        await adapter.disconnect()

        subscription.unsubscribe.assert_awaited_once()
        mock_nc.close.assert_awaited_once()
        assert not await adapter.is_connected()

    @pytest.mark.asyncio
    async def test_disconnect_when_never_connected(self):
        await NATSFabricAdapter().disconnect()


class TestNATSFabricAdapterRequest:
    """Test request/response handling."""

    @pytest.mark.asyncio
    async def test_request(self, adapter, mock_nc, metrics):
        mock_nc.request.return_value = make_msg(b'{"ok":true}')

        response = await adapter.request(FabricRequest(topic="/t", payload=b"{}"))

        mock_nc.request.assert_awaited_once_with("/t", b"{}", timeout=3.0)
        assert response.payload == b'{"ok":true}'
        assert response.topic == "/t"
        assert response.encoding == "utf-8"
        assert metrics.get_all()["counters"]["fabric.request.success"] == 1

    @pytest.mark.asyncio
    async def test_request_timeout_override(self, adapter, mock_nc):
        await adapter.request(FabricRequest(topic="/t"), timeout=0.5)
        mock_nc.request.assert_awaited_once_with("/t", b"", timeout=0.5)

    @pytest.mark.asyncio
    async def test_request_encoding_from_headers(self, adapter, mock_nc):
        mock_nc.request.return_value = make_msg(
            b"x", headers={"Content-Type": "text/plain; charset=latin-1"}
        )
        response = await adapter.request(FabricRequest(topic="/t"))
        assert response.encoding == "latin-1"
        assert response.headers == {"Content-Type": "text/plain; charset=latin-1"}

    @pytest.mark.asyncio
    async def test_request_timeout(self, adapter, mock_nc):
        mock_nc.request.side_effect = NATSTimeoutError()
        with pytest.raises(RequestTimeoutError) as exc_info:
            await adapter.request(FabricRequest(topic="/t"))
        assert exc_info.value.topic == "/t"

    @pytest.mark.asyncio
    async def test_no_responders(self, adapter, mock_nc):
        mock_nc.request.side_effect = NATSNoRespondersError()
        with pytest.raises(NoRespondersError):
            await adapter.request(FabricRequest(topic="/t"))

    @pytest.mark.asyncio
    async def test_service_error_reply(self, adapter, mock_nc):
        mock_nc.request.return_value = make_msg(
            b"", headers={"Nats-Service-Error": "Unknown command", "Nats-Service-Error-Code": "404"}
        )
        with pytest.raises(DispatchTransportError) as exc_info:
            await adapter.request(FabricRequest(topic="/t"))
        assert str(exc_info.value) == "Unknown command"
        assert exc_info.value.code == 404

    @pytest.mark.asyncio
    async def test_service_error_without_numeric_code(self, adapter, mock_nc):
        mock_nc.request.return_value = make_msg(
            b"", headers={"Nats-Service-Error": "failed", "Nats-Service-Error-Code": "n/a"}
        )
        with pytest.raises(DispatchTransportError) as exc_info:
            await adapter.request(FabricRequest(topic="/t"))
        assert exc_info.value.code is None

    @pytest.mark.asyncio
    async def test_request_not_connected(self):
        with pytest.raises(NotConnectedError):
            await NATSFabricAdapter().request(FabricRequest(topic="/t"))

    @pytest.mark.asyncio
    async def test_request_after_connection_lost(self, adapter, mock_nc):
        mock_nc.is_connected = False
        with pytest.raises(NotConnectedError):
            await adapter.request(FabricRequest(topic="/t"))
        mock_nc.request.assert_not_awaited()


class TestNATSFabricAdapterEvents:
    """Test event callback registration."""

    @pytest.mark.asyncio
    async def test_add_event_callback_wraps_messages(self, adapter, mock_nc):
        received = []
        await adapter.add_event_callback("/events", received.append)

        mock_nc.subscribe.assert_awaited_once()
        assert mock_nc.subscribe.await_args.args == ("/events",)
        wrapper = mock_nc.subscribe.await_args.kwargs["cb"]

        await wrapper(make_msg(b'{"id":1}', subject="/events"))

        assert len(received) == 1
        assert received[0].destination_topic == "/events"
        assert received[0].payload == b'{"id":1}'

    @pytest.mark.asyncio
    async def test_async_handler_awaited(self, adapter, mock_nc):
        handler = AsyncMock()
        await adapter.add_event_callback("/events", handler)
        wrapper = mock_nc.subscribe.await_args.kwargs["cb"]

        await wrapper(make_msg(subject="/events"))

        handler.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_registration(self, adapter, mock_nc):
        await adapter.add_event_callback("/events", print)
        await adapter.add_event_callback("/events", print)
        assert mock_nc.subscribe.await_count == 1

    @pytest.mark.asyncio
    async def test_remove_event_callback(self, adapter, mock_nc):
        subscription = MagicMock()
        subscription.unsubscribe = AsyncMock()
        mock_nc.subscribe.return_value = subscription
        await adapter.add_event_callback("/events", print)

        await adapter.remove_event_callback("/events", print)
        await adapter.remove_event_callback("/events", print)

        subscription.unsubscribe.assert_awaited_once()
        assert adapter._subscriptions == {}


class TestNATSFabricAdapterErrorMapping:
    """Every nats-py failure surfaces as a domain error."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [ConnectionClosedError(), MaxPayloadError(), BadSubjectError(), OSError("reset")]
    )
    async def test_other_request_errors(self, adapter, mock_nc, metrics, error):
        mock_nc.request.side_effect = error

        with pytest.raises(DispatchTransportError) as exc_info:
            await adapter.request(FabricRequest(topic="/t"))

        assert exc_info.value.topic == "/t"
        assert exc_info.value.__cause__ is error
        assert metrics.get_all()["counters"]["fabric.request.error"] == 1

    @pytest.mark.asyncio
    async def test_registry_query_wraps_closed_connection(self, adapter, mock_nc):
        mock_nc.request.side_effect = ConnectionClosedError()

        with pytest.raises(DiscoveryError) as exc_info:
            await ServiceRegistryLookup(adapter).query_services(EPO_REMOTE_SERVICE_TYPE)

        assert isinstance(exc_info.value.__cause__, DispatchTransportError)

    @pytest.mark.asyncio
    async def test_client_callback_receives_transport_error(self, adapter, mock_nc):
        registry = RegistryBuilder().with_remote_service("epo1")

        async def request(topic, payload, timeout):
            if topic == DXL_SERVICE_REGISTRY_QUERY_TOPIC:
                query = json.loads(payload)
                return make_msg(json.dumps(registry.build(query["serviceType"])).encode())
            raise MaxPayloadError()

        mock_nc.request.side_effect = request
        callback = Mock()

        result = await EpoClient(adapter, "epo1").run_command(
            "system.find", response_callback=callback
        )

        assert result is None
        error, value = callback.call_args.args
        assert isinstance(error, DispatchTransportError)
        assert value is None

    @pytest.mark.asyncio
    async def test_subscribe_failure(self, adapter, mock_nc):
        mock_nc.subscribe.side_effect = ConnectionClosedError()

        with pytest.raises(DispatchTransportError):
            await adapter.add_event_callback("/events", print)
        assert adapter._subscriptions == {}

    @pytest.mark.asyncio
    async def test_unsubscribe_failure(self, adapter, mock_nc):
        subscription = MagicMock()
        subscription.unsubscribe = AsyncMock(side_effect=ConnectionClosedError())
        mock_nc.subscribe.return_value = subscription
        await adapter.add_event_callback("/events", print)

        with pytest.raises(DispatchTransportError):
            await adapter.remove_event_callback("/events", print)
        assert adapter._subscriptions == {}


class TestNATSFabricAdapterDisconnectWhileReconnecting:
    @pytest.mark.asyncio
    async def test_closes_reconnecting_client(self, adapter, mock_nc):
        mock_nc.is_connected = False
        mock_nc.is_reconnecting = True

        await adapter.disconnect()

        mock_nc.close.assert_awaited_once()
        assert adapter._nc is None

    @pytest.mark.asyncio
    async def test_unsubscribe_errors_do_not_stop_cleanup(self, adapter, mock_nc):
        subscription = MagicMock()
        subscription.unsubscribe = AsyncMock(side_effect=ConnectionClosedError())
        mock_nc.subscribe.return_value = subscription
        await adapter.add_event_callback("/events", print)

        await adapter.disconnect()

        mock_nc.close.assert_awaited_once()
        assert adapter._subscriptions == {}

    @pytest.mark.asyncio
    async def test_already_closed_client_not_closed_again(self, adapter, mock_nc):
        mock_nc.is_connected = False
        mock_nc.is_closed = True

        await adapter.disconnect()

        mock_nc.close.assert_not_awaited()
