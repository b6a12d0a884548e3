"""Tests for the /bridge relay using a mocked upstream."""

import httpx
import pytest

from dropserver.bridge import TunnelBridge
from dropserver.exceptions import BridgeUnavailableError


PUBLIC_URL = 'https://demo.trycloudflare.com'


class TestUpstreamUrl:

    def test_joins_path_and_query(self):
        bridge = TunnelBridge(lambda: PUBLIC_URL + '/')
        assert bridge.upstream_url('/api/files', 'a=1') == 'https://demo.trycloudflare.com/api/files?a=1'

    def test_root(self):
        bridge = TunnelBridge(lambda: PUBLIC_URL)
        assert bridge.upstream_url('', '') == 'https://demo.trycloudflare.com/'

    def test_unavailable(self):
        bridge = TunnelBridge(lambda: None)
        with pytest.raises(BridgeUnavailableError):
            bridge.upstream_url('x', '')


class TestBridgeRoute:

    def _install(self, app, handler):
        app.state.bridge = TunnelBridge(lambda: PUBLIC_URL, transport=httpx.MockTransport(handler))

    def test_relays_request_and_response(self, app, client):
        seen = {}

        def handler(request: httpx.Request):
            seen['method'] = request.method
            seen['url'] = str(request.url)
            seen['body'] = request.content
            seen['host'] = request.headers['host']
            return httpx.Response(201, content=b'upstream says hi', headers={'x-upstream': 'yes'})

        self._install(app, handler)

        response = client.post('/bridge/api/upload?batch=1', content=b'payload')

        assert response.status_code == 201
        assert response.content == b'upstream says hi'
        assert response.headers['x-upstream'] == 'yes'
        assert seen == {
            'method': 'POST',
            'url': 'https://demo.trycloudflare.com/api/upload?batch=1',
            'body': b'payload',
            'host': 'demo.trycloudflare.com',
        }

    def test_get_without_body(self, app, client):
        def handler(request: httpx.Request):
            assert request.content == b''
            return httpx.Response(200, json={'ok': True})

        self._install(app, handler)

        response = client.get('/bridge')

        assert response.status_code == 200
        assert response.json() == {'ok': True}

    def test_upstream_unreachable(self, app, client):
        def handler(request: httpx.Request):
            raise httpx.ConnectError('connection refused', request=request)

        self._install(app, handler)

        response = client.get('/bridge/anything')

        assert response.status_code == 503
        assert response.json()['code'] == 'BRIDGE_UNAVAILABLE'
