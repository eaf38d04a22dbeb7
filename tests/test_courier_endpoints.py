"""Tests for Courier API endpoints."""

import httpx
import pytest
from fastapi.testclient import TestClient

from courier.main import create_app
from courier.transport import ChunkTransport, TransportResult, WebhookChunkTransport


class FakeTransport(ChunkTransport):
    """Chat transport double collecting sent parts."""

    def __init__(self, fail=False):
        self.messages = []
        self.parts = []
        self.fail = fail
        self.closed = False

    def send_message(self, content):
        self.messages.append(content)
        return TransportResult(channel='fake', success=True)

    def send_chunk(self, payload, content=''):
        if self.fail:
            return TransportResult(channel='fake', success=False, detail='HTTP 500')
        self.parts.append(payload.file_name)
        return TransportResult(channel='fake', success=True)

    def close(self):
        self.closed = True


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(settings, transport):
    """Create FastAPI test client with the fake chat transport."""
    with TestClient(create_app(settings, transport=transport)) as test_client:
        yield test_client


def test_root_endpoint(client):
    """Test health check endpoint."""
    response = client.get('/')
    assert response.status_code == 200
    assert response.json() == {'status': 'running', 'service': 'courier'}


def test_request_id_is_echoed(client):
    response = client.get('/', headers={'X-Request-ID': 'abc-123'})
    assert response.headers['X-Request-ID'] == 'abc-123'


def test_transport_closed_on_shutdown(settings):
    transport = FakeTransport()
    with TestClient(create_app(settings, transport=transport)):
        pass
    assert transport.closed


class TestLinkEndpoint:

    def test_publish_link(self, client, write_backup, publish_root):
        write_backup('b.tar.gz', 1234)

        response = client.post('/backups/link', json={'requester_id': 'alice'})

        assert response.status_code == 201
        data = response.json()
        assert data['file_name'] == 'b.tar.gz'
        assert data['file_size_bytes'] == 1234
        assert data['url'].startswith('https://example.com/backups/')
        assert data['url'].endswith('/b.tar.gz')
        assert data['url'] in data['message']
        token = data['url'].split('/')[-2]
        assert (publish_root / token / 'b.tar.gz').exists()

    def test_no_backup(self, client):
        response = client.post('/backups/link', json={'requester_id': 'alice'})

        assert response.status_code == 404
        assert response.json()['code'] == 'BACKUP_NOT_FOUND'
        assert response.json()['detail'].startswith('❌ No backup found')

    def test_cooldown(self, client, write_backup):
        write_backup('b.tar.gz', 1234)
        client.post('/backups/link', json={'requester_id': 'alice'})

        response = client.post('/backups/link', json={'requester_id': 'alice'})

        assert response.status_code == 429
        data = response.json()
        assert data['code'] == 'COOLDOWN_ACTIVE'
        assert data['reason'] == 'user'
        assert data['detail'].startswith('⏳ Backup command is on cooldown')
        assert int(response.headers['Retry-After']) == data['retry_after_seconds']
        assert data['retry_after_seconds'] > 23 * 3600

    def test_empty_backup(self, client, write_backup, publish_root):
        write_backup('b.tar.gz', 0)

        response = client.post('/backups/link', json={'requester_id': 'alice'})

        assert response.status_code == 422
        assert response.json()['code'] == 'EMPTY_BACKUP'
        assert list(publish_root.iterdir()) == []

    def test_empty_requester_is_rejected(self, client):
        response = client.post('/backups/link', json={'requester_id': ''})
        assert response.status_code == 422


class TestChunksEndpoint:

    def test_send_chunks(self, client, transport, write_backup):
        write_backup('b.tar.gz', 1234)

        response = client.post('/backups/chunks', json={'requester_id': 'alice'})

        assert response.status_code == 200
        data = response.json()
        assert data['chunk_count'] == 3
        assert data['part_names'] == ['b.tar.gz.part001', 'b.tar.gz.part002', 'b.tar.gz.part003']
        assert 'copy /b b.tar.gz.part* b.tar.gz' in data['restore_commands']
        assert transport.parts == data['part_names']
        assert len(transport.messages) == 2

    def test_custom_chunk_size(self, client, write_backup):
        write_backup('b.tar.gz', 1234)

        response = client.post('/backups/chunks', json={'requester_id': 'alice', 'max_chunk_size': 1000})

        assert response.json()['chunk_count'] == 2

    def test_invalid_chunk_size(self, client):
        response = client.post('/backups/chunks', json={'requester_id': 'alice', 'max_chunk_size': 0})
        assert response.status_code == 422

    def test_empty_backup(self, client, write_backup):
        write_backup('b.tar.gz', 0)

        response = client.post('/backups/chunks', json={'requester_id': 'alice'})

        assert response.status_code == 422
        assert response.json()['code'] == 'EMPTY_BACKUP'

    def test_transport_failure(self, settings, write_backup):
        write_backup('b.tar.gz', 1234)
        with TestClient(create_app(settings, transport=FakeTransport(fail=True))) as client:
            response = client.post('/backups/chunks', json={'requester_id': 'alice'})

        assert response.status_code == 502
        assert response.json()['code'] == 'TRANSPORT_FAILED'

    def test_connection_dropped_mid_upload(self, settings, write_backup):
        def handler(request):
            raise httpx.ReadError('connection reset by peer', request=request)

        webhook = WebhookChunkTransport(
            'https://chat.example.com/api/webhooks/1/secret',
            max_retries=0,
            client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        write_backup('b.tar.gz', 1234)
        with TestClient(create_app(settings, transport=webhook)) as client:
            response = client.post('/backups/chunks', json={'requester_id': 'alice'})

        assert response.status_code == 502
        assert response.json()['code'] == 'TRANSPORT_FAILED'
        assert 'Run the command again' in response.json()['detail']

    def test_no_transport_configured(self, settings, write_backup):
        write_backup('b.tar.gz', 1234)
        with TestClient(create_app(settings)) as client:
            response = client.post('/backups/chunks', json={'requester_id': 'alice'})

        assert response.status_code == 503


class TestLatestEndpoint:

    def test_latest(self, client, write_backup):
        write_backup('b.tar.gz', 1234)

        response = client.get('/backups/latest')

        assert response.status_code == 200
        data = response.json()
        assert data['file_name'] == 'b.tar.gz'
        assert data['chunk_count'] == 3

    def test_latest_does_not_use_cooldown(self, client, write_backup):
        write_backup('b.tar.gz', 1234)
        client.get('/backups/latest')

        response = client.post('/backups/link', json={'requester_id': 'alice'})
        assert response.status_code == 201


class TestPublicationEndpoints:

    def test_list_and_revoke(self, client, write_backup):
        write_backup('b.tar.gz', 1234)
        url = client.post('/backups/link', json={'requester_id': 'alice'}).json()['url']
        token = url.split('/')[-2]

        listed = client.get('/publications').json()['publications']
        assert [p['token'] for p in listed] == [token]
        assert listed[0]['url'] == url

        response = client.delete(f'/publications/{token}')
        assert response.status_code == 200
        assert response.json() == {'token': token, 'revoked': True}
        assert client.get('/publications').json()['publications'] == []

    def test_revoke_unknown_token(self, client):
        response = client.delete('/publications/AbCdEf123456')
        assert response.status_code == 404

    def test_revoke_invalid_token(self, client):
        response = client.delete('/publications/not-a-token')

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_TOKEN'


def test_openapi_documents_error_model(client):
    schema = client.get('/openapi.json').json()

    assert 'ErrorResponse' in schema['components']['schemas']
    assert '429' in schema['paths']['/backups/link']['post']['responses']
