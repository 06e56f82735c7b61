import json
import uuid

import httpx
import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from orgguard.integrations.bolna import normalize_agents
from orgguard.main import create_app

SEND_TEST = '/functions/v1/send-workshop-confirmation-test'
LIST_AGENTS = '/functions/v1/list-voice-agents'


class Upstream:
    """Records outbound requests and answers with a canned response."""

    def __init__(self, status_code=200, body='{"ok": true}', error=None):
        self.status_code = status_code
        self.body = body
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)


@pytest.fixture
def configured_app(app):
    app.state.settings = app.state.settings.model_copy(
        update={
            'aisensy_free_api_key': SecretStr('aisensy-key'),
            'aisensy_free_source': 'crm-test',
            'whatsapp_test_destination': '919811111111',
        }
    )
    return app


def _use(app, upstream):
    app.state.http_transport = httpx.MockTransport(upstream)
    return upstream


def _assert_cors(response):
    assert response.headers['access-control-allow-origin'] == '*'
    assert response.headers['access-control-allow-headers'] == (
        'authorization, x-client-info, apikey, content-type'
    )


@pytest.mark.parametrize('path', [SEND_TEST, LIST_AGENTS])
def test_preflight(client, path):
    response = client.options(path)
    assert response.status_code == 200
    assert response.content == b''
    _assert_cors(response)


@pytest.mark.parametrize('path', [SEND_TEST, LIST_AGENTS])
def test_browser_preflight_from_any_origin(settings, path):
    restricted = create_app(settings.model_copy(update={'cors_origins': ['http://localhost:5173']}))
    with TestClient(restricted) as browser:
        response = browser.options(
            path,
            headers={
                'Origin': 'https://crm.example.com',
                'Access-Control-Request-Method': 'POST',
                'Access-Control-Request-Headers': 'authorization, content-type',
            },
        )
    assert response.status_code == 200
    assert response.content == b''
    assert 'access-control-allow-credentials' not in response.headers
    _assert_cors(response)


def test_api_routes_keep_configured_cors(settings):
    restricted = create_app(settings.model_copy(update={'cors_origins': ['http://localhost:5173']}))
    with TestClient(restricted) as browser:
        response = browser.options(
            '/api/v1/health',
            headers={'Origin': 'https://crm.example.com', 'Access-Control-Request-Method': 'GET'},
        )
    assert response.status_code == 400


def test_missing_aisensy_secret_fails_before_network(app, client):
    upstream = _use(app, Upstream())
    response = client.post(SEND_TEST)
    assert response.status_code == 500
    assert response.json() == {'error': 'Missing AiSensy FREE configuration'}
    assert upstream.requests == []
    _assert_cors(response)


def test_send_test_message(configured_app, client):
    upstream = _use(configured_app, Upstream(body='{"submitted": true}'))
    response = client.post(SEND_TEST)

    assert response.status_code == 200
    assert response.json() == {
        'success': True,
        'message': 'Test message sent to 919811111111',
        'api_response': '{"submitted": true}',
    }
    _assert_cors(response)

    sent = json.loads(upstream.requests[0].content)
    assert str(upstream.requests[0].url) == 'https://backend.aisensy.com/campaign/t1/api/v2'
    assert sent['apiKey'] == 'aisensy-key'
    assert sent['source'] == 'crm-test'
    assert sent['campaignName'] == 'class_registration_confirmation_copy'
    assert sent['destination'] == '919811111111'
    assert len(sent['templateParams']) == 5
    assert sent['buttons'] == []


def test_send_test_message_with_overrides(configured_app, client):
    upstream = _use(configured_app, Upstream())
    response = client.post(SEND_TEST, json={'destination': '917000000000', 'user_name': 'Ravi'})
    assert response.status_code == 200
    sent = json.loads(upstream.requests[0].content)
    assert sent['destination'] == '917000000000'
    assert sent['userName'] == 'Ravi'
    assert sent['templateParams'][0] == 'Ravi'


def test_upstream_rejection_is_reported(configured_app, client):
    _use(configured_app, Upstream(status_code=400, body='invalid campaign'))
    response = client.post(SEND_TEST)
    assert response.status_code == 500
    assert response.json() == {'error': 'WhatsApp API error', 'status': 400, 'details': 'invalid campaign'}
    _assert_cors(response)


def test_transport_failure_is_internal_error(configured_app, client):
    _use(configured_app, Upstream(error=httpx.ConnectError('connection refused')))
    response = client.post(SEND_TEST)
    assert response.status_code == 500
    assert response.json()['error'] == 'Internal server error'
    assert 'connection refused' in response.json()['details']


def test_list_agents_requires_auth(client):
    response = client.get(LIST_AGENTS)
    assert response.status_code == 401
    assert response.json() == {'error': 'Unauthorized'}
    _assert_cors(response)

    bad = client.get(LIST_AGENTS, headers={'Authorization': 'Bearer not-a-jwt'})
    assert bad.status_code == 401


def test_list_agents_without_membership(client, auth_headers):
    response = client.get(LIST_AGENTS, headers=auth_headers(uuid.uuid4()))
    assert response.status_code == 400
    assert response.json() == {'error': 'No organization found'}


def test_list_agents_not_configured(app, client, app_seed, auth_headers):
    upstream = _use(app, Upstream())
    org = app_seed.organization()
    user_id = app_seed.member(org)

    response = client.get(LIST_AGENTS, headers=auth_headers(user_id))
    assert response.status_code == 200
    assert response.json()['error'] == 'bolna_not_configured'

    app_seed.integration(org, 'bolna', config={})
    response = client.post(LIST_AGENTS, headers=auth_headers(user_id))
    assert response.json() == {'error': 'bolna_not_configured', 'message': 'Bolna API key is missing.'}
    assert upstream.requests == []


def test_inactive_integration_is_ignored(app, client, app_seed, auth_headers):
    org = app_seed.organization()
    user_id = app_seed.member(org)
    app_seed.integration(org, 'bolna', config={'api_key': 'k'}, is_active=False)
    response = client.get(LIST_AGENTS, headers=auth_headers(user_id))
    assert response.json()['error'] == 'bolna_not_configured'


def test_list_agents(app, client, app_seed, auth_headers):
    agents = [
        {'id': 'a1', 'agent_name': 'Reminder'},
        {'agent_id': 'a2', 'name': 'Follow up'},
        {'id': 'a3'},
    ]
    upstream = _use(app, Upstream(body=json.dumps(agents)))
    org = app_seed.organization()
    user_id = app_seed.member(org)
    app_seed.integration(org, 'bolna', config={'api_key': 'bolna-key'})

    response = client.get(LIST_AGENTS, headers=auth_headers(user_id))

    assert response.status_code == 200
    assert response.json() == {
        'agents': [
            {'id': 'a1', 'name': 'Reminder'},
            {'id': 'a2', 'name': 'Follow up'},
            {'id': 'a3', 'name': 'Unnamed Agent'},
        ]
    }
    _assert_cors(response)
    request = upstream.requests[0]
    assert str(request.url) == 'https://api.bolna.ai/v2/agent/all'
    assert request.headers['authorization'] == 'Bearer bolna-key'
    assert len(upstream.requests) == 1


def test_list_agents_upstream_failure_is_not_retried(app, client, app_seed, auth_headers):
    upstream = _use(app, Upstream(status_code=503, body='maintenance'))
    org = app_seed.organization()
    user_id = app_seed.member(org)
    app_seed.integration(org, 'bolna', config={'api_key': 'bolna-key'})

    response = client.get(LIST_AGENTS, headers=auth_headers(user_id))

    assert response.status_code == 500
    assert response.json() == {
        'error': 'Failed to fetch agents from Bolna',
        'status': 503,
        'details': 'maintenance',
    }
    assert len(upstream.requests) == 1


def test_normalize_agents_ignores_non_lists():
    assert normalize_agents({'agents': []}) == []
    assert normalize_agents(['x', {'id': 1}]) == [{'id': 1, 'name': 'Unnamed Agent'}]
