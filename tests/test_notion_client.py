"""Tests for the Notion REST client using a stubbed HTTP session."""

from unittest.mock import MagicMock

import pytest
import requests

from notion_markdown_mirror.notion_client import NotionApiError, NotionClient


def make_response(status=200, body=None, text=''):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    if body is None:
        response.json.side_effect = ValueError('No JSON')
    else:
        response.json.return_value = body
    response.text = text
    return response


@pytest.fixture
def session():
    session = requests.Session()
    session.request = MagicMock()
    return session


@pytest.fixture
def client(session):
    return NotionClient('secret', session=session, timeout=5)


class TestNotionClient:
    """Requests and error translation."""

    def test_requires_token(self):
        with pytest.raises(ValueError):
            NotionClient('')

    def test_headers(self, client, session):
        assert session.headers['Authorization'] == 'Bearer secret'
        assert session.headers['Notion-Version'] == '2022-06-28'

    def test_get_page(self, client, session):
        session.request.return_value = make_response(body={'object': 'page', 'id': 'p1'})

        assert client.get_page('p1') == {'object': 'page', 'id': 'p1'}
        session.request.assert_called_once_with('GET', 'https://api.notion.com/v1/pages/p1', timeout=5)
        assert client.request_count == 1

    def test_list_block_children_params(self, client, session):
        session.request.return_value = make_response(body={'results': [], 'has_more': False})

        client.list_block_children('b1')
        client.list_block_children('b1', start_cursor='cursor-2', page_size=50)

        first, second = session.request.call_args_list
        assert first.kwargs['params'] == {'page_size': 100}
        assert second.kwargs['params'] == {'page_size': 50, 'start_cursor': 'cursor-2'}
        assert first.args[1] == 'https://api.notion.com/v1/blocks/b1/children'

    def test_api_error_body(self, client, session):
        session.request.return_value = make_response(
            status=429, body={'object': 'error', 'status': 429, 'code': 'rate_limited', 'message': 'Slow down'}
        )

        with pytest.raises(NotionApiError) as exc_info:
            client.get_page('p1')

        assert exc_info.value.code == 'rate_limited'
        assert exc_info.value.status == 429
        assert str(exc_info.value) == 'Slow down code=rate_limited status=429'

    def test_non_json_error(self, client, session):
        session.request.return_value = make_response(status=502, text='<html>Bad gateway</html>')

        with pytest.raises(NotionApiError) as exc_info:
            client.get_page('p1')

        assert exc_info.value.code == 'response_error'
        assert exc_info.value.status == 502

    def test_timeout(self, client, session):
        session.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(NotionApiError) as exc_info:
            client.get_page('p1')

        assert exc_info.value.code == 'request_timeout'

    def test_connection_error(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError('refused')

        with pytest.raises(NotionApiError) as exc_info:
            client.get_page('p1')

        assert exc_info.value.code == 'connection_error'

    def test_from_config(self):
        client = NotionClient.from_config({'notion': {'token': 't', 'base_url': 'https://example.test/v1',
                                                      'request_timeout': 12}})

        assert client.base_url == 'https://example.test/v1/'
        assert client.timeout == 12
