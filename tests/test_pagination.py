from __future__ import annotations

import pytest
import requests

from milesync.errors import CollectionError, NetworkError
from milesync.pagination import fetch_all

BASE = "https://gitlab.example.com/api/v4/projects/1/milestones?state=active"


def _page(n: int) -> str:
    return f"{BASE}&page={n}"


def test_follows_next_links_until_exhausted(make_session, response):
    pages = [
        response(200, [{"id": 1}], link=f'<{_page(2)}>; rel="next", <{_page(3)}>; rel="last"'),
        response(200, [{"id": 2}], link=f'<{_page(3)}>; rel="next", <{BASE}>; rel="first"'),
        response(200, [{"id": 3}], link=f'<{BASE}>; rel="first"'),
    ]
    session = make_session(list(pages))

    bodies = fetch_all(session, BASE, token="tkn")

    assert bodies == [p.content for p in pages]
    assert [entry[1] for entry in session.request_log] == [BASE, _page(2), _page(3)]
    assert all(p.closed for p in pages)


def test_sends_auth_header_and_method(make_session, response):
    session = make_session([response(200, [])])

    fetch_all(session, BASE, token="secret", method="GET", auth_header="Authorization", timeout=5)

    method, url, kwargs = session.request_log[0]
    assert method == "GET"
    assert url == BASE
    assert kwargs["headers"] == {"Authorization": "secret"}
    assert kwargs["timeout"] == 5


def test_error_status_bodies_are_still_collected(make_session, response):
    session = make_session([response(401, {"message": "401 Unauthorized"})])

    bodies = fetch_all(session, BASE, token="bad")

    assert bodies == [b'{"message": "401 Unauthorized"}']


def test_cycle_in_next_links_raises_collection_error(make_session, response):
    pages = [
        response(200, [{"id": 1}], link=f'<{_page(2)}>; rel="next"'),
        response(200, [{"id": 2}], link=f'<{BASE}>; rel="next"'),
    ]
    session = make_session(list(pages))

    with pytest.raises(CollectionError):
        fetch_all(session, BASE, token="tkn")
    assert len(session.request_log) == 2
    assert all(p.closed for p in pages)


def test_self_referencing_next_link_raises(make_session, response):
    session = make_session([response(200, [], link=f'<{BASE}>; rel="next"')])

    with pytest.raises(CollectionError):
        fetch_all(session, BASE, token="tkn")


def test_transport_failure_becomes_network_error(make_session, response):
    session = make_session(
        [
            response(200, [{"id": 1}], link=f'<{_page(2)}>; rel="next"'),
            requests.ConnectionError("connection reset by peer"),
        ]
    )

    with pytest.raises(NetworkError) as excinfo:
        fetch_all(session, BASE, token="tkn")
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)
