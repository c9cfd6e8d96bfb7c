import json
from unittest import mock

import pytest
import requests
from django.test import Client
from django.urls import reverse

from sheetrows.tests.conftest import SCRIPT_URL, make_response
from sheetrows.utils.errors import (
    AuthError, ForbiddenError, NetworkError, ParseError, ValidationError,
)
from sheetrows.utils.api_tokens import issue_token, user_from_token
from sheetrows.utils.update_proxy import forward_update

OK_BODY = '{"success": true}'


def payload(**overrides):
    body = {"scriptUrl": SCRIPT_URL, "rowIndex": 2, "data": ["bob@x.com", "Bob", "ig"]}
    body.update(overrides)
    return body


def script_session(text=OK_BODY, exc=None):
    session = mock.Mock()
    if exc is not None:
        session.post.side_effect = exc
    else:
        session.post.return_value = make_response(text)
    return session


# ==============================================================
# forward_update()
# ==============================================================

def test_forwards_row_and_returns_script_result(settings):
    settings.SCRIPT_POST_TIMEOUT = 7
    session = script_session('{"success": true, "updated": 3}')

    result = forward_update(payload(), "bob@x.com", session=session)

    assert result == {"success": True, "updated": 3}
    session.post.assert_called_once_with(
        SCRIPT_URL, json={"rowIndex": 2, "data": ["bob@x.com", "Bob", "ig"]}, timeout=7,
    )


def test_owner_check_ignores_case_and_whitespace():
    session = script_session()
    forward_update(payload(data=["Bob@X.com ", "Bob"]), " BOB@x.com", session=session)
    assert session.post.call_count == 1


def test_anonymous_caller_is_rejected_before_any_call():
    session = script_session()
    with pytest.raises(AuthError):
        forward_update(payload(), None, session=session)
    session.post.assert_not_called()


@pytest.mark.parametrize("missing", ["scriptUrl", "rowIndex", "data"])
def test_missing_field_is_rejected_before_any_call(missing):
    body = payload()
    del body[missing]
    session = script_session()

    with pytest.raises(ValidationError):
        forward_update(body, "bob@x.com", session=session)
    session.post.assert_not_called()


@pytest.mark.parametrize("bad", [
    {"rowIndex": 1},
    {"rowIndex": "2"},
    {"rowIndex": True},
    {"rowIndex": 2.5},
    {"rowIndex": 1.0},
    {"data": "bob@x.com,Bob"},
])
def test_malformed_fields_are_rejected(bad):
    session = script_session()
    with pytest.raises(ValidationError):
        forward_update(payload(**bad), "bob@x.com", session=session)
    session.post.assert_not_called()


def test_whole_number_float_row_index_is_accepted():
    session = script_session()
    forward_update(payload(rowIndex=2.0), "bob@x.com", session=session)

    sent = session.post.call_args.kwargs["json"]
    assert sent["rowIndex"] == 2
    assert type(sent["rowIndex"]) is int


def test_non_object_body_is_rejected():
    with pytest.raises(ValidationError):
        forward_update(["bob@x.com"], "bob@x.com", session=script_session())


def test_someone_elses_row_is_forbidden():
    session = script_session()
    with pytest.raises(ForbiddenError):
        forward_update(payload(data=["alice@x.com", "Alice"]), "bob@x.com", session=session)
    session.post.assert_not_called()


def test_unparseable_script_response():
    with pytest.raises(ParseError) as exc:
        forward_update(payload(), "bob@x.com", session=script_session("<html>oops</html>"))
    assert exc.value.message == "Invalid response from script"


def test_non_object_script_response():
    with pytest.raises(ParseError):
        forward_update(payload(), "bob@x.com", session=script_session("[1, 2]"))


def test_unreachable_script():
    session = script_session(exc=requests.Timeout("slow"))
    with pytest.raises(NetworkError):
        forward_update(payload(), "bob@x.com", session=session)
    assert session.post.call_count == 1


# ==============================================================
# POST /api/update-sheet/
# ==============================================================

def post_json(client, body, **extra):
    return client.post(reverse("update_sheet"), data=json.dumps(body), content_type="application/json", **extra)


@pytest.mark.django_db
def test_endpoint_success(bob_client):
    with mock.patch("sheetrows.utils.update_proxy.requests.post", return_value=make_response(OK_BODY)) as post:
        resp = post_json(bob_client, payload())

    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert resp["Access-Control-Allow-Origin"] == "*"
    assert post.call_count == 1


@pytest.mark.django_db
def test_endpoint_passes_script_failure_through(bob_client):
    body = '{"success": false, "error": "Exception: Range not found"}'
    with mock.patch("sheetrows.utils.update_proxy.requests.post", return_value=make_response(body)):
        resp = post_json(bob_client, payload())

    assert resp.status_code == 200
    assert resp.json() == {"success": False, "error": "Exception: Range not found"}


@pytest.mark.django_db
def test_endpoint_requires_sign_in(client):
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(client, payload())

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Unauthorized"}
    post.assert_not_called()


@pytest.mark.django_db
def test_endpoint_user_without_email_is_unauthorized(client, django_user_model):
    user = django_user_model.objects.create_user(username="no-mail", password="pw-secret-123")
    client.force_login(user)

    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(client, payload(data=["", "x"]))

    assert resp.status_code == 401
    post.assert_not_called()


@pytest.mark.django_db
def test_endpoint_missing_fields(bob_client):
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(bob_client, {"scriptUrl": SCRIPT_URL})

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    post.assert_not_called()


@pytest.mark.django_db
def test_endpoint_invalid_json(bob_client):
    resp = bob_client.post(reverse("update_sheet"), data="{not json", content_type="application/json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_endpoint_forbidden_for_other_owner(bob_client):
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(bob_client, payload(data=["alice@x.com", "Hacked"]))

    assert resp.status_code == 403
    assert resp.json() == {"success": False, "error": "You can only edit rows with your email address"}
    post.assert_not_called()


@pytest.mark.django_db
def test_endpoint_ignores_client_supplied_flags(bob_client):
    body = payload(data=["alice@x.com", "Hacked"], canEdit=True, skipOwnerCheck=True)
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(bob_client, body)

    assert resp.status_code == 403
    post.assert_not_called()


@pytest.mark.django_db
def test_endpoint_bad_script_response(bob_client):
    with mock.patch("sheetrows.utils.update_proxy.requests.post", return_value=make_response("not json")):
        resp = post_json(bob_client, payload())

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Invalid response from script"}


@pytest.mark.django_db
def test_endpoint_unexpected_error_surfaces_message(bob_client):
    with mock.patch("sheetrows.views.forward_update", side_effect=RuntimeError("boom")):
        resp = post_json(bob_client, payload())

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "boom"}


@pytest.mark.django_db
def test_endpoint_preflight(client):
    resp = client.options(reverse("update_sheet"))

    assert resp.status_code == 200
    assert resp.content == b""
    assert resp["Access-Control-Allow-Origin"] == "*"
    assert "content-type" in resp["Access-Control-Allow-Headers"]


@pytest.mark.django_db
def test_endpoint_rejects_get(bob_client):
    assert bob_client.get(reverse("update_sheet")).status_code == 405


# ==============================================================
# API callers (CSRF enforced, bearer tokens)
# ==============================================================

@pytest.fixture
def api_client():
    return Client(enforce_csrf_checks=True)


def bearer(token):
    return {"HTTP_AUTHORIZATION": f"Bearer {token}"}


@pytest.mark.django_db
def test_api_anonymous_caller_gets_json_401(api_client):
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(api_client, payload())

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Unauthorized"}
    assert resp["Access-Control-Allow-Origin"] == "*"
    post.assert_not_called()


@pytest.mark.django_db
def test_api_bearer_token_success(api_client, bob):
    with mock.patch("sheetrows.utils.update_proxy.requests.post", return_value=make_response(OK_BODY)) as post:
        resp = post_json(api_client, payload(), **bearer(issue_token(bob)))

    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert post.call_count == 1


@pytest.mark.django_db
def test_api_bearer_token_missing_fields(api_client, bob):
    resp = post_json(api_client, {"scriptUrl": SCRIPT_URL}, **bearer(issue_token(bob)))

    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.django_db
def test_api_bearer_token_other_owner_forbidden(api_client, bob):
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(api_client, payload(data=["alice@x.com", "x"]), **bearer(issue_token(bob)))

    assert resp.status_code == 403
    post.assert_not_called()


@pytest.mark.django_db
@pytest.mark.parametrize("token", ["not-a-token", "garbage:with:colons"])
def test_api_bad_token_is_unauthorized(api_client, token):
    resp = post_json(api_client, payload(), **bearer(token))
    assert resp.status_code == 401


@pytest.mark.django_db
def test_api_tampered_token_is_unauthorized(api_client, bob):
    resp = post_json(api_client, payload(), **bearer(issue_token(bob) + "x"))
    assert resp.status_code == 401


@pytest.mark.django_db
def test_api_expired_token_is_unauthorized(api_client, bob, settings):
    token = issue_token(bob)
    settings.API_TOKEN_MAX_AGE = -1
    assert user_from_token(token) is None
    assert post_json(api_client, payload(), **bearer(token)).status_code == 401


@pytest.mark.django_db
def test_api_token_of_inactive_user_is_unauthorized(api_client, bob):
    token = issue_token(bob)
    bob.is_active = False
    bob.save()
    assert post_json(api_client, payload(), **bearer(token)).status_code == 401


@pytest.mark.django_db
def test_api_bad_token_beats_valid_session(api_client, bob):
    api_client.force_login(bob)
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(api_client, payload(), **bearer("forged"))

    assert resp.status_code == 401
    post.assert_not_called()


@pytest.mark.django_db
def test_api_session_without_origin_is_accepted(api_client, bob):
    api_client.force_login(bob)
    with mock.patch("sheetrows.utils.update_proxy.requests.post", return_value=make_response(OK_BODY)):
        resp = post_json(api_client, payload())

    assert resp.status_code == 200


@pytest.mark.django_db
def test_api_session_same_origin_is_accepted(api_client, bob):
    api_client.force_login(bob)
    with mock.patch("sheetrows.utils.update_proxy.requests.post", return_value=make_response(OK_BODY)):
        resp = post_json(api_client, payload(), HTTP_ORIGIN="http://testserver")

    assert resp.status_code == 200


@pytest.mark.django_db
def test_api_session_cross_site_is_unauthorized(api_client, bob):
    api_client.force_login(bob)
    with mock.patch("sheetrows.utils.update_proxy.requests.post") as post:
        resp = post_json(api_client, payload(), HTTP_ORIGIN="https://evil.example")

    assert resp.status_code == 401
    post.assert_not_called()


@pytest.mark.django_db
def test_api_token_view_issues_usable_token(bob_client, bob, settings):
    resp = bob_client.get(reverse("api_token"))

    assert resp.status_code == 200
    body = resp.json()
    assert body["expires_in"] == settings.API_TOKEN_MAX_AGE
    assert user_from_token(body["token"]) == bob


@pytest.mark.django_db
def test_api_token_view_requires_login(client):
    resp = client.get(reverse("api_token"))
    assert resp.status_code == 302
