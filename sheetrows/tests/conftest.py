import pytest
import requests

from sheetrows.models import EditorSettings
from sheetrows.utils.csv_parser import parse_csv
from sheetrows.utils.table import Table

SCRIPT_URL = "https://script.google.com/macros/s/test-deployment/exec"

SHEET_CSV = (
    "Email,Name,IG Link\r\n"
    "Bob@X.com ,Bob,https://instagram.com/bob_the_builder\r\n"
    "alice@x.com,Alice,https://instagram.com/alice\r\n"
    "bob@x.com,\"Bob, again\",\r\n"
    "carol@x.com,Carol,\r\n"
)


def make_response(text, status=200):
    resp = requests.Response()
    resp.status_code = status
    resp._content = text.encode("utf-8")
    resp.encoding = "utf-8"
    return resp


@pytest.fixture
def sheet_table():
    return Table.from_records(parse_csv(SHEET_CSV))


@pytest.fixture
def bob(django_user_model):
    return django_user_model.objects.create_user(
        username="bob@x.com", email="bob@x.com", password="pw-secret-123"
    )


@pytest.fixture
def bob_client(client, bob):
    client.force_login(bob)
    return client


@pytest.fixture
def bob_script(bob):
    EditorSettings.objects.create(user=bob, script_url=SCRIPT_URL)
    return SCRIPT_URL
