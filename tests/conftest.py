import json
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class FakeResponse:
    def __init__(self, status_code=200, body=""):
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)
        self.encoding = "utf-8"
        self.closed = False

    def json(self):
        return json.loads(self.text)

    def iter_content(self, chunk_size=1):
        data = self.text.encode(self.encoding)
        for i in range(0, len(data), chunk_size):
            yield data[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeWorksheet:
    def __init__(self):
        self.rows = []

    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))


@pytest.fixture
def worksheet(monkeypatch):
    ws = FakeWorksheet()
    monkeypatch.setattr("api.leads.get_worksheet", lambda: ws)
    return ws


@pytest.fixture(autouse=True)
def no_mail_key(monkeypatch):
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
