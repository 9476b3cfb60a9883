import base64

from fastapi.testclient import TestClient
from csv_formatter.main import app

client = TestClient(app)

def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}

def test_convert_semicolon_latin1_to_tab_utf8():
    # Latin-1 input with an explicit encoding, re-encoded as UTF-8 on the way out
    raw = "name;city\nPaul;Montréal\n".encode("latin-1")

    files = {"file": ("test.csv", raw, "text/csv")}
    form = {
        "input_delimiter": "semicolon",
        "input_encoding": "latin-1",
        "output_delimiter": "tab",
        "output_quote_mode": "minimal",
    }
    r = client.post("/convert", files=files, data=form)
    assert r.status_code == 200

    data = r.json()
    assert data["converted_csv"]["encoding"] == "utf-8"
    out_text = base64.b64decode(data["converted_csv"]["content_b64"]).decode("utf-8")
    assert out_text == "name\tcity\nPaul\tMontréal\n"
    assert data["report"]["summary"]["records_written"] == 2

def test_convert_reports_ragged_records():
    files = {"file": ("test.csv", b"a,b,c\nd,e\n", "text/csv")}
    r = client.post("/convert", files=files, data={"cleaning_strategy": "drop"})
    assert r.status_code == 200

    report = r.json()["report"]
    assert report["summary"]["records_dropped"] == 1
    assert report["warnings"][0]["issue"] == "ragged_record"
    assert report["warnings"][0]["action"] == "dropped"

def test_convert_ragged_fail_is_422():
    files = {"file": ("test.csv", b"a,b,c\nd,e\n", "text/csv")}
    r = client.post("/convert", files=files)
    assert r.status_code == 422
    assert "Record 2 has 2 fields" in r.json()["detail"]

def test_convert_bad_token_is_422():
    files = {"file": ("test.csv", b"a\n", "text/csv")}
    r = client.post("/convert", files=files, data={"output_quote_mode": "sometimes"})
    assert r.status_code == 422
    assert "Unknown quote mode" in r.json()["detail"]

def test_convert_rejects_other_uploads():
    files = {"file": ("test.json", b"{}", "application/json")}
    r = client.post("/convert", files=files)
    assert r.status_code == 422
