from fastapi.testclient import TestClient
from codepage_normalizer.main import app

client = TestClient(app)

def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["ok"] is True
    assert data["substitutions"] > 0

def test_normalize_text():
    r = client.post("/normalize", json={"raw_text": "L&apos;Oréal & Co"})
    assert r.status_code == 200

    data = r.json()
    assert data["result"]["processed_text"] == "LOreal et Co"
    assert data["mode"] == "text"
    assert data["channel"] == "plain"
    assert data["stats"]["had_non_ascii_input"] is True
    assert data["stats"]["transformation_applied"] is True
    assert data["stats"]["codepage_safe"] is True

def test_normalize_identifier_mode():
    r = client.post("/normalize", json={"raw_text": "Réf 123-A", "mode": "identifier"})
    assert r.status_code == 200
    assert r.json()["result"]["processed_text"] == "REF_123-A"

def test_normalize_markup_channel():
    r = client.post(
        "/normalize",
        json={"raw_text": "Taille <XL>", "mode": "display_name", "channel": "markup"},
    )
    assert r.status_code == 200
    assert r.json()["result"]["processed_text"] == "Taille &lt;XL&gt;"

def test_normalize_rejects_negative_max_length():
    r = client.post("/normalize", json={"raw_text": "abc", "max_length": -1})
    assert r.status_code == 422

def test_normalize_rejects_unknown_channel():
    r = client.post("/normalize", json={"raw_text": "abc", "channel": "edi"})
    assert r.status_code == 422

def test_normalize_empty_text():
    r = client.post("/normalize", json={})
    assert r.status_code == 200
    data = r.json()
    assert data["result"]["processed_text"] == ""
    assert data["stats"]["transformation_applied"] is False

def test_upload_utf8_bom_text():
    # BOM must not leak into the value
    raw = "Crème & Soin".encode("utf-8-sig")

    files = {"file": ("notes.txt", raw, "text/plain")}
    r = client.post("/normalize/upload", files=files, params={"mode": "display_name"})
    assert r.status_code == 200

    data = r.json()
    assert data["result"]["processed_text"] == "Creme et Soin"
    assert data["stats"]["original_length"] == len("Crème & Soin")

def test_upload_rejects_non_text_file():
    files = {"file": ("data.csv", b"a,b\n", "text/csv")}
    r = client.post("/normalize/upload", files=files)
    assert r.status_code == 422

def test_normalize_lone_surrogate():
    # the engine keeps the surrogate; the JSON response must still encode
    r = client.post(
        "/normalize",
        content=b'{"raw_text": "bad \\ud800 x"}',
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 200

    data = r.json()
    assert data["result"]["processed_text"] == "bad ? x"
    assert data["stats"]["codepage_safe"] is False
