import pytest
from fastapi.testclient import TestClient

from entity_extractor import api
from entity_extractor.errors import ServiceError
from entity_extractor.extractor import EntityExtractor

from conftest import StubCapability, make_pdf


@pytest.fixture
def capability(sample_payload):
    return StubCapability(sample_payload)


@pytest.fixture
def client(monkeypatch, capability):
    monkeypatch.setattr(api, "entity_extractor", EntityExtractor(capability))
    monkeypatch.setattr(api, "sessions", {})
    return TestClient(api.app)


def new_session(client: TestClient) -> str:
    response = client.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def upload_text(client: TestClient, session_id: str, text: str = "PAN ABCDE1234F RAMESH KUMAR"):
    return client.post(
        f"/sessions/{session_id}/document",
        files={"document": ("doc.txt", text.encode("utf-8"), "text/plain")},
    )


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["extractor_initialized"] is True


def test_extract_export_and_verify(client):
    session_id = new_session(client)
    upload = upload_text(client, session_id)
    assert upload.status_code == 200
    assert upload.json()["text_length"] == len("PAN ABCDE1234F RAMESH KUMAR")

    extracted = client.post(f"/sessions/{session_id}/extract")
    assert extracted.status_code == 200
    assert extracted.json()[0] == {
        "pan": "ABCDE1234F",
        "relation": "PAN_Of",
        "entityName": "RAMESH KUMAR",
        "entityType": "Individual",
    }

    exported = client.get(f"/sessions/{session_id}/export")
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("text/csv")
    assert 'filename="extracted_entities.csv"' in exported.headers["content-disposition"]
    assert exported.text.splitlines()[0] == "PAN,Relation,Entity Name,Entity Type"

    ground_truth = b'Entity Name,PAN,Entity Type\n"SHREE GANESH TRADERS",PQRSX6789K,Organisation\nOTHER,ZZZZZ0000Z,Individual'
    verified = client.post(
        f"/sessions/{session_id}/verify",
        files={"ground_truth": ("truth.csv", ground_truth, "text/csv")},
    )
    assert verified.status_code == 200
    body = verified.json()
    assert body["summary"] == {"matches": 1, "extractor_only": 1, "ground_truth_only": 1}
    assert body["matches"][0]["pan"] == "PQRSX6789K"
    assert body["ground_truth_only"][0]["entityName"] == "OTHER"


def test_pdf_upload(client):
    session_id = new_session(client)

    response = client.post(
        f"/sessions/{session_id}/document",
        files={"document": ("doc.pdf", make_pdf(["page one", "page two"]), "application/pdf")},
    )

    assert response.status_code == 200
    assert response.json()["mime_type"] == "application/pdf"


def test_unsupported_document_is_415(client):
    session_id = new_session(client)

    response = client.post(
        f"/sessions/{session_id}/document",
        files={"document": ("doc.docx", b"PK", "application/vnd.openxmlformats-officedocument.wordprocessingml.document")},
    )

    assert response.status_code == 415
    assert "Unsupported file type" in response.json()["detail"]


def test_unreadable_pdf_is_422(client):
    session_id = new_session(client)

    response = client.post(
        f"/sessions/{session_id}/document",
        files={"document": ("doc.pdf", b"garbage", "application/pdf")},
    )

    assert response.status_code == 422


def test_extract_without_document_is_409(client):
    session_id = new_session(client)

    assert client.post(f"/sessions/{session_id}/extract").status_code == 409
    assert client.get(f"/sessions/{session_id}/export").status_code == 409


def test_service_errors_are_502(client, capability):
    session_id = new_session(client)
    upload_text(client, session_id)

    capability.payload = ""
    assert client.post(f"/sessions/{session_id}/extract").status_code == 502

    capability.payload = "{not json"
    assert client.post(f"/sessions/{session_id}/extract").status_code == 502

    capability.error = TimeoutError("slow")
    response = client.post(f"/sessions/{session_id}/extract")
    assert response.status_code == 502
    assert response.json()["detail"] == str(ServiceError(
        "Failed to extract entities from the document. The AI model returned an error."
    ))


def test_missing_columns_is_400(client):
    session_id = new_session(client)
    upload_text(client, session_id)
    client.post(f"/sessions/{session_id}/extract")

    response = client.post(
        f"/sessions/{session_id}/verify",
        files={"ground_truth": ("truth.csv", b"PAN,Entity Name\nA,B", "text/csv")},
    )

    assert response.status_code == 400
    assert "Entity Type" in response.json()["detail"]


def test_unknown_session_is_404(client):
    assert client.post("/sessions/nope/extract").status_code == 404


def test_delete_session(client):
    session_id = new_session(client)

    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.post(f"/sessions/{session_id}/extract").status_code == 404


def test_create_session_without_extractor_is_500(monkeypatch):
    monkeypatch.setattr(api, "entity_extractor", None)

    response = TestClient(api.app).post("/sessions")

    assert response.status_code == 500


def test_content_type_parameters_are_ignored(client):
    session_id = new_session(client)

    response = client.post(
        f"/sessions/{session_id}/document",
        files={"document": ("d.txt", b"hello", "text/plain; charset=utf-8")},
    )

    assert response.status_code == 200
    assert response.json()["mime_type"] == "text/plain"


def test_oldest_session_is_evicted_at_the_limit(client, monkeypatch):
    monkeypatch.setattr(api.config, "MAX_SESSIONS", 2)
    first = new_session(client)
    second = new_session(client)
    api.sessions[first].last_used -= 1

    third = new_session(client)

    assert set(api.sessions) == {second, third}
    assert client.post(f"/sessions/{first}/extract").status_code == 404


def test_idle_sessions_expire(client, monkeypatch):
    monkeypatch.setattr(api.config, "SESSION_IDLE_SECONDS", 60)
    stale = new_session(client)
    fresh = new_session(client)
    api.sessions[stale].last_used -= 3600

    new_session(client)

    assert stale not in api.sessions
    assert fresh in api.sessions
