import pytest
from fastapi.testclient import TestClient

from pdf_rag.config import Settings
from pdf_rag.main import create_app

from conftest import PDF, EchoChatModel, KeywordEmbeddings, SlowEmbeddings, make_pdf


def upload(client, content, filename="facts.pdf", content_type=PDF):
    return client.post("/api/upload", files={"pdf": (filename, content, content_type)})


class TestUploadEndpoint:
    def test_upload_success(self, client, facts_pdf):
        response = upload(client, facts_pdf)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "PDF processed successfully"
        assert body["filename"] == "facts.pdf"
        assert body["chunks"] == 3

    def test_missing_file(self, client):
        response = client.post("/api/upload", data={"other": "field"})

        assert response.status_code == 400
        assert response.json()["error"] == "No PDF file uploaded"

    @pytest.mark.parametrize("filename,content_type", [
        ("notes.txt", "text/plain"),
        ("notes.pdf", "text/plain"),
        ("scan.pdf", "image/png"),
    ])
    def test_wrong_mime_type_rejected(self, client, embeddings, facts_pdf, filename, content_type):
        response = upload(client, facts_pdf, filename, content_type)

        assert response.status_code == 400
        assert response.json()["error"] == "Only PDF files are allowed"
        assert embeddings.document_calls == 0

    def test_text_file_declared_as_pdf_fails_parsing(self, client):
        response = upload(client, b"plain text pretending to be a PDF", "notes.txt", PDF)

        assert response.status_code == 500
        assert "Error processing PDF" in response.json()["error"]

    def test_empty_file(self, client):
        response = upload(client, b"")
        assert response.status_code == 400

    def test_oversized_file(self, client):
        response = upload(client, b"%PDF-" + b"0" * (1024 * 1024 + 1))

        assert response.status_code == 400
        assert "too large" in response.json()["error"]

    def test_embedding_failure(self, client, embeddings, facts_pdf):
        embeddings.fail_with = RuntimeError("embedding quota exceeded")
        response = upload(client, facts_pdf)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Embedding provider failed"
        assert "embedding quota exceeded" in body["details"]
        assert client.get("/api/session").status_code == 404


class TestChatEndpoint:
    def test_chat_before_upload(self, client):
        response = client.post("/api/chat", json={"question": "What is this?"})

        assert response.status_code == 400
        assert response.json()["error"] == "No PDF loaded. Please upload a PDF first."

    def test_upload_then_chat(self, client, facts_pdf):
        upload(client, facts_pdf)
        response = client.post("/api/chat", json={"question": "What is the capital of Freedonia?"})

        assert response.status_code == 200
        body = response.json()
        assert "Glimmerton" in body["answer"]
        assert body["sources"] == ["facts.pdf"]

    @pytest.mark.parametrize("payload", [{"question": 123}, {}, {"question": ""}, {"question": "  "}, ["question"]])
    def test_malformed_question(self, client, embeddings, chat_model, facts_pdf, payload):
        upload(client, facts_pdf)
        response = client.post("/api/chat", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid question format"
        assert embeddings.query_calls == 0
        assert chat_model.prompts == []

    def test_invalid_json_body(self, client, facts_pdf):
        upload(client, facts_pdf)
        response = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_generation_failure(self, test_settings, facts_pdf):
        app = create_app(
            test_settings,
            embeddings=KeywordEmbeddings(),
            chat_model=EchoChatModel(fail_with=RuntimeError("model overloaded")).runnable
        )
        with TestClient(app) as client:
            upload(client, facts_pdf)
            response = client.post("/api/chat", json={"question": "Capital?"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Error processing chat request"
        assert "model overloaded" in body["details"]

    def test_provider_timeout(self, facts_pdf):
        settings = Settings(google_api_key="", provider_timeout_seconds=0.05)
        app = create_app(settings, embeddings=SlowEmbeddings(delay=1.0), chat_model=EchoChatModel().runnable)
        with TestClient(app) as client:
            response = upload(client, facts_pdf)

        assert response.status_code == 500
        assert response.json()["error"] == "Embedding provider timed out"

    @pytest.mark.parametrize("debug,details", [
        (False, "An unexpected error occurred"),
        (True, "index corrupted"),
    ])
    def test_unexpected_error_is_internal_server_error(self, monkeypatch, facts_pdf, debug, details):
        def broken_retrieve(index, query, k):
            raise RuntimeError("index corrupted")

        monkeypatch.setattr("pdf_rag.services.vector_index.VectorIndex.retrieve", broken_retrieve)
        settings = Settings(google_api_key="", debug=debug)
        app = create_app(settings, embeddings=KeywordEmbeddings(), chat_model=EchoChatModel().runnable)
        with TestClient(app, raise_server_exceptions=False) as client:
            assert upload(client, facts_pdf).status_code == 200
            response = client.post("/api/chat", json={"question": "Capital?"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "details": details}


class TestSessionEndpoints:
    def test_session_info(self, client, facts_pdf):
        assert client.get("/api/session").status_code == 404

        upload(client, facts_pdf)
        body = client.get("/api/session").json()
        assert body["source"] == "facts.pdf"
        assert body["pages"] == 3

    def test_new_upload_replaces_session(self, client, facts_pdf):
        upload(client, facts_pdf)
        upload(client, make_pdf(["Completely unrelated recipe for soup."]), "soup.pdf")

        assert client.get("/api/session").json()["source"] == "soup.pdf"
        response = client.post("/api/chat", json={"question": "What is the capital of Freedonia?"})
        assert response.json()["sources"] == ["soup.pdf"]

    def test_failed_upload_keeps_session(self, client, facts_pdf):
        upload(client, facts_pdf)
        upload(client, b"garbage", "broken.pdf")

        assert client.get("/api/session").json()["source"] == "facts.pdf"

    def test_health(self, client, facts_pdf):
        assert client.get("/health").json()["document_loaded"] is False
        upload(client, facts_pdf)
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["document_loaded"] is True

    def test_root(self, client):
        assert client.get("/").json()["message"] == "PDF RAG API is running"


def test_missing_api_key_fails_startup():
    app = create_app(Settings(google_api_key=""))
    with pytest.raises(ValueError):
        with TestClient(app):
            pass
