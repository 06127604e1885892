"""
Shared fixtures: a tiny PDF writer and fake LangChain providers.
"""

import asyncio
import re
import zlib
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from langchain_core.embeddings import Embeddings
from langchain_core.runnables import RunnableLambda

from pdf_rag.config import Settings
from pdf_rag.main import create_app
from pdf_rag.services import ChatService, DocumentService, EmbeddingService, SlidingWindowTextSplitter

PDF = "application/pdf"


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(pages: List[str]) -> bytes:
    """Build a minimal valid PDF with one short line of Helvetica text per page."""
    page_count = len(pages)
    kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(page_count))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for i, text in enumerate(pages):
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>".encode()
        )
        if text:
            stream = f"BT /F1 12 Tf 50 700 Td ({_escape(text)}) Tj ET".encode("latin-1")
        else:
            stream = b"BT /F1 12 Tf 50 700 Td ET"
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return out


class KeywordEmbeddings(Embeddings):
    """Hashed bag-of-words vectors: texts sharing words point the same way."""

    def __init__(self, dimension: int = 256, fail_with: Optional[Exception] = None):
        self.dimension = dimension
        self.fail_with = fail_with
        self.document_calls = 0
        self.query_calls = 0

    def _vector(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[zlib.crc32(word.encode()) % self.dimension] += 1.0
        return vector

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls += 1
        if self.fail_with:
            raise self.fail_with
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        self.query_calls += 1
        if self.fail_with:
            raise self.fail_with
        return self._vector(text)


class GatedEmbeddings(KeywordEmbeddings):
    """Blocks on an event whenever the text contains ``trigger``."""

    def __init__(self, trigger: str, gate: asyncio.Event, **kwargs):
        super().__init__(**kwargs)
        self.trigger = trigger
        self.gate = gate
        self.waiting = 0

    async def _maybe_wait(self, texts: List[str]) -> None:
        if any(self.trigger in t for t in texts):
            self.waiting += 1
            await self.gate.wait()

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        await self._maybe_wait(texts)
        return self.embed_documents(texts)

    async def aembed_query(self, text: str) -> List[float]:
        await self._maybe_wait([text])
        return self.embed_query(text)


class SlowEmbeddings(KeywordEmbeddings):
    def __init__(self, delay: float, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        await asyncio.sleep(self.delay)
        return self.embed_documents(texts)

    async def aembed_query(self, text: str) -> List[float]:
        await asyncio.sleep(self.delay)
        return self.embed_query(text)


class EchoChatModel:
    """Records prompts and answers with the context block it was given."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.prompts: List[str] = []
        self.fail_with = fail_with
        self.runnable = RunnableLambda(self._respond)

    def _respond(self, prompt_value) -> str:
        text = prompt_value.to_string()
        self.prompts.append(text)
        if self.fail_with:
            raise self.fail_with
        context = text.split("Question:")[0]
        return "From the document: " + context.split("context:", 1)[-1].strip()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        google_api_key="",
        chunk_size=1000,
        chunk_overlap=200,
        retrieval_k=4,
        provider_timeout_seconds=5,
        max_file_size_mb=1,
    )


@pytest.fixture
def embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture
def chat_model() -> EchoChatModel:
    return EchoChatModel()


@pytest.fixture
def client(test_settings, embeddings, chat_model):
    app = create_app(test_settings, embeddings=embeddings, chat_model=chat_model.runnable)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def facts_pdf() -> bytes:
    return make_pdf([
        "The capital of Freedonia is Glimmerton.",
        "Freedonia exports violins and marmalade.",
        "Bananas ripen faster next to apples.",
    ])


def make_document_service(embeddings: Embeddings, chat_model=None, timeout: float = 5,
                          chunk_size: int = 1000, chunk_overlap: int = 200, k: int = 4) -> DocumentService:
    chat_model = chat_model or EchoChatModel()
    return DocumentService(
        embedding_service=EmbeddingService(embeddings, timeout),
        chat_service=ChatService(chat_model.runnable, timeout),
        text_splitter=SlidingWindowTextSplitter(chunk_size, chunk_overlap),
        retrieval_k=k,
    )
