"""
PDF RAG Backend Application

A single-document retrieval-augmented chat backend: upload one PDF,
then ask questions answered from its content.

Features:
- In-memory PDF processing (no file storage)
- Fixed-window chunking with exact overlap
- In-memory cosine-similarity vector index
- Google Gemini embeddings and chat through LangChain
- Serialized session replacement on upload
"""

__version__ = "1.0.0"
__description__ = "A single-document PDF question answering backend"
