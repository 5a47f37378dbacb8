from types import SimpleNamespace

from bimqa.core.element_index import ensure_index
from bimqa.core.embedding_engine import BatchEmbedding, Embedding
from bimqa.jobs import index_elements
from bimqa.jobs.index_elements import element_text, index_batch

from conftest import URN


class FakeBatchEmbedder:
    def __init__(self, vectors):
        self.vectors = vectors
        self.texts = []

    def get_batch_embeddings(self, texts):
        self.texts.extend(texts)
        return BatchEmbedding(embeddings=[Embedding(values=v) for v in self.vectors])


class FakeRepo:
    def __init__(self):
        self.items = []

    def upsert_elements(self, items):
        self.items.extend(items)
        return len(items)


ROW = {
    "id": 7, "urn": "urn:a", "name": "Door 7", "component_type": "Doors",
    "type_name": " Single Flush 900 ", "level_number": "Level 1", "room_name": "",
    "manufacturer": None,
}


def test_element_text_lists_present_fields():
    text = element_text(ROW)
    assert text.splitlines() == ["Door 7", "Category: Doors", "Type: Single Flush 900", "Level: Level 1"]


def test_index_batch_skips_empty_vectors():
    rows = [ROW, {**ROW, "id": 8, "name": "Door 8"}]
    embedder = FakeBatchEmbedder([[0.1, 0.2], []])
    repo = FakeRepo()
    assert index_batch(embedder, repo, rows) == 1
    assert repo.items == [{
        "urn": "urn:a", "element_id": 7, "embedding": [0.1, 0.2],
        "metadata": {"component_type": "Doors"},
    }]
    assert len(embedder.texts) == 2


class FakePinecone:
    def __init__(self, events, existing=()):
        self.events = events
        self.existing = list(existing)

    def list_indexes(self):
        return [SimpleNamespace(name=n) for n in self.existing]

    def create_index(self, name, dimension, metric, spec):
        self.events.append(("create", name, dimension))
        self.existing.append(name)


def test_ensure_index_creates_only_missing_indexes():
    events = []
    pc = FakePinecone(events, existing=["other"])
    assert ensure_index(pc, "elements", dimension=768) is True
    assert ensure_index(pc, "elements", dimension=768) is False
    assert events == [("create", "elements", 768)]


def test_job_creates_index_before_opening_it(monkeypatch, engine):
    events = []

    class RecordingRepo(FakeRepo):
        def __init__(self, api_key, index_name, namespace=None):
            super().__init__()
            events.append(("open", index_name))

    class SizedEmbedder(FakeBatchEmbedder):
        def get_batch_embeddings(self, texts):
            self.texts.extend(texts)
            return BatchEmbedding(embeddings=[Embedding(values=[0.1, 0.2]) for _ in texts])

    settings = SimpleNamespace(
        PINECONE_API_KEY="pk", PINECONE_INDEX="elements", PINECONE_NAMESPACE=None,
        DB_URL_RO="sqlite://", GEMINI_API_KEY="gk", GEMINI_EMBED_MODEL="embedding-001", EMBED_DIM=2,
    )
    repos = []

    def open_repo(**kw):
        repo = RecordingRepo(**kw)
        repos.append(repo)
        return repo

    monkeypatch.setattr(index_elements, "Settings", lambda: settings)
    monkeypatch.setattr(index_elements, "create_engine", lambda url: engine)
    monkeypatch.setattr(index_elements, "GeminiEmbeddingEngine", lambda **kw: SizedEmbedder([]))
    monkeypatch.setattr(index_elements, "Pinecone", lambda api_key: FakePinecone(events))
    monkeypatch.setattr(index_elements, "PineconeElementIndex", open_repo)

    index_elements.main(URN)

    assert events == [("create", "elements", 2), ("open", "elements")]
    assert sorted(it["element_id"] for it in repos[0].items) == list(range(1, 15))
