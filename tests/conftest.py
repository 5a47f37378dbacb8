import json

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from bimqa.core.errors import ReasoningError
from bimqa.core.read_only_db_executor import ReadOnlyDbExecutor

URN = "urn:adsk.objects:os.object:bucket/house.rvt"
OTHER_URN = "urn:adsk.objects:os.object:bucket/office.rvt"

SCHEMA = """
CREATE TABLE elements (
    id INTEGER PRIMARY KEY,
    urn TEXT NOT NULL,
    guid TEXT,
    db_id INTEGER,
    name TEXT,
    component_type TEXT,
    type_name TEXT,
    family_name TEXT,
    level_number TEXT,
    room_name TEXT,
    room_type TEXT,
    system_type TEXT,
    system_name TEXT,
    manufacturer TEXT,
    model_name TEXT,
    omniclass_title TEXT,
    omniclass_number TEXT,
    props_flat TEXT
)
"""

# (id, urn, name, component_type, type_name, level_number, room_name, props_flat)
ELEMENTS = [
    (1, URN, "Door 1", "Doors", "Single Flush 900", "Level 1", "Lobby", {"Dimensions.Area": 1.8, "Dimensions.Width": 900}),
    (2, URN, "Door 2", "Doors", "Single Flush 900", "Level 1", "Office", None),
    (3, URN, "Door 3", "Doors", "Double Glass 1800", "Level 2", "Office", "{not json"),
    (4, URN, "Door 4", "Doors", "Single Flush 900", "Level 2", None, None),
    (5, URN, "Door 5", "Doors", " Single Flush 900 ", "Level 3", None, None),
    (6, URN, "Window 1", "Windows", "Fixed 1200", "Level 1", "Lobby", None),
    (7, URN, "Window 2", "Windows", "Fixed 1200", "Level 2", None, {"Identity.Area": "2,4 m²"}),
    (8, URN, "Wall 1", "Walls", "Basic Wall 200", "Level 1", None, {"Dimensions.Area": "12.5", "Dimensions.Volume": "2,5 m³"}),
    (9, URN, "Wall 2", "Walls", "Basic Wall 200", "Level 1", None, {"Dimensions.Area": "10,5 m²", "Dimensions.Volume": 1.5}),
    (10, URN, "Wall 3", "Walls", "Basic Wall 300", "Level 2", None, {"Dimensions.Area": "abc"}),
    (11, URN, "Wall 4", "Walls", "Basic Wall 300", "Level 2", None, {"Dimensions.Area": 7}),
    (12, URN, "Slab 1", " Floors ", "Generic 300", "Level 1", None, {"Dimensions.Area": "120 m2", "Computed Volume": "24 m3"}),
    (13, URN, "Blank", "", None, None, None, None),
    (14, URN, "Unclassified", None, None, None, None, "[1, 2]"),
    (15, OTHER_URN, "Door B", "Doors", "Single Flush 900", "Level 1", None, {"Dimensions.Area": 2.0}),
    (16, OTHER_URN, "Roof B", "Roofs", "Basic Roof", "Roof", None, None),
]


def _insert(conn, rows):
    for (eid, urn, name, comp, type_name, level, room, props) in rows:
        conn.execute(
            text(
                "INSERT INTO elements (id, urn, guid, db_id, name, component_type, type_name, family_name, "
                "level_number, room_name, props_flat) "
                "VALUES (:id, :urn, :guid, :db_id, :name, :comp, :type_name, :family, :level, :room, :props)"
            ),
            {
                "id": eid, "urn": urn, "guid": f"guid-{eid}", "db_id": 1000 + eid, "name": name,
                "comp": comp, "type_name": type_name, "family": (comp or "").strip() or None,
                "level": level, "room": room,
                "props": json.dumps(props) if isinstance(props, dict) else props,
            },
        )


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with eng.begin() as conn:
        conn.execute(text(SCHEMA))
        _insert(conn, ELEMENTS)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine):
    return ReadOnlyDbExecutor(engine=engine, default_limit=5000, statement_timeout_ms=1000)


class FakeReasoning:
    """Scripted stand-in for GeminiClient: JSON replies are consumed in order."""

    def __init__(self, json_replies=None, text_reply="answer"):
        self.json_replies = list(json_replies or [])
        self.text_reply = text_reply
        self.json_prompts = []
        self.text_prompts = []

    def complete_json(self, prompt, *, temperature=0.1):
        self.json_prompts.append(prompt)
        if not self.json_replies:
            raise ReasoningError("no scripted reply left")
        reply = self.json_replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def complete_text(self, prompt, *, temperature=0.2):
        self.text_prompts.append(prompt)
        if isinstance(self.text_reply, Exception):
            raise self.text_reply
        return self.text_reply


class FakeEmbedder:
    def __init__(self, vector=None, error=None):
        self.vector = [0.1, 0.2, 0.3] if vector is None else vector
        self.error = error
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return self.vector


class FakeIndex:
    def __init__(self, ids=None, error=None):
        self.ids = list(ids or [])
        self.error = error
        self.calls = []

    def nearest_element_ids(self, urn, vector, top_k):
        self.calls.append((urn, vector, top_k))
        if self.error:
            raise self.error
        return self.ids[:top_k]


@pytest.fixture()
def fake_reasoning():
    return FakeReasoning()
