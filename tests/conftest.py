import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Créer engine SQLite pour tests AVANT d'importer app
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: remplacer le engine et SessionLocal du core.database AVANT d'importer app
import app.core.database
app.core.database.engine = test_engine
app.core.database.SessionLocal = TestingSessionLocal

# Maintenant importer app (qui utilisera notre engine SQLite)
from app.core.database import Base, get_db
from app.main import app
from app.services.notion_client import get_notion_client
from fakes import FakeNotion, raw_block, raw_page

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)

# Override la dépendance
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def notion():
    """Source Notion en mémoire branchée sur l'app"""
    fake = FakeNotion()
    app.dependency_overrides[get_notion_client] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_notion_client, None)


@pytest.fixture
def client(notion):
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def draft_page(notion):
    """Un post en draft avec quelques blocks"""
    return notion.add_page(
        raw_page("page-1", title="Draft post", slug="draft-post", status="Draft"),
        [
            raw_block("b1", "paragraph", "The quick ", "brown fox"),
            raw_block("b2", "heading_2", "Section"),
            raw_block("b3", "bulleted_list_item", "Item"),
        ],
    )


@pytest.fixture
def draft_token(client, draft_page):
    """Demande un token pour le draft et le retourne"""
    response = client.post("/api/draft/draft-post/token", json={})
    return response.json()["token"]
