from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from household_recipes.app.api.deps import get_db_session
from household_recipes.app.db import models
from household_recipes.app.db.base import Base
from household_recipes.app.main import create_app
from household_recipes.app.services import meal_plan_service, queue_service

WORKSPACE_ID = "ws-1"


@pytest.fixture(scope="session")
def engine():
    engine = create_engine("sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}, future=True)

    # let SQLAlchemy own BEGIN so services can commit and roll back inside savepoints
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        future=True,
        join_transaction_mode="create_savepoint",
    )
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def workspace_id():
    return WORKSPACE_ID


@pytest.fixture
def triggered(monkeypatch):
    """Record job triggers instead of talking to Redis."""
    calls = []

    def fake_trigger(job_type, job_id, payload):
        calls.append((job_type, job_id, payload))

    monkeypatch.setattr(queue_service, "trigger_job", fake_trigger)
    return calls


@pytest.fixture
def app(db_session, triggered):
    app = create_app()

    def override_db():
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def create_recipe(db, title, lines, workspace_id=WORKSPACE_ID, recipe_id=None):
    recipe = models.Recipe(id=recipe_id or f"recipe-{title.lower().replace(' ', '-')}", workspace_id=workspace_id, title=title)
    for position, text in enumerate(lines, start=1):
        recipe.ingredient_lines.append(models.IngredientLine(position=position, text=text))
    db.add(recipe)
    db.commit()
    return recipe


@pytest.fixture
def make_recipe(db_session):
    def _make(title, lines, workspace_id=WORKSPACE_ID, recipe_id=None):
        return create_recipe(db_session, title, lines, workspace_id=workspace_id, recipe_id=recipe_id)

    return _make


@pytest.fixture
def planned_week(db_session):
    """A week (w/c Monday 5 Jan 2026) with two recipes planned."""
    week = meal_plan_service.get_or_create_week(db_session, WORKSPACE_ID, date(2026, 1, 7))
    pasta = create_recipe(db_session, "Tomato Pasta", ["200 g pasta", "2 tomatoes", "1 tbsp olive oil", "Salt to taste"])
    curry = create_recipe(db_session, "Chickpea Curry", ["1 can chickpeas", "1 onion", "100 g pasta", "2 cups water"])
    meal_plan_service.add_meal(db_session, week, pasta.id, date(2026, 1, 5))
    meal_plan_service.add_meal(db_session, week, curry.id, date(2026, 1, 6))
    return week
