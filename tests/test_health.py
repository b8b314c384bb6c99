"""Проверка подключения к БД, ожидание БД при старте и /health"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from food_order_service import database, main
from food_order_service.database import build_engine, check_connection


@pytest.fixture()
def broken_database(monkeypatch, tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'missing' / 'orders.db'}")
    monkeypatch.setattr(database, "SessionLocal", sessionmaker(bind=engine))
    yield
    engine.dispose()


class TestCheckConnection:
    def test_reachable_database(self):
        assert check_connection() is True

    def test_unreachable_database(self, broken_database):
        assert check_connection() is False


class TestWaitForDb:
    def test_retries_until_database_is_ready(self, monkeypatch):
        answers = iter([False, False, True])
        sleeps = []
        monkeypatch.setattr(main, "check_connection", lambda: next(answers))
        monkeypatch.setattr(main.time, "sleep", sleeps.append)

        assert main.wait_for_db(max_retries=5, delay=2) is True
        assert sleeps == [2, 2]

    def test_gives_up_after_max_retries(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr(main, "check_connection", lambda: False)
        monkeypatch.setattr(main.time, "sleep", sleeps.append)

        with pytest.raises(RuntimeError):
            main.wait_for_db(max_retries=3, delay=1)

        assert sleeps == [1, 1]


class TestHealthEndpoint:
    def test_healthy(self):
        response = TestClient(main.app).get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["database"] == "connected"
        assert data["kafka"] == "disabled"

    def test_database_down_is_503(self, broken_database):
        response = TestClient(main.app).get("/health")

        assert response.status_code == 503
