"""Tests for DatabaseManager units of work and availability checks."""

import pytest
from unittest.mock import MagicMock, patch
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from clustermigrate.core.db import DatabaseManager, Project, get_database_manager, wait_for_db
from clustermigrate.exceptions import ConfigError
from clustermigrate.setting import MigrationSettings
from clustermigrate.tests.helpers import count, make_db


class TestUnitOfWork:

    def test_commits_on_success(self):
        db = make_db()

        project_id = db.execute_transaction(lambda s: _add_project(s, "committed"))

        assert count(db, Project) == 1
        assert db.query(select(Project.name).where(Project.id == project_id))[0][0] == "committed"

    def test_rolls_back_on_error(self):
        db = make_db()

        def _unit_of_work(session):
            _add_project(session, "rolled-back")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            db.execute_transaction(_unit_of_work)

        assert count(db, Project) == 0

    def test_requires_url_or_engine(self):
        with pytest.raises(ValueError):
            DatabaseManager()


class TestFactory:

    def test_uses_settings_when_no_url(self):
        settings = MigrationSettings(database_url="sqlite://")
        with patch("clustermigrate.setting.get_settings", return_value=settings):
            db = get_database_manager()

        assert db.engine.url.drivername == "sqlite"

    def test_missing_url_in_settings(self):
        with patch("clustermigrate.setting.get_settings", return_value=MigrationSettings()):
            with pytest.raises(ConfigError):
                get_database_manager()


class TestWaitForDb:

    def test_available(self):
        assert wait_for_db(make_db(), retries=1) is True

    def test_retries_then_gives_up(self):
        db = MagicMock()
        db.engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

        with patch("clustermigrate.core.db.db.time.sleep") as sleep:
            assert wait_for_db(db, retries=3, delay=0.5) is False

        assert db.engine.connect.call_count == 3
        assert sleep.call_count == 2


def _add_project(session, name):
    project = Project(name=name)
    session.add(project)
    session.flush()
    return project.id
