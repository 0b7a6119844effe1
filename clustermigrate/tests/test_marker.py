"""Tests for MigratedMarker."""

import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError

from clustermigrate.core.db import Service
from clustermigrate.core.migration.marker import MigratedMarker
from clustermigrate.exceptions import MarkerFailure
from clustermigrate.tests.helpers import (
    add_kubernetes_service,
    add_project,
    load,
    make_db,
    make_encryptor,
)


class TestMigratedMarker:

    def test_deactivates_and_flags(self):
        db, enc = make_db(), make_encryptor()
        project_id = add_project(db)
        service_id = add_kubernetes_service(
            db, enc, project_id, extra_properties={"custom": "keep-me"},
        )
        before = load(db, Service, service_id).properties_bag

        MigratedMarker(db).mark(service_id)

        service = load(db, Service, service_id)
        assert service.active is False
        bag = service.properties_bag
        assert bag["migrated"] is True
        # Every pre-existing key survives the merge
        for key, value in before.items():
            assert bag[key] == value

    def test_flag_keeps_api_url_searchable(self):
        db, enc = make_db(), make_encryptor()
        project_id = add_project(db)
        service_id = add_kubernetes_service(db, enc, project_id, api_url="https://h1")

        MigratedMarker(db).mark(service_id)

        assert "https://h1" in load(db, Service, service_id).properties

    def test_malformed_properties(self):
        db, enc = make_db(), make_encryptor()
        project_id = add_project(db)
        service_id = add_kubernetes_service(db, enc, project_id)
        with db.get_session() as session:
            session.get(Service, service_id).properties = "{not json"

        with pytest.raises(MarkerFailure) as exc_info:
            MigratedMarker(db).mark(service_id)

        assert exc_info.value.service_id == service_id
        assert load(db, Service, service_id).active is True

    def test_missing_record(self):
        db = make_db()

        with pytest.raises(MarkerFailure):
            MigratedMarker(db).mark(99)

    def test_storage_error(self):
        db = MagicMock()
        db.execute_transaction.side_effect = OperationalError("UPDATE services", {}, Exception("gone"))

        with pytest.raises(MarkerFailure) as exc_info:
            MigratedMarker(db).mark(7)

        assert exc_info.value.service_id == 7
        assert isinstance(exc_info.value.cause, OperationalError)
