"""
Tests for inventory seeding and store selection.
"""

import json
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.orm import sessionmaker

from eco_manager.core.local_store import LocalECOStore
from eco_manager.core.remote_store import RemoteECOStore
from eco_manager.core.store_factory import create_store
from eco_manager.data import database
from eco_manager.data.models import Part


@pytest.fixture
def patched_database(db_engine, tmp_path):
    Factory = sessionmaker(bind=db_engine, expire_on_commit=False)

    @contextmanager
    def _session():
        s = Factory()
        try:
            yield s
        finally:
            s.close()

    catalog = tmp_path / "parts_catalog.json"
    mock_settings = MagicMock()
    mock_settings.parts_catalog_path = catalog

    with (
        patch("eco_manager.data.database.get_session", _session),
        patch("eco_manager.data.database.settings", mock_settings),
    ):
        yield Factory, catalog


class TestSeedParts:

    def test_seeds_from_catalog(self, patched_database):
        Factory, catalog = patched_database
        catalog.write_text(json.dumps({"parts": [
            {"ipn": "IPN-001", "description": "10k Resistor", "category": "passive"},
            {"ipn": "IPN-003", "description": "MCU STM32"},
        ]}), encoding="utf-8")

        database._seed_parts()

        with Factory() as s:
            parts = {p.ipn: p for p in s.query(Part).all()}
        assert set(parts) == {"IPN-001", "IPN-003"}
        assert parts["IPN-001"].category == "passive"
        assert parts["IPN-003"].category is None

    def test_seeding_is_idempotent(self, patched_database):
        Factory, catalog = patched_database
        catalog.write_text(json.dumps({"parts": [{"ipn": "IPN-001", "description": "R"}]}))
        database._seed_parts()
        database._seed_parts()
        with Factory() as s:
            assert s.query(Part).count() == 1

    def test_missing_catalog_leaves_inventory_empty(self, patched_database):
        Factory, _catalog = patched_database
        database._seed_parts()
        with Factory() as s:
            assert s.query(Part).count() == 0

    def test_bundled_catalog_is_valid(self):
        from eco_manager.config.settings import settings
        data = json.loads(settings.parts_catalog_path.read_text(encoding="utf-8"))
        ipns = [p["ipn"] for p in data["parts"]]
        assert "IPN-001" in ipns
        assert len(ipns) == len(set(ipns))


class TestStoreFactory:

    def test_local(self):
        assert isinstance(create_store("local"), LocalECOStore)

    def test_remote(self):
        store = create_store("remote")
        assert isinstance(store, RemoteECOStore)
        assert store.get_backend_name().startswith("Server ")

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="ftp"):
            create_store("ftp")
