"""
Tests for the JSON document store: seed, load/save, transactions, reset.
"""

from __future__ import annotations

import json
import threading

import pytest

from errors import StoreIOError, StoreParseError
from security import verify_password
from store import JsonStore, build_seed_document


def test_initialize_if_absent_writes_seed(data_file):
    s = JsonStore(data_file)
    assert s.initialize_if_absent() is True
    doc = s.load()
    assert set(doc) == {"admin", "prices", "portfolio", "orders"}
    assert set(doc["prices"]) == {"landing", "corporate", "ecommerce"}
    assert doc["prices"]["landing"] == {"price": 50000, "duration": "5-7 дней"}
    assert [p["id"] for p in doc["portfolio"]] == [1, 2, 3]
    assert doc["orders"] == []
    admin = doc["admin"]
    assert admin["username"] == "admin"
    assert verify_password("admin123", admin["passwordHash"], admin["passwordSalt"])


def test_initialize_if_absent_keeps_existing_file(data_file):
    data_file.write_text(json.dumps({"prices": {}}), encoding="utf-8")
    s = JsonStore(data_file)
    assert s.initialize_if_absent() is False
    assert s.load() == {"prices": {}}


def test_load_missing_file(data_file):
    with pytest.raises(StoreIOError):
        JsonStore(data_file).load()


def test_load_corrupt_file(data_file):
    data_file.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreParseError):
        JsonStore(data_file).load()


def test_load_non_object_root(data_file):
    data_file.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StoreParseError):
        JsonStore(data_file).load()


def test_save_load_is_stable(json_store, data_file):
    doc = json_store.load()
    before = data_file.read_text(encoding="utf-8")
    json_store.save(doc)
    assert json_store.load() == doc
    assert data_file.read_text(encoding="utf-8") == before


def test_save_is_pretty_printed_and_leaves_no_temp_files(json_store, data_file):
    json_store.save(json_store.load())
    text = data_file.read_text(encoding="utf-8")
    assert text.startswith("{\n  ")
    assert "Интернет-магазин одежды" in text
    assert [p.name for p in data_file.parent.iterdir()] == ["data.json"]


def test_save_into_unwritable_location(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    s = JsonStore(blocker / "data.json")
    with pytest.raises(StoreIOError):
        s.save({"orders": []})


def test_transaction_saves_on_success(json_store):
    with json_store.transaction() as doc:
        doc["orders"].append({"id": 1})
    assert json_store.load()["orders"] == [{"id": 1}]


def test_transaction_discards_on_error(json_store):
    before = json_store.load()
    with pytest.raises(RuntimeError):
        with json_store.transaction() as doc:
            doc["orders"].append({"id": 1})
            raise RuntimeError("boom")
    assert json_store.load() == before


def test_concurrent_transactions_do_not_lose_updates(json_store):
    def add_orders(start):
        for i in range(start, start + 10):
            with json_store.transaction() as doc:
                doc["orders"].append({"id": i})

    threads = [threading.Thread(target=add_orders, args=(n * 100,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(json_store.load()["orders"]) == 40


def test_reset_restores_seed(json_store):
    with json_store.transaction() as doc:
        doc["orders"].append({"id": 1})
        doc["prices"] = {}
    doc = json_store.reset()
    assert doc["orders"] == []
    assert set(doc["prices"]) == {"landing", "corporate", "ecommerce"}
    assert [p["title"] for p in doc["portfolio"]] == [
        "Интернет-магазин одежды",
        "Лендинг для стартапа",
        "Корпоративный сайт",
    ]
    assert verify_password("admin123", doc["admin"]["passwordHash"], doc["admin"]["passwordSalt"])


def test_seed_salts_are_fresh(data_file):
    first = build_seed_document()["admin"]
    second = build_seed_document()["admin"]
    assert first["passwordSalt"] != second["passwordSalt"]
