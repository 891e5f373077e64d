"""Audit trail: entries are written after the audited change and never fail it."""

from sqlalchemy.exc import OperationalError

from models.log import Log
from utils.audit import write_log


class TestWriteLog:
    def test_entry_is_stored(self, db, customer):
        write_log(db, user_id=customer.id, action="CART_ADD", resource="cart", meta={"product_id": 1})

        entry = db.query(Log).one()
        assert entry.action == "CART_ADD"
        assert entry.status == "SUCCESS"
        assert entry.meta == {"product_id": 1}

    def test_commit_failure_is_logged_and_dropped(self, db, customer, monkeypatch, caplog):
        def broken_commit():
            raise OperationalError("INSERT INTO logs", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", broken_commit)
        write_log(db, user_id=customer.id, action="CART_ADD", resource="cart")
        monkeypatch.undo()

        assert "Could not write audit log" in caplog.text
        assert db.query(Log).count() == 0
