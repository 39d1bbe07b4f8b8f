# crm_database.py

from extensions import db
from utils.datetime_utils import utc_now


class StoredDocument(db.Model):
    """One JSON document of the key-value store (accounts, contacts, tasks, ledger...)"""
    __tablename__ = 'stored_document'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utc_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f'<StoredDocument {self.key}>'
