"""
Record store that keeps the API working while the durable store is down.

Listing, inserting and deleting publications/members fall back to a local
in-memory store when the durable store raises `BackendUnavailableError`.
Single-record reads, updates and admin checks have no fallback for an
unavailable durable store; they only consult the local store for ids the
durable store does not know.
"""

from __future__ import annotations

import logging
from typing import Optional

from gpevim.db import (
    InMemoryRecordStore,
    MemberRecord,
    PublicationRecord,
    RecordStore,
)
from gpevim.errors import BackendUnavailableError
from gpevim.ordering import sort_members, sort_publications

logger = logging.getLogger(__name__)


class FallbackRecordStore:
    def __init__(self, durable: RecordStore, local: InMemoryRecordStore | None = None):
        self.durable = durable
        self.local = local if local is not None else InMemoryRecordStore()

    def initialize(
        self, admin_username: str | None = None, admin_password: str | None = None
    ) -> None:
        self.durable.initialize(admin_username, admin_password)

    def list_publications(self) -> list[PublicationRecord]:
        try:
            durable_records = self.durable.list_publications()
        except BackendUnavailableError as exc:
            logger.warning("Durable store unavailable, listing local publications: %s", exc)
            durable_records = []
        return sort_publications([*durable_records, *self.local.list_publications()])

    def get_publication(self, publication_id: int) -> Optional[PublicationRecord]:
        record = self.durable.get_publication(publication_id)
        if record is None:
            record = self.local.get_publication(publication_id)
        return record

    def insert_publication(self, fields: dict) -> PublicationRecord:
        try:
            return self.durable.insert_publication(fields)
        except BackendUnavailableError as exc:
            logger.warning("Durable store unavailable, saving publication locally: %s", exc)
            return self.local.insert_publication(fields)

    def update_publication(
        self, publication_id: int, fields: dict
    ) -> Optional[PublicationRecord]:
        record = self.durable.update_publication(publication_id, fields)
        if record is None:
            record = self.local.update_publication(publication_id, fields)
        return record

    def delete_publication(self, publication_id: int) -> bool:
        try:
            if self.durable.delete_publication(publication_id):
                return True
        except BackendUnavailableError as exc:
            logger.warning("Durable store unavailable, deleting publication locally: %s", exc)
        return self.local.delete_publication(publication_id)

    def list_members(self) -> list[MemberRecord]:
        try:
            durable_records = self.durable.list_members()
        except BackendUnavailableError as exc:
            logger.warning("Durable store unavailable, listing local members: %s", exc)
            durable_records = []
        return sort_members([*durable_records, *self.local.list_members()])

    def get_member(self, member_id: int) -> Optional[MemberRecord]:
        record = self.durable.get_member(member_id)
        if record is None:
            record = self.local.get_member(member_id)
        return record

    def insert_member(self, fields: dict) -> MemberRecord:
        try:
            return self.durable.insert_member(fields)
        except BackendUnavailableError as exc:
            logger.warning("Durable store unavailable, saving member locally: %s", exc)
            return self.local.insert_member(fields)

    def update_member(self, member_id: int, fields: dict) -> Optional[MemberRecord]:
        record = self.durable.update_member(member_id, fields)
        if record is None:
            record = self.local.update_member(member_id, fields)
        return record

    def delete_member(self, member_id: int) -> bool:
        try:
            if self.durable.delete_member(member_id):
                return True
        except BackendUnavailableError as exc:
            logger.warning("Durable store unavailable, deleting member locally: %s", exc)
        return self.local.delete_member(member_id)

    def verify_admin(self, username: str, password: str) -> bool:
        return self.durable.verify_admin(username, password)
