"""Audited mutations shared by the item and restock routers.

Each helper runs the repository write and its audit entry in one gateway
transaction, so a failed audit insert undoes the change it describes.
"""
from ..audit import AuditTrail
from ..errors import NotFound


def create_audited(repository, audit: AuditTrail, data):
    with repository.gateway.transaction():
        created = repository.create(data)
        audit.record_change(repository.audit_table, created.id, "create", after=created)
    return created


def update_audited(repository, audit: AuditTrail, record_id: str, changes: dict):
    with repository.gateway.transaction():
        before = repository.find_by_id(record_id)
        if before is None:
            raise NotFound(f"{repository.label} not found")
        after = repository.patch(record_id, changes)
        audit.record_change(repository.audit_table, record_id, "update", before=before, after=after)
    return after


def delete_audited(repository, audit: AuditTrail, record_id: str):
    with repository.gateway.transaction():
        before = repository.find_by_id(record_id)
        if before is None or not repository.delete(record_id):
            raise NotFound(f"{repository.label} not found")
        audit.record_change(repository.audit_table, record_id, "delete", before=before)
    return before
