"""Aggregate reports over inventory, restock requests and the audit trail."""
from datetime import timedelta

from sqlalchemy import case, func, literal, select

from . import models
from .audit import utcnow
from .database import StorageGateway
from .enums import ItemStatus, plain

ITEM_TABLES = (
    ("computers", models.Computer),
    ("peripherals", models.Peripheral),
    ("printer_items", models.PrinterItem),
)

ACTIVITY_WINDOW_DAYS = 30


def _office_filter(query, model, office):
    if office:
        query = query.where(model.office == plain(office))
    return query


def inventory_summary(gateway: StorageGateway, office=None) -> dict:
    """Per-office item counts for each category, with combined totals"""
    summary = {}
    totals = []
    for category, model in ITEM_TABLES:
        query = select(
            model.office.label("office"),
            func.count(model.id).label("total_items"),
            func.coalesce(func.sum(model.quantity), 0).label("total_quantity"),
            func.count(case((model.status == ItemStatus.ACTIVE.value, 1))).label("active_items"),
        )
        query = _office_filter(query, model, office).group_by(model.office).order_by(model.office)
        rows = gateway.fetch_rows(query)
        summary[category] = rows
        totals.extend(
            {
                "category": category,
                "office": row["office"],
                "total_items": row["total_items"],
                "total_quantity": row["total_quantity"],
            }
            for row in rows
        )
    summary["totals"] = totals
    return summary


def restock_report(gateway: StorageGateway, office=None) -> dict:
    request = models.RestockRequest
    statistics = select(
        request.status.label("status"),
        request.priority.label("priority"),
        request.office.label("office"),
        func.count(request.id).label("count"),
        func.sum(request.quantity_requested).label("total_quantity"),
    )
    statistics = (
        _office_filter(statistics, request, office)
        .group_by(request.status, request.priority, request.office)
        .order_by(request.office, request.priority.desc(), request.status)
    )

    recent = select(
        request.id,
        request.item_category,
        request.item_description,
        request.quantity_requested,
        request.office,
        request.priority,
        request.status,
        request.requested_by,
        request.created_at,
    )
    recent = _office_filter(recent, request, office).order_by(request.created_at.desc(), request.id).limit(20)

    return {
        "statistics": gateway.fetch_rows(statistics),
        "recent_requests": gateway.fetch_rows(recent),
    }


def activity_report(gateway: StorageGateway, office=None) -> dict:
    """Audit activity of the last thirty days, per day and per table/action"""
    entry = models.AuditLogEntry
    since = utcnow() - timedelta(days=ACTIVITY_WINDOW_DAYS)
    day = func.date(entry.timestamp)

    daily = select(
        entry.table_name.label("table_name"),
        entry.action.label("action"),
        entry.office.label("office"),
        day.label("day"),
        func.count(entry.id).label("count"),
    ).where(entry.timestamp >= since)
    daily = (
        _office_filter(daily, entry, office)
        .group_by(entry.table_name, entry.action, entry.office, day)
        .order_by(day.desc())
        .limit(50)
    )

    summary = select(
        entry.table_name.label("table_name"),
        entry.action.label("action"),
        entry.office.label("office"),
        func.count(entry.id).label("count"),
        func.max(entry.timestamp).label("last_activity"),
    ).where(entry.timestamp >= since)
    summary = (
        _office_filter(summary, entry, office)
        .group_by(entry.table_name, entry.action, entry.office)
        .order_by(entry.table_name, entry.office)
    )

    return {
        "recent_activity": gateway.fetch_rows(daily),
        "summary": gateway.fetch_rows(summary),
    }


def office_comparison(gateway: StorageGateway) -> dict:
    inventory = []
    for category, model in ITEM_TABLES:
        query = (
            select(
                model.office.label("office"),
                literal(category).label("category"),
                func.count(model.id).label("total_items"),
                func.coalesce(func.sum(model.quantity), 0).label("total_quantity"),
            )
            .group_by(model.office)
        )
        inventory.extend(gateway.fetch_rows(query))
    inventory.sort(key=lambda row: (row["office"], row["category"]))

    request = models.RestockRequest
    restock = (
        select(request.office.label("office"), request.status.label("status"), func.count(request.id).label("count"))
        .group_by(request.office, request.status)
        .order_by(request.office, request.status)
    )
    return {
        "inventory_comparison": inventory,
        "restock_comparison": gateway.fetch_rows(restock),
    }
