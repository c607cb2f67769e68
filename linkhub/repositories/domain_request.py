"""Domain request repository — persisted FSM state per link page."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.models.domain_request import DomainRequestRecord
from linkhub.schemas.domain import DomainRequest, DomainRequestCounts, DomainStatus


def _to_schema(record: DomainRequestRecord) -> DomainRequest:
    return DomainRequest(
        id=record.id,
        requested_domain=record.requested_domain,
        reservation_type=record.reservation_type,
        status=record.status,
        requested_at=record.requested_at,
        activated_at=record.activated_at,
        notes=record.notes,
    )


class DomainRequestRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _record(self, request_id: str) -> Optional[DomainRequestRecord]:
        result = await self.db.execute(
            select(DomainRequestRecord).where(DomainRequestRecord.id == request_id)
        )
        return result.scalar_one_or_none()

    async def get(self, request_id: str) -> Optional[DomainRequest]:
        record = await self._record(request_id)
        return _to_schema(record) if record else None

    async def owner_of(self, request_id: str) -> Optional[str]:
        record = await self._record(request_id)
        return record.owner_id if record else None

    async def get_many(self, request_ids: list[str]) -> dict[str, DomainRequest]:
        if not request_ids:
            return {}
        result = await self.db.execute(
            select(DomainRequestRecord).where(DomainRequestRecord.id.in_(request_ids))
        )
        return {r.id: _to_schema(r) for r in result.scalars().all()}

    async def save(self, owner_id: str, request: DomainRequest) -> None:
        """Upsert and commit."""
        record = await self._record(request.id)
        if record is None:
            record = DomainRequestRecord(id=request.id, owner_id=owner_id)
            self.db.add(record)

        record.requested_domain = request.requested_domain
        record.reservation_type = (
            request.reservation_type.value if request.reservation_type else None
        )
        record.status = request.status.value
        record.requested_at = request.requested_at
        record.activated_at = request.activated_at
        record.notes = request.notes
        await self.db.commit()

    async def delete(self, request_id: str) -> None:
        await self.db.execute(
            delete(DomainRequestRecord).where(DomainRequestRecord.id == request_id)
        )
        await self.db.commit()

    async def list(self, status: Optional[DomainStatus] = None) -> list[DomainRequest]:
        """Admin listing. Requests that never left ``none`` are not shown."""
        stmt = select(DomainRequestRecord).where(
            DomainRequestRecord.status != DomainStatus.NONE.value
        )
        if status:
            stmt = stmt.where(DomainRequestRecord.status == status.value)
        stmt = stmt.order_by(DomainRequestRecord.requested_at.desc())
        result = await self.db.execute(stmt)
        return [_to_schema(r) for r in result.scalars().all()]

    async def counts(self) -> DomainRequestCounts:
        result = await self.db.execute(
            select(DomainRequestRecord.status, func.count())
            .where(DomainRequestRecord.status != DomainStatus.NONE.value)
            .group_by(DomainRequestRecord.status)
        )
        by_status = {status: count for status, count in result.all()}
        return DomainRequestCounts(
            pending=by_status.get(DomainStatus.PENDING.value, 0),
            active=by_status.get(DomainStatus.ACTIVE.value, 0),
            failed=by_status.get(DomainStatus.FAILED.value, 0),
            total=sum(by_status.values()),
        )
