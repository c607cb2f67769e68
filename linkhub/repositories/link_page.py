"""Active page repository — authoritative tier for paid pages."""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.errors import SlugConflictError
from linkhub.models.link_page import LinkPageRecord
from linkhub.schemas.link_page import LifecycleState, LinkPage

logger = structlog.get_logger()


def _to_schema(record: LinkPageRecord) -> LinkPage:
    return LinkPage.model_validate(
        {
            "id": record.id,
            "owner_id": record.owner_id,
            "lifecycle_state": LifecycleState.ACTIVE,
            "slug": record.slug,
            "custom_domain": record.custom_domain,
            "display_name": record.display_name,
            "profile_name": record.profile_name,
            "profile_image_ref": record.profile_image_ref,
            "folder_tag": record.folder_tag,
            "template": record.template,
            "theme": record.theme or {},
            "buttons": record.buttons or [],
            "updated_at": record.updated_at,
        }
    )


def _columns(page: LinkPage) -> dict:
    return {
        "display_name": page.display_name,
        "profile_name": page.profile_name,
        "profile_image_ref": page.profile_image_ref,
        "folder_tag": page.folder_tag,
        "template": page.template.value,
        "theme": page.theme.model_dump(mode="json"),
        "buttons": [b.model_dump(mode="json") for b in page.buttons],
    }


class ActivePageRepository:
    """Reads and writes active pages. Every write commits before returning."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, owner_id: str, page_id: str) -> Optional[LinkPage]:
        result = await self.db.execute(
            select(LinkPageRecord).where(
                LinkPageRecord.id == page_id,
                LinkPageRecord.owner_id == owner_id,
            )
        )
        record = result.scalar_one_or_none()
        return _to_schema(record) if record else None

    async def list(self, owner_id: str) -> list[LinkPage]:
        result = await self.db.execute(
            select(LinkPageRecord)
            .where(LinkPageRecord.owner_id == owner_id)
            .order_by(LinkPageRecord.created_at)
        )
        return [_to_schema(r) for r in result.scalars().all()]

    async def taken_slugs(self, slugs: list[str]) -> set[str]:
        if not slugs:
            return set()
        result = await self.db.execute(
            select(LinkPageRecord.slug).where(LinkPageRecord.slug.in_(slugs))
        )
        return set(result.scalars().all())

    async def insert_many(self, pages: list[LinkPage]) -> None:
        """Insert freshly promoted pages in one transaction.

        The unique slug index is the final arbiter: a collision rolls
        back the whole batch.
        """
        for page in pages:
            self.db.add(
                LinkPageRecord(
                    id=page.id,
                    owner_id=page.owner_id,
                    slug=page.slug,
                    custom_domain=page.custom_domain,
                    **_columns(page),
                )
            )
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("page_insert_conflict", error=str(e.orig))
            raise SlugConflictError(", ".join(p.slug or "" for p in pages)) from e

    async def save(self, page: LinkPage) -> None:
        await self.db.execute(
            update(LinkPageRecord)
            .where(LinkPageRecord.id == page.id, LinkPageRecord.owner_id == page.owner_id)
            .values(**_columns(page))
        )
        await self.db.commit()

    async def bind_domain(self, page_id: str, domain: Optional[str]) -> bool:
        """Attach (or detach with None) a custom domain for public routing."""
        result = await self.db.execute(
            update(LinkPageRecord)
            .where(LinkPageRecord.id == page_id)
            .values(custom_domain=domain)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def delete(self, owner_id: str, page_id: str) -> bool:
        result = await self.db.execute(
            delete(LinkPageRecord).where(
                LinkPageRecord.id == page_id,
                LinkPageRecord.owner_id == owner_id,
            )
        )
        await self.db.commit()
        return result.rowcount > 0
