"""SQLAlchemy ORM models."""

from linkhub.models.base import Base
from linkhub.models.discount_code import DiscountCodeRecord
from linkhub.models.domain_request import DomainRequestRecord
from linkhub.models.link_page import LinkPageRecord

__all__ = [
    "Base",
    "DiscountCodeRecord",
    "DomainRequestRecord",
    "LinkPageRecord",
]
