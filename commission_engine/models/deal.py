"""Deal model: one sales transaction eligible for commissioning."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, JSON, Numeric, String, Text, func
from sqlalchemy.orm import relationship
import enum

from commission_engine.models.base import Base


class DealStatus(str, enum.Enum):
    SOLD = "sold"
    PENDING = "pending"
    PERMITTED = "permitted"
    SCHEDULED = "scheduled"
    INSTALLED = "installed"
    PTO = "pto"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class Deal(Base):
    """
    Setter/closer deal.

    is_self_gen is stored for query performance; the engine also treats
    setter_id == closer_id as self-gen.
    """

    __tablename__ = "deal"

    id = Column(String, primary_key=True)
    external_id = Column(String(100), nullable=True, unique=True)

    # Rep assignment
    setter_id = Column(String, ForeignKey("person.id"), nullable=False, index=True)
    closer_id = Column(String, ForeignKey("person.id"), nullable=False, index=True)
    is_self_gen = Column(Boolean, nullable=False, default=False, index=True)
    office_id = Column(String, ForeignKey("office.id"), nullable=True, index=True)

    # Customer
    customer_name = Column(String(200), nullable=True)
    customer_address = Column(Text, nullable=True)

    # Deal details
    deal_type = Column(String(50), nullable=False, index=True)  # solar, hvac, roofing
    system_size_kw = Column(Numeric(10, 3), nullable=True)
    ppw = Column(Numeric(10, 4), nullable=True)  # price per watt
    deal_value = Column(Numeric(12, 2), nullable=False)

    # Dates
    sale_date = Column(Date, nullable=True)
    close_date = Column(Date, nullable=True, index=True)
    install_date = Column(Date, nullable=True)

    status = Column(String(50), nullable=False, default=DealStatus.SOLD.value, index=True)
    extra = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    setter = relationship("Person", foreign_keys=[setter_id])
    closer = relationship("Person", foreign_keys=[closer_id])
    office = relationship("Office")

    @property
    def self_generated(self) -> bool:
        return bool(self.is_self_gen) or self.setter_id == self.closer_id
