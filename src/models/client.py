"""Client-related SQLAlchemy models.

A client is one root row plus at most one detail row. The kind of detail
row attached decides the client's variant.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Union

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin, new_uuid

if TYPE_CHECKING:
    from src.models.document import Document


class Client(Base, TimestampMixin):
    """Represents an agency client (individual, family member or company)."""

    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    first_name: Mapped[str | None] = mapped_column(String(100))
    middle_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(20))
    address: Mapped[str | None] = mapped_column(String(500))
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(100))
    profile_image: Mapped[str | None] = mapped_column(String(500))

    # Relationships
    personal_details: Mapped["PersonalDetails | None"] = relationship(
        back_populates="client", cascade="all, delete-orphan", uselist=False
    )
    family_details: Mapped["FamilyDetails | None"] = relationship(
        back_populates="client", cascade="all, delete-orphan", uselist=False
    )
    corporate_details: Mapped["CorporateDetails | None"] = relationship(
        back_populates="client", cascade="all, delete-orphan", uselist=False
    )
    documents: Mapped[list["Document"]] = relationship(
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="Document.uploaded_at.desc()",
    )

    @property
    def details(self) -> "ClientDetails | None":
        """Return whichever detail row is attached, if any."""
        attached = [
            row
            for row in (self.personal_details, self.family_details, self.corporate_details)
            if row is not None
        ]
        if len(attached) > 1:
            raise ValueError(f"Client {self.id} has more than one detail record")
        return attached[0] if attached else None

    def attach_details(self, details: "ClientDetails") -> None:
        """Attach a detail row, refusing a second kind.

        Raises:
            ValueError: If a detail row of another kind is already attached.
        """
        current = self.details
        if current is not None and type(current) is not type(details):
            raise ValueError(
                f"Client {self.id} already has {type(current).__name__}; "
                f"cannot attach {type(details).__name__}"
            )
        if isinstance(details, PersonalDetails):
            self.personal_details = details
        elif isinstance(details, FamilyDetails):
            self.family_details = details
        elif isinstance(details, CorporateDetails):
            self.corporate_details = details
        else:
            raise TypeError(f"Unsupported detail record: {type(details).__name__}")


class PersonalDetails(Base):
    """Detail record for an individual client."""

    __tablename__ = "personal_details"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[str] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    mobile_number: Mapped[str] = mapped_column(String(20), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    birth_place: Mapped[str | None] = mapped_column(String(100))
    age: Mapped[int | None] = mapped_column(Integer)
    gender: Mapped[str | None] = mapped_column(String(20))
    height: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    weight: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    education: Mapped[str | None] = mapped_column(String(100))
    marital_status: Mapped[str | None] = mapped_column(String(20))
    business_job: Mapped[str | None] = mapped_column(String(100))
    name_of_business: Mapped[str | None] = mapped_column(String(100))
    type_of_duty: Mapped[str | None] = mapped_column(String(100))
    annual_income: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    pan_number: Mapped[str | None] = mapped_column(String(10))
    gst_number: Mapped[str | None] = mapped_column(String(15))

    client: Mapped["Client"] = relationship(back_populates="personal_details")


class FamilyDetails(Base):
    """Detail record for a family member or employee of another client."""

    __tablename__ = "family_details"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[str] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    whatsapp_number: Mapped[str] = mapped_column(String(20), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    relationship_type: Mapped[str | None] = mapped_column("relationship", String(20))
    age: Mapped[int | None] = mapped_column(Integer)
    gender: Mapped[str | None] = mapped_column(String(20))
    height: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    weight: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    pan_number: Mapped[str | None] = mapped_column(String(10))

    client: Mapped["Client"] = relationship(back_populates="family_details")


class CorporateDetails(Base):
    """Detail record for a corporate account."""

    __tablename__ = "corporate_details"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[str] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    mobile: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(100))
    annual_income: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    pan_number: Mapped[str | None] = mapped_column(String(10))
    gst_number: Mapped[str | None] = mapped_column(String(15))

    client: Mapped["Client"] = relationship(back_populates="corporate_details")


ClientDetails = Union[PersonalDetails, FamilyDetails, CorporateDetails]
