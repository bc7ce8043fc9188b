from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Numeric, Enum as SQLEnum, ForeignKey, Text,
    LargeBinary, UniqueConstraint, Index, text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
import enum


class SymposiumName(str, enum.Enum):
    ENIGMA = "Enigma"
    CARTEBLANCHE = "Carteblanche"


class TeamOrIndividual(enum.Enum):
    TEAM = "Team"
    INDIVIDUAL = "Individual"


class RoundStatus(enum.IntEnum):
    PENDING = -1
    NOT_ELIGIBLE = 0
    ELIGIBLE = 1


class ExperienceType(str, enum.Enum):
    PLACEMENT = "Placement"
    INTERN = "Intern"


class ExperienceStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


ROUND_NUMBERS = (1, 2, 3)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    dob = Column(Date, nullable=True)
    mobile = Column(String(20), nullable=True)
    college = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    year_of_passing = Column(Integer, nullable=True)
    state = Column(String(255), nullable=True)
    district = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Organizer(Base):
    __tablename__ = "organizers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    mobile = Column(String(20), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class EventKey(Base):
    """Shared id allocator; every event row in either symposium table takes its id from here."""

    __tablename__ = "event_keys"

    id = Column(Integer, primary_key=True, index=True)
    symposium = Column(SQLEnum(SymposiumName), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class _EventColumns:
    event_name = Column(String(255), nullable=False)
    event_category = Column(String(255), nullable=False)
    event_description = Column(Text, nullable=False)
    number_of_rounds = Column(Integer, nullable=False)
    team_or_individual = Column(SQLEnum(TeamOrIndividual), nullable=False)
    location = Column(String(255), nullable=False)
    registration_fees = Column(Integer, nullable=False, default=0)
    coordinator_name = Column(String(255), nullable=False)
    coordinator_contact_no = Column(String(20), nullable=False)
    coordinator_mail = Column(String(255), nullable=False)
    last_date_for_registration = Column(DateTime, nullable=False)
    poster_image = Column(LargeBinary, nullable=True)
    poster_content_type = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class EnigmaEvent(_EventColumns, Base):
    __tablename__ = "enigma_events"

    id = Column(Integer, ForeignKey("event_keys.id", ondelete="CASCADE"), primary_key=True, autoincrement=False)
    symposium = SymposiumName.ENIGMA

    rounds = relationship(
        "EnigmaRound",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EnigmaRound.round_number",
    )


class CarteblancheEvent(_EventColumns, Base):
    __tablename__ = "carte_blanche_events"

    id = Column(Integer, ForeignKey("event_keys.id", ondelete="CASCADE"), primary_key=True, autoincrement=False)
    symposium = SymposiumName.CARTEBLANCHE

    rounds = relationship(
        "CarteblancheRound",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="CarteblancheRound.round_number",
    )


class EnigmaRound(Base):
    __tablename__ = "enigma_rounds"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("enigma_events.id", ondelete="CASCADE"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    round_details = Column(Text, nullable=False)
    round_date_time = Column(DateTime, nullable=False)

    event = relationship("EnigmaEvent", back_populates="rounds")


class CarteblancheRound(Base):
    __tablename__ = "carte_blanche_rounds"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("carte_blanche_events.id", ondelete="CASCADE"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    round_details = Column(Text, nullable=False)
    round_date_time = Column(DateTime, nullable=False)

    event = relationship("CarteblancheEvent", back_populates="rounds")


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    account_name = Column(String(255), nullable=False)
    bank_name = Column(String(255), nullable=False)
    account_number = Column(String(255), nullable=False)
    ifsc_code = Column(String(255), nullable=False)
    qr_code_pdf = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class EventAccount(Base):
    __tablename__ = "event_accounts"

    event_id = Column(Integer, ForeignKey("event_keys.id", ondelete="CASCADE"), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True)


class CartItem(Base):
    __tablename__ = "cart"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", "symposium_name", name="uq_cart_user_event"),
    )

    cart_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, nullable=False)
    symposium_name = Column(SQLEnum(SymposiumName), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(255), unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    transaction_username = Column(String(255), nullable=False)
    transaction_time = Column(String(255), nullable=False)
    transaction_date = Column(String(255), nullable=False)
    declared_amount = Column(Numeric(10, 2), nullable=False)
    screenshot = Column(LargeBinary, nullable=False)
    screenshot_content_type = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        UniqueConstraint("user_email", "event_id", name="uq_registrations_user_event"),
    )

    id = Column(Integer, primary_key=True, index=True)
    symposium = Column(SQLEnum(SymposiumName), nullable=False)
    event_id = Column(Integer, nullable=False, index=True)
    user_name = Column(String(255), nullable=False)
    user_email = Column(String(255), nullable=False, index=True)
    mobile_number = Column(String(20), nullable=True)
    transaction_id = Column(String(255), ForeignKey("payment_transactions.transaction_id"), nullable=False, index=True)
    transaction_username = Column(String(255), nullable=True)
    transaction_time = Column(String(255), nullable=True)
    transaction_date = Column(String(255), nullable=True)
    transaction_amount = Column(Numeric(10, 2), nullable=True)
    round1 = Column(SQLEnum(RoundStatus), default=RoundStatus.PENDING, nullable=False)
    round2 = Column(SQLEnum(RoundStatus), default=RoundStatus.PENDING, nullable=False)
    round3 = Column(SQLEnum(RoundStatus), default=RoundStatus.PENDING, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    transaction = relationship("PaymentTransaction")

    def round_status(self, round_number: int) -> RoundStatus:
        return RoundStatus(getattr(self, f"round{round_number}"))

    def set_round_status(self, round_number: int, value: RoundStatus) -> None:
        setattr(self, f"round{round_number}", RoundStatus(value))


class SimpleRegistration(Base):
    __tablename__ = "simple_registrations"
    __table_args__ = (
        UniqueConstraint("user_email", "event_id", name="uq_simple_registrations_user_event"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    event_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VerifiedRegistration(Base):
    __tablename__ = "verified_registrations"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_verified_registrations_user_event"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(Integer, nullable=False)
    verified = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class RegistrationTimer(Base):
    __tablename__ = "registration_timer"
    __table_args__ = (
        Index(
            "uq_registration_timer_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SymposiumStatus(Base):
    __tablename__ = "symposium_status"

    id = Column(Integer, primary_key=True, index=True)
    symposium_name = Column(SQLEnum(SymposiumName), unique=True, nullable=False)
    is_open = Column(Boolean, default=False, nullable=False)
    start_date = Column(Date, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PasswordResetOtp(Base):
    __tablename__ = "password_reset_otps"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    otp_hash = Column(String(128), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    attempts = Column(Integer, default=0, nullable=False)


class SystemConfig(Base):
    __tablename__ = "system_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(String(500), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Experience(Base):
    __tablename__ = "experiences"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    type = Column(SQLEnum(ExperienceType), nullable=False)
    year_of_passing = Column(Integer, nullable=False)
    company = Column(String(255), nullable=False, index=True)
    linkedin_url = Column(String(255), nullable=True)
    pdf_file = Column(LargeBinary, nullable=False)
    status = Column(SQLEnum(ExperienceStatus), nullable=False, default=ExperienceStatus.PENDING, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
