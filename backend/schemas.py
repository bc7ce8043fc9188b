from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Union
from enum import Enum
from datetime import datetime, date


class SymposiumEnum(str, Enum):
    ENIGMA = "Enigma"
    CARTEBLANCHE = "Carteblanche"


class TeamOrIndividualEnum(str, Enum):
    TEAM = "Team"
    INDIVIDUAL = "Individual"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _strip_required(value: str, field_name: str) -> str:
    cleaned = str(value or "").strip()
    if not cleaned:
        raise ValueError(f"{field_name} is required")
    return cleaned


# Auth Schemas
class UserSignup(CamelModel):
    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    dob: Optional[date] = None
    mobile: Optional[str] = Field(None, max_length=20)
    college: Optional[str] = None
    department: Optional[str] = None
    year_of_passing: Optional[int] = Field(None, ge=1950, le=2100)
    state: Optional[str] = None
    district: Optional[str] = None

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v):
        if v is None:
            return v
        digits = v.strip().lstrip("+")
        if digits and not digits.isdigit():
            raise ValueError("Mobile number must contain only digits")
        return v.strip() or None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class UserResponse(CamelModel):
    id: int
    full_name: str
    email: str
    dob: Optional[date] = None
    mobile: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    year_of_passing: Optional[int] = None
    state: Optional[str] = None
    district: Optional[str] = None
    role: str = "student"


class OrganizerResponse(CamelModel):
    id: int
    name: str
    email: str
    mobile: str
    role: str = "organizer"


class TokenResponse(CamelModel):
    message: str = "Login successful"
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: Union[UserResponse, OrganizerResponse]


class SendOtpRequest(CamelModel):
    email: EmailStr


class VerifyOtpRequest(CamelModel):
    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=10)


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    new_password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., min_length=6)


class OrganizerCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    mobile: str = Field(..., min_length=5, max_length=20)
    password: str = Field(..., min_length=6)


# Event Schemas
class RoundPayload(CamelModel):
    round_number: int = Field(..., ge=1, le=3)
    round_details: str = Field(..., min_length=1)
    round_date_time: datetime


class RoundResponse(CamelModel):
    round_number: int
    round_details: str
    round_date_time: datetime


class EventCreate(CamelModel):
    symposium_name: SymposiumEnum
    event_name: str = Field(..., min_length=1, max_length=255)
    event_category: str = Field(..., min_length=1, max_length=255)
    event_description: str = Field(..., min_length=1)
    number_of_rounds: int = Field(..., ge=1, le=3)
    team_or_individual: TeamOrIndividualEnum
    location: str = Field(..., min_length=1, max_length=255)
    registration_fees: int = Field(..., ge=0)
    coordinator_name: str = Field(..., min_length=1, max_length=255)
    coordinator_contact_no: str = Field(..., min_length=1, max_length=20)
    coordinator_mail: EmailStr
    last_date_for_registration: datetime
    rounds: List[RoundPayload]

    @model_validator(mode="after")
    def validate_rounds(self):
        numbers = [r.round_number for r in self.rounds]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Round numbers must be unique")
        if any(n > self.number_of_rounds for n in numbers):
            raise ValueError("Round number exceeds numberOfRounds")
        return self


class EventUpdate(EventCreate):
    pass


class EventResponse(CamelModel):
    id: int
    symposium_name: SymposiumEnum
    event_name: str
    event_category: str
    event_description: str
    number_of_rounds: int
    team_or_individual: TeamOrIndividualEnum
    location: str
    registration_fees: int
    coordinator_name: str
    coordinator_contact_no: str
    coordinator_mail: str
    last_date_for_registration: datetime
    poster_image: Optional[str] = None
    created_at: Optional[datetime] = None
    rounds: List[RoundResponse] = []


class AccountAssign(CamelModel):
    account_id: int


class AccountResponse(CamelModel):
    id: int
    account_name: str
    bank_name: str
    account_number: str
    ifsc_code: str
    qr_code_pdf: Optional[str] = None


# Cart Schemas
class CartAdd(CamelModel):
    user_email: str
    event_id: int = Field(..., ge=1)
    symposium_name: str

    @field_validator("user_email", "symposium_name")
    @classmethod
    def validate_required(cls, v, info):
        return _strip_required(v, info.field_name)


class CartRemove(CamelModel):
    user_email: str

    @field_validator("user_email")
    @classmethod
    def validate_email(cls, v):
        return _strip_required(v, "userEmail")


class CartEventDetails(CamelModel):
    event_name: str
    event_category: str
    event_description: str
    registration_fees: int
    last_date_for_registration: datetime
    coordinator_name: str
    coordinator_contact_no: str


class CartItemResponse(CamelModel):
    cart_id: int
    event_id: int
    symposium_name: SymposiumEnum
    event_details: CartEventDetails


# Registration Schemas
class SimpleRegistrationCreate(CamelModel):
    user_email: str
    event_id: int = Field(..., ge=1)

    @field_validator("user_email")
    @classmethod
    def validate_email(cls, v):
        return _strip_required(v, "userEmail")


class TransactionCheckResponse(CamelModel):
    exists: bool
    message: str


class RegisteredEventRef(CamelModel):
    event_id: int


class EventRegistrationEntry(CamelModel):
    user_id: Optional[int] = None
    user_name: str
    email: str
    college: str
    registration_type: str
    transaction_id: Optional[str] = None
    transaction_username: Optional[str] = None
    transaction_time: Optional[str] = None
    transaction_date: Optional[str] = None
    transaction_amount: Optional[float] = None


class UserRegistrationEntry(CamelModel):
    id: int
    event_id: int
    user_email: str
    registration_type: str
    symposium: SymposiumEnum
    round1: int
    round2: int
    round3: int
    verified: Optional[bool] = None
    event: Optional[EventResponse] = None


class RegistrationOverviewEntry(CamelModel):
    id: int
    registration_type: str
    symposium: SymposiumEnum
    event_id: int
    event_name: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    user_email: str
    mobile_number: Optional[str] = None
    transaction_id: Optional[str] = None
    transaction_username: Optional[str] = None
    transaction_time: Optional[str] = None
    transaction_date: Optional[str] = None
    transaction_amount: Optional[float] = None
    round1: int
    round2: int
    round3: int
    verified: Optional[bool] = None
    created_at: Optional[datetime] = None


class VerificationRequest(CamelModel):
    user_id: int = Field(..., ge=1)
    event_id: int = Field(..., ge=1)
    verified: bool


# Round Schemas
class RoundEligibilityUpdate(CamelModel):
    user_id: int = Field(..., ge=1)
    status: int

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in (0, 1):
            raise ValueError("Status must be 0 or 1")
        return v


class RoundNotifyRequest(CamelModel):
    eligible_message: str = Field(..., min_length=1)
    ineligible_message: str = Field(..., min_length=1)


# Timer / Symposium Schemas
class TimerStart(CamelModel):
    end_time: datetime


class TimerResponse(CamelModel):
    end_time: datetime
    is_active: bool


class SymposiumStart(CamelModel):
    symposium_name: str
    start_date: date


class SymposiumStop(CamelModel):
    symposium_name: str


class SymposiumStatusResponse(CamelModel):
    symposium_name: SymposiumEnum
    is_open: bool
    start_date: Optional[date] = None


class ExperienceTypeEnum(str, Enum):
    PLACEMENT = "Placement"
    INTERN = "Intern"


class ExperienceResponse(CamelModel):
    # column-style keys are what the experience board pages read
    id: int
    name: str
    email: str
    type: ExperienceTypeEnum
    year_of_passing: int = Field(..., alias="year_of_passing")
    company: str
    linkedin_url: Optional[str] = Field(None, alias="linkedin_url")
    status: str
    created_at: Optional[datetime] = None


class ExperienceStatusUpdate(CamelModel):
    id: int = Field(..., ge=1)
    status: str

    @field_validator("status")
    @classmethod
    def status_is_decision(cls, value: str) -> str:
        cleaned = str(value or "").strip().lower()
        if cleaned not in ("approved", "rejected"):
            raise ValueError("Status must be approved or rejected")
        return cleaned
