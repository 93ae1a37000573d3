"""Request models.

Pydantic models for the JSON bodies accepted by the API and the workflows.
Field aliases are the camelCase names used on the wire.
"""
from datetime import date, datetime, timezone
from typing import Dict, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from certchain_app.database import CONTENT_METADATA_KEY
from certchain_app.errors import InvalidInput

MetadataValue = Union[str, int, float, bool, None]


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _coerce_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return value
    return value


# =============================================================================
# Certificates
# =============================================================================


class IssueCertificateRequest(RequestModel):
    """Fields accepted when issuing a certificate."""

    certificate_id: str = Field(..., min_length=6, max_length=100, alias="certificateId")
    recipient_name: str = Field(..., min_length=2, max_length=150, alias="recipientName")
    course_name: str = Field(..., min_length=2, max_length=200, alias="courseName")
    issued_on: date = Field(default_factory=_today, alias="issuedOn")
    valid_until: Optional[date] = Field(None, alias="validUntil")
    recipient_email: Optional[EmailStr] = Field(None, alias="recipientEmail")
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)
    ledger_tx_hash: Optional[str] = Field(
        None, alias="ledgerTxHash", description="Transaction already submitted by the caller"
    )

    @field_validator("issued_on", mode="before")
    @classmethod
    def _default_issued_on(cls, value):
        if value is None or value == "":
            return _today()
        return _coerce_date(value)

    @field_validator("valid_until", mode="before")
    @classmethod
    def _optional_valid_until(cls, value):
        if value == "":
            return None
        return _coerce_date(value)

    @field_validator("valid_until")
    @classmethod
    def _not_before_issue(cls, value, info: ValidationInfo):
        issued_on = info.data.get("issued_on")
        if value is not None and issued_on is not None and value < issued_on:
            raise ValueError("validUntil must not be earlier than issuedOn")
        return value

    @field_validator("recipient_email", "ledger_tx_hash", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        return None if value == "" else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, value):
        if value is None:
            return {}
        if isinstance(value, dict) and CONTENT_METADATA_KEY in value:
            raise ValueError(f"'{CONTENT_METADATA_KEY}' is a reserved metadata key")
        return value


class RevokeRequest(RequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class HashVerifyRequest(RequestModel):
    # hashes are compared byte for byte
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=False)

    certificate_id: str = Field(..., min_length=1, alias="certificateId")
    provided_hash: str = Field(..., min_length=1, alias="providedHash")


class QrVerifyRequest(RequestModel):
    qr_data: Union[str, dict] = Field(..., alias="qrData")


# =============================================================================
# Accounts
# =============================================================================


class SignupRequest(RequestModel):
    name: str = Field(..., min_length=2, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["issuer", "verifier"] = "verifier"
    organization: Optional[str] = Field(None, max_length=200)


class AdminSignupRequest(RequestModel):
    name: str = Field(..., min_length=2, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=6)
    organization: Optional[str] = Field(None, max_length=200)
    admin_secret: str = Field(..., min_length=1, alias="adminSecret")


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class RoleUpdateRequest(RequestModel):
    role: Literal["admin", "issuer", "verifier"]


class ActiveUpdateRequest(RequestModel):
    is_active: bool = Field(..., alias="isActive")


def parse(model, data):
    """Validate ``data`` against ``model`` or raise InvalidInput listing every issue."""
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as exc:
        issues = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "body",
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        raise InvalidInput(issues)
