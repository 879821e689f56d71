from datetime import datetime
from typing import Optional, Any, Dict, Literal, List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from uuid import UUID


RoleName = Literal["producer", "inspector"]


class AccountCreate(BaseModel):
    password: str = Field(min_length=6)


class AccountCreated(BaseModel):
    address: str
    access_token: str
    token_type: str = "bearer"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    address: str
    password: str

    @field_validator("address")
    @classmethod
    def _normalise_address(cls, value: str) -> str:
        return value.strip().lower()


class RegistrationIn(BaseModel):
    # empty strings are rejected by the identity service, not here
    username: str
    email: str
    role: RoleName


class AccountOut(BaseModel):
    address: str
    role: str
    username: Optional[str] = None
    email: Optional[str] = None
    is_owner: bool = False
    registered_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class LotCreate(BaseModel):
    total_units: int = Field(ge=0)
    name: str
    units_per_token: int = Field(ge=0)


class LotBurn(BaseModel):
    amount: int = Field(ge=0)


class LotOut(BaseModel):
    id: int
    producer_address: str
    name: str
    units_per_token: int
    total_units: int
    certified: bool
    certified_by: Optional[str] = None
    certified_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LotMetadata(BaseModel):
    name: str
    description: str
    units_per_token: int
    certified: bool
    image: Optional[str] = None
    attributes: List[Dict[str, Any]] = Field(default_factory=list)


class LotBalanceOut(BaseModel):
    lot_id: int
    holder_address: str
    units: int


class CounterOut(BaseModel):
    value: int


class CertificationRequestOut(BaseModel):
    lot_id: int
    producer_address: str
    inspector_address: Optional[str] = None
    requested_at: datetime
    accepted_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ProtocolRequestOut(BaseModel):
    producer_address: str
    protocol_id: int
    requested: bool


class MemberAdd(BaseModel):
    address: str

    @field_validator("address")
    @classmethod
    def _normalise_address(cls, value: str) -> str:
        return value.strip().lower()


class MembershipOut(BaseModel):
    address: str
    is_member: bool


class ProposalCreate(BaseModel):
    description: str
    protocol_id: int = Field(ge=0)
    producer_address: str

    @field_validator("producer_address")
    @classmethod
    def _normalise_address(cls, value: str) -> str:
        return value.strip().lower()


class VoteIn(BaseModel):
    support: bool


class ExecuteIn(BaseModel):
    credit_amount: int = Field(ge=0)


class ProposalOut(BaseModel):
    index: int
    description: str
    protocol_id: int
    producer_address: str
    created_by: str
    for_votes: int
    against_votes: int
    deadline: int
    executed: bool
    passed_voting: bool
    passed_inspection: bool
    inspection_finalized: bool
    inspector_address: Optional[str] = None
    credited_amount: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CreditedBalanceOut(BaseModel):
    producer_address: str
    amount: int


class GuaranteeOut(BaseModel):
    inspector_address: str
    proposal_index: int
    amount: int
    status: Optional[str] = None


class PurchaseIn(BaseModel):
    producer_address: str
    total_price: int = Field(ge=0)

    @field_validator("producer_address")
    @classmethod
    def _normalise_address(cls, value: str) -> str:
        return value.strip().lower()


class PurchaseSettlementOut(BaseModel):
    producer_address: str
    total_price: int
    fee_amount: int
    producer_share: int
    credited_before: int
    credited_after: int
    transferred: int


class AmountIn(BaseModel):
    amount: int = Field(ge=0)


class AssignInspectorIn(BaseModel):
    guaranteed_amount: int = Field(ge=0)


class TransferIn(BaseModel):
    to_address: str
    amount: int = Field(ge=0)

    @field_validator("to_address")
    @classmethod
    def _normalise_address(cls, value: str) -> str:
        return value.strip().lower()


class ApprovalIn(BaseModel):
    spender_address: str
    amount: int = Field(ge=0)

    @field_validator("spender_address")
    @classmethod
    def _normalise_address(cls, value: str) -> str:
        return value.strip().lower()


class BalanceOut(BaseModel):
    address: str
    amount: int
    symbol: str


class AllowanceOut(BaseModel):
    owner_address: str
    spender_address: str
    amount: int


class SystemAccountsOut(BaseModel):
    operation_center: str
    inspection_desk: str
    symbol: str


class LedgerEventOut(BaseModel):
    sequence: int
    name: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    actor_address: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AuditLogOut(BaseModel):
    id: UUID
    account_id: UUID
    action: str
    target_type: str | None = None
    target_id: str | None = None
    details: dict = Field(default_factory=dict)
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AuditReportItem(BaseModel):
    action: str
    count: int
