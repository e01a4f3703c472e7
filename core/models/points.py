# =============================================================================
# core/models/points.py - Points & Ledger Schemas
# =============================================================================
# Members pay the brokerage commission in points. Points are bought by
# bank transfer: the member files a charge request, the admin confirms the
# deposit and approves it, and a stored procedure credits the balance.
#
# Balance mutation happens only inside the database functions
# (charge_points, deduct_points_for_buyer_info, approve/reject_point_charge_request);
# these models describe what those functions read and write.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from .base import RecordModel


class PointChargeRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PointTransactionType(str, Enum):
    """
    - charge: points credited (admin charge or approved charge request)
    - deduct: commission paid to reveal buyer information
    - refund: points returned
    """
    CHARGE = "charge"
    DEDUCT = "deduct"
    REFUND = "refund"


class ChargeRequestAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class PointBalance(BaseModel):
    """Balance response for GET /points/balance."""

    user_id: UUID
    balance: int = 0


class PointTransaction(RecordModel):
    id: UUID
    user_id: UUID
    transaction_type: PointTransactionType
    amount: int
    balance_before: int | None = None
    balance_after: int | None = None
    reference_type: str | None = None
    reference_id: UUID | None = None
    description: str | None = None
    admin_user_id: UUID | None = None
    created_at: datetime | None = None


class PointChargeRequest(RecordModel):
    id: UUID
    user_id: UUID
    requested_amount: int
    requested_points: int
    status: PointChargeRequestStatus = PointChargeRequestStatus.PENDING
    description: str | None = None
    admin_notes: str | None = None
    admin_user_id: UUID | None = None
    created_at: datetime | None = None
    reviewed_at: datetime | None = None
    completed_at: datetime | None = None


class LedgerStatistics(BaseModel):
    """
    Totals over a ledger query.

    Deposits are approved charge requests (money received); transactions are
    point movements recorded by the stored procedures.
    """

    total_deposits: int = Field(default=0, serialization_alias="totalDeposits")
    total_deposit_points: int = Field(default=0, serialization_alias="totalDepositPoints")
    total_charge_points: int = Field(default=0, serialization_alias="totalChargePoints")
    total_deduct_points: int = Field(default=0, serialization_alias="totalDeductPoints")
    total_refund_points: int = Field(default=0, serialization_alias="totalRefundPoints")
    deposit_count: int = Field(default=0, serialization_alias="depositCount")
    transaction_count: int = Field(default=0, serialization_alias="transactionCount")
    charge_count: int = Field(default=0, serialization_alias="chargeCount")
    deduct_count: int = Field(default=0, serialization_alias="deductCount")
    refund_count: int = Field(default=0, serialization_alias="refundCount")
