"""Transfer endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.helpers import get_current_user, get_dwolla_client
from database import get_db
from integrations.protocols import PaymentNetworkClient
from models import User
from schemas import TransferRequest, TransferResponse, TransferStatusResponse
from services.exceptions import (
    BankLinkNotFoundError,
    InvalidAmountError,
    LedgerIntegrityError,
    TransferError,
    TransferNotFoundError,
)
from services.transfer_service import TransferService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transfers", tags=["transfers"])


def _get_transfer_service(
    payments: PaymentNetworkClient = Depends(get_dwolla_client),
) -> TransferService:
    return TransferService(payments)


@router.post("", response_model=TransferResponse, status_code=201)
def create_transfer(
    body: TransferRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    service: TransferService = Depends(_get_transfer_service),
):
    """Send money from one of the user's banks to a shared bank."""
    try:
        url = service.transfer_between_banks(
            db, user, body.source_bank_id, body.recipient_shareable_id, body.amount
        )
    except InvalidAmountError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except BankLinkNotFoundError:
        raise HTTPException(status_code=404, detail="Bank not found")
    except LedgerIntegrityError:
        raise HTTPException(status_code=409, detail="Recipient bank is ambiguous")
    except TransferError:
        raise HTTPException(status_code=502, detail="Transfer failed")
    return TransferResponse(transfer_url=url)


@router.get("/status", response_model=TransferStatusResponse)
def get_transfer_status(
    url: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    service: TransferService = Depends(_get_transfer_service),
):
    try:
        return service.get_transfer_status(db, user, url)
    except TransferNotFoundError:
        raise HTTPException(status_code=404, detail="Transfer not found")
    except TransferError:
        raise HTTPException(status_code=502, detail="Transfer status unavailable")
