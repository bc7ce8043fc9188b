import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from database import get_db
from event_service import get_event_or_404
from models import Account, EventAccount, Organizer
from schemas import AccountResponse
from security import require_staff, staff_label
from utils import PDF_TYPES, QR_PDF_MAX_BYTES, encode_blob, read_upload_bytes, require_text

router = APIRouter()
logger = logging.getLogger(__name__)


def account_payload(account: Account, include_qr: bool = True) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        account_name=account.account_name,
        bank_name=account.bank_name,
        account_number=account.account_number,
        ifsc_code=account.ifsc_code,
        qr_code_pdf=encode_blob(account.qr_code_pdf) if include_qr else None,
    )


def get_account_or_404(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return account


@router.post("/admin/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    accountName: str = Form(None),
    bankName: str = Form(None),
    accountNumber: str = Form(None),
    ifscCode: str = Form(None),
    qrCodePdf: Optional[UploadFile] = File(None),
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    account = Account(
        account_name=require_text(accountName, "accountName"),
        bank_name=require_text(bankName, "bankName"),
        account_number=require_text(accountNumber, "accountNumber"),
        ifsc_code=require_text(ifscCode, "ifscCode").upper(),
        qr_code_pdf=read_upload_bytes(qrCodePdf, "qrCodePdf", PDF_TYPES, QR_PDF_MAX_BYTES, required=False),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Account %s created by %s", account.id, staff_label(organizer))
    return account_payload(account)


@router.get("/admin/accounts", response_model=List[AccountResponse])
def list_accounts(
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    accounts = db.query(Account).order_by(Account.id).all()
    return [account_payload(a, include_qr=False) for a in accounts]


@router.get("/admin/accounts/event/{event_id}", response_model=AccountResponse)
def get_account_for_event(event_id: int, db: Session = Depends(get_db)):
    get_event_or_404(db, event_id)
    account = (
        db.query(Account)
        .join(EventAccount, EventAccount.account_id == Account.id)
        .filter(EventAccount.event_id == event_id)
        .order_by(Account.id)
        .first()
    )
    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No account assigned to this event")
    return account_payload(account)


@router.get("/admin/accounts/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    _: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return account_payload(get_account_or_404(db, account_id))


@router.get("/admin/accounts/{account_id}/qr")
def download_qr_code(account_id: int, db: Session = Depends(get_db)):
    account = get_account_or_404(db, account_id)
    if not account.qr_code_pdf:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found")
    return Response(
        content=account.qr_code_pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=account_{account.id}_qr.pdf"},
    )


@router.put("/admin/accounts/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    accountName: Optional[str] = Form(None),
    bankName: Optional[str] = Form(None),
    accountNumber: Optional[str] = Form(None),
    ifscCode: Optional[str] = Form(None),
    qrCodePdf: Optional[UploadFile] = File(None),
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    account = get_account_or_404(db, account_id)
    if accountName is not None:
        account.account_name = require_text(accountName, "accountName")
    if bankName is not None:
        account.bank_name = require_text(bankName, "bankName")
    if accountNumber is not None:
        account.account_number = require_text(accountNumber, "accountNumber")
    if ifscCode is not None:
        account.ifsc_code = require_text(ifscCode, "ifscCode").upper()
    qr = read_upload_bytes(qrCodePdf, "qrCodePdf", PDF_TYPES, QR_PDF_MAX_BYTES, required=False)
    if qr is not None:
        account.qr_code_pdf = qr
    db.commit()
    db.refresh(account)
    logger.info("Account %s updated by %s", account.id, staff_label(organizer))
    return account_payload(account)


@router.delete("/admin/accounts/{account_id}")
def delete_account(
    account_id: int,
    organizer: Optional[Organizer] = Depends(require_staff),
    db: Session = Depends(get_db),
):
    account = get_account_or_404(db, account_id)
    db.query(EventAccount).filter(EventAccount.account_id == account_id).delete(synchronize_session=False)
    db.delete(account)
    db.commit()
    logger.info("Account %s deleted by %s", account_id, staff_label(organizer))
    return {"message": "Account deleted"}
