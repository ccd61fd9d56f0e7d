from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from typing import Optional
import logging

from app.modules.invoices.service import to_money
from app.modules.returns.models import Return
from app.modules.returns.schemas import ReturnRecord, ReturnReason, ReturnList

logger = logging.getLogger(__name__)


def to_return_record(row: Return) -> ReturnRecord:
    return ReturnRecord(
        return_number=row.number,
        item_id=row.item_id,
        quantity=row.quantity,
        unit_value_after_discount=row.unit_value_after_discount,
        total_value=row.total_value,
        reason=ReturnReason(row.reason),
        linked_invoice_number=row.linked_invoice_number
    )


class ReturnService:
    def __init__(self, db: Session):
        self.db = db

    def create_return(self, record: ReturnRecord) -> ReturnRecord:
        """Registrar una devolución"""
        try:
            row = Return(
                number=record.return_number,
                item_id=record.item_id,
                quantity=record.quantity,
                unit_value_after_discount=to_money(record.unit_value_after_discount),
                total_value=to_money(record.total_value),
                reason=record.reason.value,
                linked_invoice_number=record.linked_invoice_number
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.info(f"Return {row.number} created for item {row.item_id} ({row.quantity} units)")
            return to_return_record(row)
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una devolución con el número {record.return_number}"
            )

    def get_returns(self, invoice_number: Optional[str] = None) -> ReturnList:
        query = self.db.query(Return)
        if invoice_number:
            query = query.filter(Return.linked_invoice_number == invoice_number)
        rows = query.order_by(desc(Return.created_at)).all()
        return ReturnList(returns=[to_return_record(row) for row in rows], total=len(rows))
