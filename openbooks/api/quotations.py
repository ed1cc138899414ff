"""
Quotation API Endpoints

Status updates, conversion to invoice and deletion. The current quotation is
read through the query cache and checked against the lifecycle rules before
any mutation is forwarded to the backend.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from openbooks.api.deps import get_quotation_service
from openbooks.models.quotations import (
    ConversionResult,
    CreateQuotationInput,
    Quotation,
    QuotationStatus,
    QuotationTotals,
    QuotationType,
)
from openbooks.services.auth import verify_api_key
from openbooks.services.quotations import QuotationService

router = APIRouter(prefix="/quotations", tags=["quotations"], dependencies=[Depends(verify_api_key)])


class UpdateStatusBody(BaseModel):
    status: QuotationStatus
    type: QuotationType = QuotationType.SERVER


class ConvertBody(BaseModel):
    type: QuotationType = QuotationType.SERVER
    issue_date: Optional[date] = Field(default=None, alias="issueDate")
    due_date: Optional[date] = Field(default=None, alias="dueDate")


async def _resolve(service: QuotationService, quotation_id: str, quotation_type: QuotationType) -> Quotation:
    # Local quotations live only on the client; there is nothing to fetch
    if quotation_type == QuotationType.LOCAL:
        return Quotation(id=quotation_id, type=QuotationType.LOCAL)
    return await service.get_quotation(quotation_id)


@router.get("", response_model=List[Quotation])
async def list_quotations(
    customer_id: Optional[str] = Query(default=None, alias="customerId"),
    status: Optional[QuotationStatus] = None,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: QuotationService = Depends(get_quotation_service),
):
    return await service.list_quotations(
        {
            "customerId": customer_id,
            "status": status.value if status else None,
            "startDate": start_date,
            "endDate": end_date,
            "limit": limit,
            "offset": offset,
        }
    )


@router.get("/{quotation_id}", response_model=Quotation)
async def get_quotation(quotation_id: str, service: QuotationService = Depends(get_quotation_service)):
    return await service.get_quotation(quotation_id)


@router.get("/{quotation_id}/totals", response_model=QuotationTotals)
async def get_quotation_totals(quotation_id: str, service: QuotationService = Depends(get_quotation_service)):
    return await service.get_totals(quotation_id)


@router.post("", response_model=Quotation, status_code=201)
async def create_quotation(body: CreateQuotationInput, service: QuotationService = Depends(get_quotation_service)):
    return await service.create_quotation(body)


@router.patch("/{quotation_id}/status", response_model=Quotation)
async def update_quotation_status(
    quotation_id: str,
    body: UpdateStatusBody,
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await _resolve(service, quotation_id, body.type)
    return await service.update_status(quotation, body.status)


@router.post("/{quotation_id}/convert-to-invoice", response_model=ConversionResult)
async def convert_to_invoice(
    quotation_id: str,
    body: Optional[ConvertBody] = None,
    service: QuotationService = Depends(get_quotation_service),
):
    body = body or ConvertBody()
    quotation = await _resolve(service, quotation_id, body.type)
    return await service.convert_to_invoice(quotation, body.issue_date, body.due_date)


@router.delete("/{quotation_id}", status_code=204)
async def delete_quotation(
    quotation_id: str,
    type: QuotationType = QuotationType.SERVER,
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await _resolve(service, quotation_id, type)
    await service.delete_quotation(quotation)
    return Response(status_code=204)
