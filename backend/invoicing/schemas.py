"""API request/response shapes - Pydantic (job snapshot, customer rate rows, line items, coverage gaps)"""
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Prices arrive as numbers or as text ("45.50", ""); the rate card parses them
PriceValue = Optional[Union[Decimal, str]]


class _Snapshot(BaseModel):
    """Read-only input snapshot: fetched once per generation attempt, never mutated."""
    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------- Job snapshot ----------
class JobVehicle(_Snapshot):
    id: Optional[str] = None
    vehicle_id: Optional[str] = None
    operator_id: Optional[str] = None
    type: Optional[str] = Field(None, description="vehicle type key, e.g. highway_truck")
    license_plate: Optional[str] = None


class JobWorker(_Snapshot):
    user_id: str
    position: Optional[str] = None
    start_time: Optional[str] = Field(None, description="scheduled start (ISO)")
    end_time: Optional[str] = Field(None, description="scheduled end (ISO)")
    status: Optional[str] = Field(None, description="accepted/pending/rejected...")
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TimesheetEntry(_Snapshot):
    id: Optional[str] = None
    worker_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    shift_start: Optional[str] = None
    shift_end: Optional[str] = None
    break_minutes: Optional[Decimal] = None
    break_total_minutes: Optional[Decimal] = None
    shift_total_minutes: Optional[Decimal] = None
    total_work_minutes: Optional[Decimal] = None
    travel_to_minutes: Optional[Decimal] = None
    travel_from_minutes: Optional[Decimal] = None
    travel_during_minutes: Optional[Decimal] = None
    total_travel_minutes: Optional[Decimal] = None
    mob: Optional[bool] = None


class Timesheet(_Snapshot):
    id: Optional[str] = None
    status: Optional[str] = None
    entries: List[TimesheetEntry] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def none_entries_as_empty(cls, v):
        return v or []


class JobDetail(_Snapshot):
    id: str
    job_number: str
    start_time: str = Field(..., description="job start (ISO); its date anchors day-of-week classification")
    customer_id: Optional[str] = None
    company_id: Optional[str] = None
    workers: List[JobWorker] = Field(default_factory=list)
    vehicles: List[JobVehicle] = Field(default_factory=list)
    timesheets: List[Timesheet] = Field(default_factory=list)

    @field_validator("job_number", "id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        return str(v) if v is not None else v

    @field_validator("workers", "vehicles", "timesheets", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []


# ---------- Customer rate row (flat, one per customer + position) ----------
class CustomerRate(_Snapshot):
    id: Optional[str] = None
    customer_id: Optional[str] = None
    position: str
    # Base service of the position (final fallback for regular hours)
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    service_category: Optional[str] = None
    service_price: PriceValue = None
    service_tax_code_id: Optional[str] = None

    weekday_regular_service_id: Optional[str] = None
    weekday_regular_service_name: Optional[str] = None
    weekday_regular_service_category: Optional[str] = None
    weekday_regular_service_price: PriceValue = None
    weekday_regular_service_tax_code_id: Optional[str] = None

    weekday_overtime_service_id: Optional[str] = None
    weekday_overtime_service_name: Optional[str] = None
    weekday_overtime_service_category: Optional[str] = None
    weekday_overtime_service_price: PriceValue = None
    weekday_overtime_service_tax_code_id: Optional[str] = None

    weekday_double_time_service_id: Optional[str] = None
    weekday_double_time_service_name: Optional[str] = None
    weekday_double_time_service_category: Optional[str] = None
    weekday_double_time_service_price: PriceValue = None
    weekday_double_time_service_tax_code_id: Optional[str] = None

    saturday_overtime_service_id: Optional[str] = None
    saturday_overtime_service_name: Optional[str] = None
    saturday_overtime_service_category: Optional[str] = None
    saturday_overtime_service_price: PriceValue = None
    saturday_overtime_service_tax_code_id: Optional[str] = None

    saturday_double_time_service_id: Optional[str] = None
    saturday_double_time_service_name: Optional[str] = None
    saturday_double_time_service_category: Optional[str] = None
    saturday_double_time_service_price: PriceValue = None
    saturday_double_time_service_tax_code_id: Optional[str] = None

    sunday_holiday_double_time_service_id: Optional[str] = None
    sunday_holiday_double_time_service_name: Optional[str] = None
    sunday_holiday_double_time_service_category: Optional[str] = None
    sunday_holiday_double_time_service_price: PriceValue = None
    sunday_holiday_double_time_service_tax_code_id: Optional[str] = None

    mobilization_service_id: Optional[str] = None
    mobilization_service_name: Optional[str] = None
    mobilization_service_category: Optional[str] = None
    mobilization_service_price: PriceValue = None
    mobilization_service_tax_code_id: Optional[str] = None


class ServiceCatalogItem(_Snapshot):
    """Service catalog row; only used as tax code fallback"""
    id: Optional[str] = None
    name: str
    category: Optional[str] = None
    tax_code_id: Optional[str] = None


class TaxCode(_Snapshot):
    id: str
    name: Optional[str] = None
    rate: Decimal = Field(Decimal("0"), description="percent, e.g. 5 for GST 5%")


class Discount(_Snapshot):
    type: Literal["percent", "amount"] = "percent"
    value: Decimal = Field(Decimal("0"), ge=0)


# ---------- Engine output ----------
class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    job_id: str
    job_number: str
    worker_id: str
    rate_type: str = Field(..., description="e.g. saturday_overtime, or mobilization")
    title: str
    description: str
    service: str = Field(..., description="category:name, or name")
    service_date: str = Field(..., description="job date YYYY-MM-DD")
    price: Decimal
    quantity: Decimal = Field(..., description="hours, or 1 for mobilization")
    tax_code_id: str = ""
    total: Decimal
    worker_name: str = ""
    position: str = ""
    position_key: str = Field("", description="normalized position of the worker, e.g. FIELD_SUPERVISOR")
    shift_times: str = ""
    vehicle_type: str = ""
    break_minutes: Optional[Decimal] = None
    travel_minutes: Optional[Decimal] = None


class CoverageGap(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: str
    rate_type: str = Field(..., description="e.g. weekday_overtime, sunday_holiday_double_time, mobilization")


class CoverageReport(BaseModel):
    gaps: List[CoverageGap] = Field(default_factory=list)
    missing_positions: List[str] = Field(default_factory=list)
    can_generate: bool = True


class InvoiceTotals(BaseModel):
    subtotal: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    taxes: Decimal = Decimal("0.00")
    total_amount: Decimal = Decimal("0.00")


# ---------- Requests / responses ----------
class CoverageRequest(BaseModel):
    jobs: List[JobDetail] = Field(default_factory=list)
    rates: List[CustomerRate] = Field(default_factory=list)
    services: List[ServiceCatalogItem] = Field(default_factory=list)


class InvoicePreviewRequest(CoverageRequest):
    tax_codes: List[TaxCode] = Field(default_factory=list)
    discount: Optional[Discount] = None


class InvoicePreviewResponse(BaseModel):
    items: List[LineItem] = Field(default_factory=list)
    gaps: List[CoverageGap] = Field(default_factory=list)
    missing_positions: List[str] = Field(default_factory=list)
    can_generate: bool = True
    totals: InvoiceTotals = Field(default_factory=InvoiceTotals)
