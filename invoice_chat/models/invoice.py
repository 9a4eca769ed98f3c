from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Wire format is camelCase (validator JSON envelope and API responses)
_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


class LineItem(BaseModel):
    model_config = _camel

    description: str | None = None
    quantity: float | None = None
    unit_price: float | None = None
    total: float | None = None


class InvoiceData(BaseModel):
    model_config = _camel

    customer_name: str | None = None
    vendor_name: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    amount: float | None = None
    line_items: list[LineItem] | None = None


class InvoiceValidation(BaseModel):
    model_config = _camel

    is_valid_invoice: bool
    document_type: str | None = None
    reason: str | None = None


class InvoiceExtraction(BaseModel):
    """Structured reply of the validator call"""
    model_config = _camel

    validation: InvoiceValidation
    data: InvoiceData = Field(default_factory=InvoiceData)

    @field_validator("data", mode="before")
    @classmethod
    def _null_data_is_empty(cls, value):
        return {} if value is None else value


class InvoiceLineItemRecord(BaseModel):
    model_config = _camel

    id: str
    invoice_id: str
    description: str | None = None
    quantity: float | None = None
    unit_price: float | None = None
    total: float | None = None


class InvoiceRecord(BaseModel):
    model_config = _camel

    id: str
    chat_id: str
    message_id: str
    customer_name: str | None = None
    vendor_name: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    amount: float | None = None
    created_at: datetime
    line_items: list[InvoiceLineItemRecord] = Field(default_factory=list)


class InvoiceListResponse(BaseModel):
    invoices: list[InvoiceRecord]


class TokenUsage(BaseModel):
    model_config = _camel

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0


class TokenStatsResponse(BaseModel):
    model_config = _camel

    average_input_tokens: int
    average_output_tokens: int
    average_total_tokens: int
    average_cost: str
    total_invoices: int
    total_cost: str


class InvoiceOutcome(BaseModel):
    """Result of validating, deduplicating and persisting one uploaded document"""

    extraction: InvoiceExtraction
    is_duplicate: bool = False
    existing_invoice: dict | None = None
    invoice_id: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.extraction.validation.is_valid_invoice

    @property
    def is_new_invoice(self) -> bool:
        return self.is_valid and not self.is_duplicate
