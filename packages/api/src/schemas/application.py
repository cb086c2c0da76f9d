# This project was developed with assistance from AI tools.
"""Loan application record embedded in every deal.

The field set is the contract shared by the extraction prompt, the merge
engine, and the dashboard. Every field is either a value or an explicit null.
"""

from pydantic import BaseModel, ConfigDict, Field

# Oracle output is loosely typed: monetary fields come back as bare numbers,
# descriptive fields as strings.
FieldValue = str | int | float | None


class LoanApplication(BaseModel):
    """Structured loan application assembled from email and documents."""

    model_config = ConfigDict(extra="ignore")

    # -- Loan details --
    loan_amount: FieldValue = None
    property_value: FieldValue = None
    interest_rate: FieldValue = None
    protective_equity: FieldValue = None
    term_months: FieldValue = None
    cltv: FieldValue = None

    # -- Subject property --
    property_address: FieldValue = None
    property_sqft: FieldValue = None
    property_type: FieldValue = None
    bedrooms: FieldValue = None
    bathrooms: FieldValue = None
    lot_size: FieldValue = None
    year_built: FieldValue = None

    # -- 1st trust deed --
    first_td_balance: FieldValue = None
    first_td_monthly_payment: FieldValue = None
    first_td_interest_rate: FieldValue = None
    monthly_hoa_fees: FieldValue = None

    # -- Borrower --
    borrower_name: FieldValue = None
    borrower_ssn: FieldValue = None
    borrower_dob: FieldValue = None
    borrower_phone: FieldValue = None
    borrower_address: FieldValue = None
    employment: FieldValue = None
    employment_income: FieldValue = None
    liquid_assets: FieldValue = None
    rental_income: FieldValue = None
    mid_fico: FieldValue = None

    # -- Meta --
    missing_fields: list[str] = Field(default_factory=list)
    confidence_notes: dict[str, str] = Field(default_factory=dict)


META_FIELDS: tuple[str, ...] = ("missing_fields", "confidence_notes")

APPLICATION_FIELDS: tuple[str, ...] = tuple(
    name for name in LoanApplication.model_fields if name not in META_FIELDS
)

# Order matters: missing_fields is reported in this order.
REQUIRED_FIELDS: tuple[str, ...] = (
    "loan_amount",
    "property_value",
    "interest_rate",
    "term_months",
    "property_address",
    "borrower_name",
    "employment",
    "employment_income",
    "mid_fico",
    "liquid_assets",
)

# Minimum set for a deal to be handed to the loan officer.
REVIEW_READY_FIELDS: tuple[str, ...] = ("borrower_name", "loan_amount", "property_address")
