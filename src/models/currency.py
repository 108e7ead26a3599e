from typing import Optional
from pydantic import BaseModel, Field


class CurrencyConversion(BaseModel):
    """Result of converting an amount between two currencies."""

    from_currency: str = Field(..., description="Source currency code")
    to_currency: str = Field(..., description="Target currency code")
    amount: float = Field(..., description="Amount in the source currency")
    rate: float = Field(..., description="Units of target currency per source unit")
    converted_amount: float = Field(..., description="Amount in the target currency")
    timestamp: float = Field(..., description="Rate timestamp (unix seconds)")
    date: str = Field(..., description="Rate date (YYYY-MM-DD)")
    fallback: bool = Field(False, description="True when the live rate was unavailable")
    warning: Optional[str] = Field(None, description="Why a fallback rate was used")

    class Config:
        json_schema_extra = {
            "example": {
                "from_currency": "BRL",
                "to_currency": "USD",
                "amount": 100,
                "rate": 0.19,
                "converted_amount": 19.0,
                "timestamp": 1760659200,
                "date": "2025-10-17",
                "fallback": False,
            }
        }
