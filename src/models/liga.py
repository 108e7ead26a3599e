from enum import Enum
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, Field


class PriceLevel(str, Enum):
    cheap = "cheap"
    medium = "medium"
    expensive = "expensive"


class LigaPrice(BaseModel):
    value: float
    type: str


class LigaCard(BaseModel):
    """
    A single offer scraped from the Liga One Piece storefront. Prices are in BRL.
    """

    name: str
    numeric_code: str = Field(
        "", validation_alias=AliasChoices("numericCode", "numeric_code")
    )
    price: float = 0.0
    currency: str = "BRL"
    price_usd: Optional[float] = Field(
        None, validation_alias=AliasChoices("priceUSD", "price_usd")
    )
    image_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("imageUrl", "image_url")
    )
    url: str = ""
    rarity: Optional[str] = None
    set_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("set", "set_name")
    )
    condition: Optional[str] = None
    seller: Optional[str] = None
    stock: Optional[int] = None
    price_level: Optional[PriceLevel] = Field(
        None, validation_alias=AliasChoices("priceLevel", "price_level")
    )
    all_prices: List[LigaPrice] = Field(
        default_factory=list, validation_alias=AliasChoices("allPrices", "all_prices")
    )


class LigaSearchResponse(BaseModel):
    """Response model for a Liga One Piece search."""

    query: str = Field(..., description="Search query used")
    source: str = Field("Liga One Piece", description="Storefront name")
    results: List[LigaCard] = Field(..., description="Scraped offers")
    total_found: int = Field(..., description="Number of offers found")
    exchange_rate: Optional[float] = Field(
        None, description="BRL -> USD rate used for price_usd"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "query": "luffy",
                "source": "Liga One Piece",
                "results": [
                    {
                        "name": "Monkey D. Luffy",
                        "numeric_code": "OP06-054",
                        "price": 50.0,
                        "currency": "BRL",
                        "price_usd": 9.5,
                        "set_name": "Wings of the Captain",
                    }
                ],
                "total_found": 1,
                "exchange_rate": 0.19,
            }
        }
