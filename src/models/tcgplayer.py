"""
Models for TCGplayer listings served by the tcgcsv.com mirror.

Upstream payloads use camelCase keys; they are accepted as validation aliases
while the service itself emits snake_case.
"""

from typing import List, Optional
from pydantic import AliasChoices, BaseModel, Field


class ExtendedDataField(BaseModel):
    """One name/value attribute from a product's extendedData list."""

    name: str
    display_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("displayName", "display_name")
    )
    value: Optional[str] = None


class TCGPlayerPrice(BaseModel):
    product_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("productId", "product_id")
    )
    low_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("lowPrice", "low_price")
    )
    mid_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("midPrice", "mid_price")
    )
    high_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("highPrice", "high_price")
    )
    market_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("marketPrice", "market_price")
    )
    direct_low_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("directLowPrice", "direct_low_price")
    )
    sub_type_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("subTypeName", "sub_type_name")
    )


class TCGPlayerCard(BaseModel):
    """
    A TCGplayer product with its price block and the set it was found in.
    """

    product_id: int = Field(
        0, validation_alias=AliasChoices("productId", "product_id")
    )
    name: str = ""
    clean_name: str = Field(
        "", validation_alias=AliasChoices("cleanName", "clean_name")
    )
    image_url: str = Field("", validation_alias=AliasChoices("imageUrl", "image_url"))
    category_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("categoryId", "category_id")
    )
    group_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("groupId", "group_id")
    )
    url: str = ""
    price: Optional[TCGPlayerPrice] = None
    extended_data: Optional[List[ExtendedDataField]] = Field(
        None, validation_alias=AliasChoices("extendedData", "extended_data")
    )
    set_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("setName", "set_name")
    )
    set_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("setCode", "set_code")
    )

    @property
    def market_price(self) -> Optional[float]:
        return self.price.market_price if self.price else None


class TCGPlayerGroup(BaseModel):
    group_id: int = Field(..., validation_alias=AliasChoices("groupId", "group_id"))
    name: str
    abbreviation: Optional[str] = None


class TCGPlayerSearchResponse(BaseModel):
    """Response model for a TCGplayer search."""

    query: str = Field(..., description="Search query used")
    category_id: int = Field(..., description="TCGplayer category searched")
    results: List[TCGPlayerCard] = Field(..., description="Matching products")
    total_found: int = Field(..., description="Number of matches before truncation")

    class Config:
        json_schema_extra = {
            "example": {
                "query": "luffy",
                "category_id": 68,
                "results": [
                    {
                        "product_id": 512345,
                        "name": "Monkey.D.Luffy (OP06-054)",
                        "set_name": "Wings of the Captain",
                        "set_code": "OP06",
                        "price": {"market_price": 12.0},
                    }
                ],
                "total_found": 1,
            }
        }
