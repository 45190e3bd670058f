# app/models.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union


class SortItem(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    quantity: Optional[Union[int, float, str]] = None

    @field_validator('quantity', mode='before')
    @classmethod
    def drop_bad_quantity(cls, value):
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return None
        return value


class LayoutAreaIn(BaseModel):
    area_name: str = Field(min_length=1)
    sequence: int


class SortedItem(BaseModel):
    id: str
    area_name: str
    order_index: int


class SortResponse(BaseModel):
    sorted: List[SortedItem]
    areas: Optional[List[str]] = None


class SortErrorResponse(SortResponse):
    error: str
    message: str


class LayoutArea(BaseModel):
    area_name: str
    sequence: int


class LayoutResponse(BaseModel):
    user_id: str
    shop_name: str
    areas: List[LayoutArea]


class SaveLayoutRequest(BaseModel):
    user_id: str = Field(min_length=1)
    shop_name: str = Field(min_length=1)
    areas: List[str]

    @field_validator('areas')
    @classmethod
    def unique_area_names(cls, value: List[str]) -> List[str]:
        names = [v.strip() for v in value if v.strip()]
        if len(set(names)) != len(names):
            raise ValueError('area names must be unique within a layout')
        return names


class DefaultLayoutResponse(BaseModel):
    shop_name: Optional[str] = None
    areas: List[str]
    presets: List[str]
