"""
Pydantic schemas for plate endpoints.

Field names follow the public JSON contract (`regNums`, `newNum`).
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

Number = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]
NumberId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]


class CreateRequest(BaseModel):
    reg_nums: list[Number] = Field(..., alias="regNums")


class DeleteRequest(BaseModel):
    ids: list[NumberId]


class UpdateRequest(BaseModel):
    id: NumberId
    new_num: Number = Field(..., alias="newNum")
