# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from pydantic import BaseModel, Field

from skugraph.services.classification_codec import ProductExtra, ProductFormat


class EncodeRequest(BaseModel):
    format: ProductFormat
    brand: str | None = None
    variant: str | None = None
    origin: str | None = None
    extras: list[ProductExtra] = []


class CodeRequest(BaseModel):
    code: str = Field(..., min_length=1)


class CodeResponse(BaseModel):
    code: str


class DecodeResponse(BaseModel):
    format: ProductFormat | None
    extras: list[ProductExtra]


class CodecValidationResponse(BaseModel):
    is_valid: bool
    errors: list[str]


class DescribeResponse(BaseModel):
    code: str
    description: str
