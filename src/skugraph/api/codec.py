# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from fastapi import APIRouter, Depends

from skugraph.api.deps import get_codec
from skugraph.schemas.codec import (
    CodecValidationResponse,
    CodeRequest,
    CodeResponse,
    DecodeResponse,
    DescribeResponse,
    EncodeRequest,
)
from skugraph.services.classification_codec import EXTRA_CODES, ClassificationCodec

router = APIRouter(prefix="/codec", tags=["codec"])


@router.post("/encode", response_model=CodeResponse)
async def encode(
    body: EncodeRequest,
    codec: ClassificationCodec = Depends(get_codec),
) -> CodeResponse:
    code = codec.encode(
        body.format,
        brand=body.brand,
        variant=body.variant,
        origin=body.origin,
        extras=body.extras,
    )
    return CodeResponse(code=code)


@router.post("/decode", response_model=DecodeResponse)
async def decode(
    body: CodeRequest,
    codec: ClassificationCodec = Depends(get_codec),
) -> DecodeResponse:
    decoded = codec.decode(body.code)
    extras = sorted(decoded.extras, key=lambda extra: EXTRA_CODES[extra])
    return DecodeResponse(format=decoded.format, extras=extras)


@router.post("/validate", response_model=CodecValidationResponse)
async def validate(
    body: CodeRequest,
    codec: ClassificationCodec = Depends(get_codec),
) -> CodecValidationResponse:
    result = codec.validate(body.code)
    return CodecValidationResponse(is_valid=result.is_valid, errors=result.errors)


@router.post("/describe", response_model=DescribeResponse)
async def describe(
    body: CodeRequest,
    codec: ClassificationCodec = Depends(get_codec),
) -> DescribeResponse:
    return DescribeResponse(code=body.code, description=codec.describe(body.code))
