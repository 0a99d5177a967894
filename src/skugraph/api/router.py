# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from fastapi import APIRouter

from skugraph.api.codec import router as codec_router
from skugraph.api.relationship_types import router as relationship_types_router
from skugraph.api.relationships import router as relationships_router
from skugraph.api.sku import router as sku_router

v1_router = APIRouter()
v1_router.include_router(relationship_types_router)
v1_router.include_router(relationships_router)
v1_router.include_router(sku_router)
v1_router.include_router(codec_router)
