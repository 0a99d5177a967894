# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skugraph.api.deps import get_entity_providers, get_sequence_counter
from skugraph.db.session import get_db
from skugraph.errors import (
    DuplicateAssignmentError,
    ExhaustedRetriesError,
    KindNotAllowedError,
    NoTemplateFoundError,
    SkuGraphError,
)
from skugraph.main import app, status_for
from skugraph.repositories.sequence_repository import SqlSequenceCounter
from skugraph.services.entity_data import EntityDataRegistry, StaticEntityProvider
from tests.conftest import TENANT

HEADERS = {"X-Tenant-ID": TENANT}

PROJECT_TEMPLATE = {
    "name": "Project code",
    "entity_kind": "Project",
    "template": "PRJ-{category}-{sequence}",
    "components": {
        "category": {
            "type": "entity_field",
            "path": "kind",
            "transform": {"standard": "STD"},
            "maxLength": 3,
            "fallback": "GEN",
        },
        "sequence": {"type": "sequence", "length": 3},
    },
    "is_default": True,
}


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    providers: EntityDataRegistry,
) -> AsyncIterator[httpx.AsyncClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sequence_counter] = lambda: SqlSequenceCounter(session_factory)
    app.dependency_overrides[get_entity_providers] = lambda: providers
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class TestErrorMapping:
    def test_status_for(self) -> None:
        assert status_for(NoTemplateFoundError("Product")) == 404
        assert status_for(KindNotAllowedError("supplier", "Budget", "Product")) == 422
        assert status_for(DuplicateAssignmentError("Product", "p-1")) == 409
        assert status_for(ExhaustedRetriesError("ABC", 3)) == 503
        assert status_for(SkuGraphError("other")) == 400


class TestHealth:
    async def test_health(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestCodecEndpoints:
    async def test_encode(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/v1/codec/encode",
            json={"format": "ENVASADOS", "brand": "Dukka", "extras": ["ORGANICO", "SIN_AZUCAR"]},
        )
        assert response.status_code == 200
        assert response.json() == {"code": "100 DUK 59"}

    async def test_encode_unknown_format(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/v1/codec/encode", json={"format": "SECOS"})
        assert response.status_code == 422

    async def test_decode(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/v1/codec/decode", json={"code": "200 DUK KOMB ORI 38"})
        assert response.json() == {"format": "CONGELADOS", "extras": ["INTEGRAL", "VEGANO"]}

    async def test_validate(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/v1/codec/validate", json={"code": "999 DUK"})
        body = response.json()
        assert body["is_valid"] is False
        assert body["errors"] == ["Invalid format code. Must be 100, 200, or 300"]

    async def test_describe(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/v1/codec/describe", json={"code": "300 ABC 5"})
        assert response.json()["description"] == "Format: Frescos | Extras: Orgánico"


class TestRelationshipEndpoints:
    async def test_type_lifecycle(self, client: httpx.AsyncClient) -> None:
        installed = await client.post("/v1/relationship-types/builtin")
        assert installed.status_code == 200
        assert "supplied_by" in installed.json()

        created = await client.post(
            "/v1/relationship-types",
            json={
                "name": "sponsors",
                "source_kinds": ["Contact"],
                "target_kinds": ["Project"],
                "reverse_name": "sponsored_by",
            },
        )
        assert created.status_code == 201
        assert [t["name"] for t in created.json()] == ["sponsors", "sponsored_by"]

        duplicate = await client.post(
            "/v1/relationship-types",
            json={"name": "sponsors", "source_kinds": ["*"], "target_kinds": ["*"]},
        )
        assert duplicate.status_code == 409

        assert (await client.delete("/v1/relationship-types/supplier")).status_code == 409
        assert (await client.delete("/v1/relationship-types/sponsors")).status_code == 204
        assert (await client.get("/v1/relationship-types/sponsors")).status_code == 404

    async def test_edge_lifecycle(self, client: httpx.AsyncClient) -> None:
        await client.post("/v1/relationship-types/builtin")
        edge = {
            "relationship_type": "supplier",
            "source_kind": "Vendor",
            "source_id": "v-1",
            "target_kind": "Product",
            "target_id": "p-1",
        }

        missing_tenant = await client.post("/v1/relationships", json=edge)
        assert missing_tenant.status_code == 422

        created = await client.post("/v1/relationships", json=edge, headers=HEADERS)
        assert created.status_code == 201
        body = created.json()
        assert body["strength"] == 3
        assert body["paired_edge_id"] is not None

        listed = await client.get(
            "/v1/relationships", params={"relationship_type": "supplied_by"}, headers=HEADERS
        )
        assert listed.json()["total"] == 1

        patched = await client.patch(
            f"/v1/relationships/{body['id']}", json={"strength": 5}, headers=HEADERS
        )
        assert patched.json()["strength"] == 5
        companion = await client.get(
            f"/v1/relationships/{body['paired_edge_id']}", headers=HEADERS
        )
        assert companion.json()["strength"] == 5

        other_tenant = await client.get(
            f"/v1/relationships/{body['id']}", headers={"X-Tenant-ID": "tenant-b"}
        )
        assert other_tenant.status_code == 404

        removed = await client.delete(f"/v1/relationships/{body['id']}", headers=HEADERS)
        assert removed.status_code == 204
        remaining = await client.get("/v1/relationships/entity/Product/p-1", headers=HEADERS)
        assert remaining.json() == []

    async def test_kind_not_allowed(self, client: httpx.AsyncClient) -> None:
        await client.post("/v1/relationship-types/builtin")
        response = await client.post(
            "/v1/relationships",
            json={
                "relationship_type": "supplier",
                "source_kind": "Budget",
                "source_id": "b-1",
                "target_kind": "Product",
                "target_id": "p-1",
            },
            headers=HEADERS,
        )
        assert response.status_code == 422
        assert "does not allow" in response.json()["detail"]

    async def test_mention_and_interaction(self, client: httpx.AsyncClient) -> None:
        await client.post("/v1/relationship-types/builtin")
        mention = await client.post(
            "/v1/relationships/mentions",
            json={
                "source_kind": "Task",
                "source_id": "t-1",
                "target_kind": "User",
                "target_id": "u-1",
                "context_type": "comment",
            },
            headers=HEADERS,
        )
        assert mention.status_code == 201
        assert mention.json()["tags"] == ["mention", "comment"]

        recorded = await client.post(
            "/v1/relationships/interactions",
            json={
                "source_kind": "User",
                "source_id": "u-1",
                "target_kind": "Task",
                "target_id": "t-1",
                "relationship_type": "mentioned_in",
            },
            headers=HEADERS,
        )
        assert recorded.json() == {"recorded": True}

        stats = await client.get("/v1/relationships/stats", headers=HEADERS)
        assert stats.json()[0]["relationship_type"] == "mentioned_in"


class TestSKUEndpoints:
    async def test_generate_flow(
        self, client: httpx.AsyncClient, entity_rows: dict[str, StaticEntityProvider]
    ) -> None:
        entity_rows["Project"].add("prj-1", {"kind": "standard"})
        created = await client.post("/v1/sku/templates", json=PROJECT_TEMPLATE, headers=HEADERS)
        assert created.status_code == 201
        template_id = created.json()["id"]

        request = {"entity_kind": "Project", "entity_id": "prj-1"}
        preview = await client.post("/v1/sku/preview", json=request, headers=HEADERS)
        assert preview.status_code == 200
        assert preview.json()["sku"] == "PRJ-STD-001"
        assert preview.json()["template"]["id"] == template_id

        generated = await client.post("/v1/sku/generate", json=request, headers=HEADERS)
        assert generated.status_code == 201
        assert generated.json() == {"sku": "PRJ-STD-001"}

        again = await client.post("/v1/sku/generate", json=request, headers=HEADERS)
        assert again.status_code == 409

        stored = await client.get("/v1/sku/entities/Project/prj-1", headers=HEADERS)
        assert stored.json()["sku_value"] == "PRJ-STD-001"
        assert stored.json()["version"] == 1

        taken = await client.post("/v1/sku/validate", json={"sku": "PRJ-STD-001"})
        assert taken.json() == {"is_valid": False, "reason": "SKU already exists"}

        retired = await client.delete("/v1/sku/entities/Project/prj-1", headers=HEADERS)
        assert retired.json()["is_active"] is False
        missing = await client.get("/v1/sku/entities/Project/prj-1", headers=HEADERS)
        assert missing.status_code == 404

        template = await client.get(f"/v1/sku/templates/{template_id}", headers=HEADERS)
        assert template.json()["usage_count"] == 1

    async def test_generate_errors(
        self, client: httpx.AsyncClient, entity_rows: dict[str, StaticEntityProvider]
    ) -> None:
        no_template = await client.post(
            "/v1/sku/generate",
            json={"entity_kind": "Project", "entity_id": "prj-1"},
            headers=HEADERS,
        )
        assert no_template.status_code == 404

        await client.post("/v1/sku/templates", json=PROJECT_TEMPLATE, headers=HEADERS)
        no_entity = await client.post(
            "/v1/sku/generate",
            json={"entity_kind": "Project", "entity_id": "ghost"},
            headers=HEADERS,
        )
        assert no_entity.status_code == 404

        unknown_kind = await client.post(
            "/v1/sku/generate",
            json={"entity_kind": "Spaceship", "entity_id": "s-1"},
            headers=HEADERS,
        )
        assert unknown_kind.status_code == 404

    async def test_template_validation(self, client: httpx.AsyncClient) -> None:
        bad = dict(PROJECT_TEMPLATE)
        bad["components"] = {"x": {"type": "nonsense"}}
        response = await client.post("/v1/sku/templates", json=bad, headers=HEADERS)
        assert response.status_code == 422

    async def test_template_default_and_update(self, client: httpx.AsyncClient) -> None:
        first = (
            await client.post("/v1/sku/templates", json=PROJECT_TEMPLATE, headers=HEADERS)
        ).json()
        second = (
            await client.post(
                "/v1/sku/templates",
                json={**PROJECT_TEMPLATE, "name": "Alternate", "is_default": False},
                headers=HEADERS,
            )
        ).json()

        promoted = await client.patch(
            f"/v1/sku/templates/{second['id']}", json={"is_default": True}, headers=HEADERS
        )
        assert promoted.json()["is_default"] is True

        default = await client.get("/v1/sku/templates/default/Project", headers=HEADERS)
        assert default.json()["id"] == second["id"]
        listed = await client.get(
            "/v1/sku/templates", params={"entity_kind": "Project"}, headers=HEADERS
        )
        flags = {t["id"]: t["is_default"] for t in listed.json()}
        assert flags == {first["id"]: False, second["id"]: True}
