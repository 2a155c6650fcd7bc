"""HTTP API tests against the FastAPI app."""

ADMIN = {"X-User-Role": "admin"}

NEW_SECTION = {
    "id": "promo-banner",
    "name": "Promo Banner",
    "component_name": "PromoBanner",
    "category": "Call to Action",
    "description": "A slim promotional strip",
    "default_props": {"text": "Free shipping"},
    "tags": ["promo"],
}


# =============================================================================
# SERVICE
# =============================================================================

class TestService:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["sections_loaded"] == 16
        assert data["hero_variants_active"] == 10

    def test_root(self, client):
        assert client.get("/").json()["service"] == "Page Builder API"


# =============================================================================
# SECTIONS
# =============================================================================

class TestSections:
    def test_list_active(self, client):
        ids = [s["id"] for s in client.get("/v1/sections").json()]
        assert "hero-centered" in ids
        assert "hero-section" not in ids
        all_ids = [s["id"] for s in client.get("/v1/sections", params={"include_inactive": True}).json()]
        assert "hero-section" in all_ids

    def test_get_section(self, client):
        data = client.get("/v1/sections/hero-video").json()
        assert data["variant"] == "video"
        assert data["default_props"]

    def test_unknown_section_lists_available(self, client):
        response = client.get("/v1/sections/hero-diagonal")
        assert response.status_code == 404
        assert "Available:" in response.json()["detail"]

    def test_search_and_category(self, client):
        assert "hero-video" in [s["id"] for s in client.get("/v1/sections/search", params={"q": "video"}).json()]
        content = {s["id"] for s in client.get("/v1/sections/category/Content").json()}
        assert content == {"text-block", "image-text"}

    def test_stats_and_integration(self, client):
        assert client.get("/v1/sections/stats").json()["total"] == 16
        assert client.get("/v1/sections/integration").json()["is_valid"] is True

    def test_editor_schema_and_validate(self, client):
        schema = client.get("/v1/sections/hero-centered/editor-schema").json()
        assert schema["sections"]
        result = client.post(
            "/v1/sections/hero-centered/validate",
            json={"title": {"text": "", "tag": "h1"}},
        ).json()
        assert result["is_valid"] is False

    def test_mutation_requires_admin(self, client):
        response = client.post("/v1/sections", json=NEW_SECTION)
        assert response.status_code == 403
        response = client.post("/v1/sections", json=NEW_SECTION, headers={"X-User-Role": "editor"})
        assert response.status_code == 403

    def test_register_patch_delete(self, client):
        response = client.post("/v1/sections", json=NEW_SECTION, headers=ADMIN)
        assert response.status_code == 201
        assert client.get("/v1/sections/promo-banner").status_code == 200

        patched = client.patch("/v1/sections/promo-banner", json={"is_active": False}, headers=ADMIN)
        assert patched.json()["is_active"] is False

        assert client.delete("/v1/sections/promo-banner", headers=ADMIN).json() == {"deleted": "promo-banner"}
        assert client.get("/v1/sections/promo-banner").status_code == 404

    def test_register_without_default_props(self, client):
        descriptor = {k: v for k, v in NEW_SECTION.items() if k != "default_props"}
        response = client.post("/v1/sections", json=descriptor, headers=ADMIN)
        assert response.status_code == 422
        assert "Default props are required" in response.json()["detail"]["errors"]
        assert client.get("/v1/sections/promo-banner").status_code == 404

    def test_reload(self, client):
        client.post("/v1/sections", json=NEW_SECTION, headers=ADMIN)
        assert client.post("/v1/sections/reload", headers=ADMIN).json() == {"reloaded": True, "count": 16}


# =============================================================================
# RENDER
# =============================================================================

class TestRender:
    def test_render_section(self, client):
        data = client.post(
            "/v1/render",
            json={"section_id": "hero-centered", "properties": {"title": {"text": "Hello"}}},
        ).json()
        assert data["status"] == "rendered"
        assert "Hello" in data["html"]
        assert "binding" not in data

    def test_unknown_section_is_not_an_http_error(self, client):
        response = client.post("/v1/render", json={"section_id": "mystery", "mode": "editor"})
        assert response.status_code == 200
        assert response.json()["fallback"] == "unknown_section"

    def test_render_inline_page(self, client):
        body = {
            "mode": "preview",
            "sections": [
                {"id": "b", "page_id": "draft", "order": 1, "type_id": "text-block", "properties": {"content": "B"}},
                {"id": "a", "page_id": "draft", "order": 0, "type_id": "text-block", "properties": {"content": "A"}},
            ],
        }
        data = client.post("/v1/render/page", json=body).json()
        assert [s["instance_id"] for s in data["sections"]] == ["a", "b"]

    def test_cache_lifecycle(self, client):
        result = client.post("/v1/render/preload", json={"variants": ["centered"]}).json()
        assert len(result["loaded"]) == 3
        assert client.get("/v1/render/cache").json()["components"] == 1
        assert client.delete("/v1/render/cache").json() == {"cleared": True}
        assert client.get("/v1/render/cache").json()["components"] == 0


# =============================================================================
# MIGRATIONS
# =============================================================================

class TestMigrations:
    LEGACY = {"title": "Welcome", "buttonText": "Get Started", "buttonLink": "/signup", "backgroundImage": "/hero-bg.jpg"}

    def test_migrate(self, client):
        data = client.post("/v1/migrations/migrate", json={"properties": self.LEGACY}).json()
        assert data["success"] is True
        assert data["new_type_id"] == "hero-centered"

    def test_failed_migration_is_reported_in_body(self, client):
        response = client.post(
            "/v1/migrations/migrate",
            json={"properties": {"title": ""}, "target_variant": "video"},
        )
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert len(response.json()["errors"]) == 2

    def test_recommend(self, client):
        data = client.post("/v1/migrations/recommend", json=self.LEGACY).json()
        assert data[0]["variant"] == "split-screen"

    def test_batch(self, client):
        body = {"sections": [{"id": "one", "properties": self.LEGACY}, {"id": "two", "properties": {}}]}
        data = client.post("/v1/migrations/batch", json=body).json()
        assert [item["id"] for item in data] == ["one", "two"]


# =============================================================================
# PAGES
# =============================================================================

class TestPages:
    def test_create_list_and_render(self, client):
        created = client.post("/v1/pages/home/sections", json={"type_id": "hero-centered"})
        assert created.status_code == 201
        section_id = created.json()["id"]

        listed = client.get("/v1/pages/home/sections").json()
        assert [s["id"] for s in listed] == [section_id]

        page = client.get("/v1/pages/home/render").json()
        assert page["sections"][0]["status"] == "rendered"

    def test_create_unknown_type(self, client):
        response = client.post("/v1/pages/home/sections", json={"type_id": "hero-diagonal"})
        assert response.status_code == 404
        assert "Available:" in response.json()["detail"]

    def test_save_invalid_properties(self, client):
        section = client.post("/v1/pages/home/sections", json={"type_id": "hero-centered"}).json()
        props = dict(section["properties"], title={"text": "", "tag": "h1"})
        response = client.put(f"/v1/pages/home/sections/{section['id']}/properties", json=props)
        assert response.status_code == 422

    def test_section_on_another_page_is_not_found(self, client):
        section = client.post("/v1/pages/home/sections", json={"type_id": "text-block"}).json()
        assert client.get(f"/v1/pages/about/sections/{section['id']}").status_code == 404

    def test_duplicate_and_delete(self, client):
        section = client.post("/v1/pages/home/sections", json={"type_id": "hero-centered"}).json()
        copy = client.post(f"/v1/pages/home/sections/{section['id']}/duplicate")
        assert copy.status_code == 201
        assert copy.json()["properties"]["title"]["text"].startswith("Copy of ")

        assert client.delete(f"/v1/pages/home/sections/{section['id']}").json() == {"deleted": section["id"]}
        assert [s["id"] for s in client.get("/v1/pages/home/sections").json()] == [copy.json()["id"]]

    def test_migrate_non_legacy_section(self, client):
        section = client.post("/v1/pages/home/sections", json={"type_id": "text-block"}).json()
        response = client.post(f"/v1/pages/home/sections/{section['id']}/migrate", json={})
        assert response.status_code == 422
