import unittest
import xml.etree.ElementTree as ET
from unittest.mock import patch

from fastapi.testclient import TestClient

from portfolio.app import create_app
from portfolio.config import Settings
from portfolio.dependencies import get_store
from portfolio.store import TABLES, InMemoryTableStore


def project_payload(**overrides):
    payload = {
        "title": "Checkout redesign",
        "url_slug": "checkout-redesign",
        "badge_type": "UX Design",
        "summary": "**Faster** checkout",
        "situation": "<p>Legacy flow</p>",
        "sort_order": 1,
    }
    payload.update(overrides)
    return payload


class PortfolioApiTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryTableStore()
        app = create_app()
        app.dependency_overrides[get_store] = lambda: self.store
        self.client = TestClient(app)

    def _create(self, path, payload):
        response = self.client.post(f"/api/admin/{path}", json=payload)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_project_listing_and_detail(self):
        project = self._create("projects", project_payload())
        self._create("projects", project_payload(url_slug="other", title="Other", sort_order=2))

        listing = self.client.get("/api/design-work")
        self.assertEqual(listing.status_code, 200)
        payload = listing.json()
        self.assertEqual(payload["state"], "SUCCESS")
        self.assertEqual(
            [card["url_slug"] for card in payload["items"]], ["checkout-redesign", "other"]
        )
        self.assertEqual(payload["items"][0]["path"], "/design-work/checkout-redesign")

        detail = self.client.get("/api/design-work/checkout-redesign")
        self.assertEqual(detail.status_code, 200)
        body = detail.json()
        self.assertEqual(body["kind"], "project")
        self.assertEqual(body["project"]["id"], project["id"])
        self.assertEqual(
            body["rendered"]["summary"],
            {"html": "<p><strong>Faster</strong> checkout</p>", "is_html": False},
        )
        self.assertTrue(body["rendered"]["situation"]["is_html"])
        self.assertEqual([card["url_slug"] for card in body["related"]], ["other"])

    def test_unknown_slug_is_not_found(self):
        response = self.client.get("/api/design-work/missing")
        self.assertEqual(response.status_code, 404)

        listing = self.client.get("/api/ventures")
        self.assertEqual(listing.json()["state"], "EMPTY")

    def test_series_replaces_its_members_on_listing(self):
        series = self._create(
            "series", {"title": "Banking", "url_slug": "banking", "badge_type": "Design Work"}
        )
        member = self._create("projects", project_payload(series_id=series["id"]))

        listing = self.client.get("/api/design-work").json()
        self.assertEqual([card["kind"] for card in listing["items"]], ["series"])

        detail = self.client.get("/api/design-work/banking").json()
        self.assertEqual(detail["kind"], "series")
        self.assertEqual([card["id"] for card in detail["series_projects"]], [member["id"]])

        members = self.client.get(f"/api/admin/series/{series['id']}").json()
        self.assertEqual([p["id"] for p in members["projects"]], [member["id"]])

        removed = self.client.delete(f"/api/admin/series/{series['id']}/projects/{member['id']}")
        self.assertEqual(removed.status_code, 200)
        self.assertIsNone(removed.json()["series_id"])

    def test_venture_detail(self):
        self._create("ventures", {"title": "Alpha", "url_slug": "alpha", "sort_order": 1})
        self._create("ventures", {"title": "Beta", "url_slug": "beta", "sort_order": 2})

        detail = self.client.get("/api/ventures/alpha")
        self.assertEqual(detail.status_code, 200)
        body = detail.json()
        self.assertEqual(body["kind"], "venture")
        self.assertEqual(body["venture"]["status"], "active")
        self.assertEqual([card["url_slug"] for card in body["related"]], ["beta"])

    def test_validation_rejects_blank_title(self):
        response = self.client.post("/api/admin/projects", json=project_payload(title="  "))
        self.assertEqual(response.status_code, 422)
        self.assertIn("Title is required", response.text)
        self.assertEqual(self.store.rows["projects"], [])

        response = self.client.post("/api/admin/projects", json=project_payload(url_slug=""))
        self.assertEqual(response.status_code, 422)
        self.assertIn("URL slug is required", response.text)

    def test_editor_view_strips_legacy_wrapper(self):
        project = self._create(
            "projects",
            project_payload(summary='<div class="rich-text-content"><p>Summary</p></div>'),
        )
        response = self.client.get(f"/api/admin/projects/{project['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["summary"], "<p>Summary</p>")

    def test_update_visibility_and_delete(self):
        project = self._create("projects", project_payload())
        response = self.client.put(
            f"/api/admin/projects/{project['id']}/visibility", json={"is_visible": False}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/design-work").json()["items"], [])

        response = self.client.patch(
            f"/api/admin/projects/{project['id']}", json={"title": "Renamed"}
        )
        self.assertEqual(response.json()["title"], "Renamed")
        self.assertEqual(response.json()["summary"], "**Faster** checkout")

        self.assertEqual(self.client.delete(f"/api/admin/projects/{project['id']}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/admin/projects/{project['id']}").status_code, 404)
        self.assertEqual(
            self.client.patch("/api/admin/projects/missing", json={"title": "x"}).status_code, 404
        )

    def test_schema_drift_is_reported(self):
        tables = dict(TABLES)
        tables["projects"] = TABLES["projects"].without("overview")
        self.store = InMemoryTableStore(tables)

        response = self.client.post(
            "/api/admin/projects", json=project_payload(overview="<p>Overview</p>")
        )
        self.assertEqual(response.status_code, 502)
        self.assertIn("'overview' column does not exist", response.json()["detail"])

        self._create("projects", project_payload(overview=""))

    def test_schema_status(self):
        status = self.client.get("/api/admin/schema").json()
        self.assertEqual(status, {"version": 2, "latest": 2, "pending": []})

        self.store = InMemoryTableStore(schema_version=1)
        status = self.client.get("/api/admin/schema").json()
        self.assertEqual(status["version"], 1)
        self.assertEqual(
            status["pending"], [{"version": 2, "description": "Add projects.overview"}]
        )

    def test_home_features_projects_with_default_profile(self):
        self._create("projects", project_payload(show_on_homepage=True, homepage_display_order=2))
        self._create(
            "projects",
            project_payload(url_slug="first", show_on_homepage=True, homepage_display_order=1),
        )
        self._create("projects", project_payload(url_slug="plain"))

        body = self.client.get("/api/home").json()
        self.assertEqual(body["state"], "SUCCESS")
        self.assertEqual([card["url_slug"] for card in body["featured"]], ["first", "checkout-redesign"])
        self.assertTrue(body["profile"]["is_default"])
        self.assertEqual(body["profile"]["name"], "Kevin Laronda")

    def test_resume(self):
        self._create(
            "experience",
            {"title": "Designer", "company": "A", "start_month": 1, "start_year": 2015,
             "end_month": 12, "end_year": 2018},
        )
        self._create(
            "experience",
            {"title": "Lead", "company": "B", "start_month": 1, "start_year": 2019,
             "is_current": True},
        )
        self._create("education", {"title": "BA", "institution": "U", "year": 2010})
        self.client.put("/api/admin/profile", json={"name": "Kim", "title": "Design Lead"})

        body = self.client.get("/api/resume").json()
        self.assertEqual(body["profile"]["name"], "Kim")
        self.assertFalse(body["profile"]["is_default"])
        self.assertEqual([e["title"] for e in body["experience"]], ["Lead", "Designer"])
        self.assertEqual(body["experience"][0]["date_range"], "Jan 2019 - Present")
        self.assertIsNone(body["experience"][0]["end_date"])
        self.assertEqual(body["experience"][1]["end_date"], "2018-12-01")
        self.assertEqual(body["education"][0]["year"], "2010")

    def test_experience_end_before_start_is_rejected(self):
        response = self.client.post(
            "/api/admin/experience",
            json={"title": "X", "company": "Y", "start_month": 6, "start_year": 2020,
                  "end_month": 1, "end_year": 2020},
        )
        self.assertEqual(response.status_code, 422)

    def test_experience_patch_is_checked_against_stored_dates(self):
        created = self._create(
            "experience",
            {"title": "X", "company": "Y", "start_month": 6, "start_year": 2020,
             "end_month": 1, "end_year": 2021},
        )
        path = f"/api/admin/experience/{created['id']}"

        response = self.client.patch(path, json={"end_year": 2010})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.store.rows["experience"][0]["end_year"], 2021)

        response = self.client.patch(path, json={"end_year": 2022})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["date_range"], "Jun 2020 - Jan 2022")

        missing = self.client.patch("/api/admin/experience/nope", json={"end_year": 2022})
        self.assertEqual(missing.status_code, 404)

    def test_education_year_must_be_a_year(self):
        response = self.client.post(
            "/api/admin/education",
            json={"title": "BA", "institution": "U", "year": "2010-2014"},
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.store.rows["education"], [])

        created = self._create("education", {"title": "BA", "institution": "U", "year": "2010"})
        response = self.client.patch(
            f"/api/admin/education/{created['id']}", json={"year": "20x0"}
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.store.rows["education"][0]["year"], 2010)

    def test_first_profile_save_starts_from_the_default(self):
        response = self.client.put("/api/admin/profile", json={"bio": "Hello"})
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["name"], "Kevin Laronda")
        self.assertEqual(body["title"], "UX + Design Strategy + Manager")
        self.assertEqual(body["bio"], "Hello")
        self.assertFalse(body["is_default"])

        self.assertEqual(self.client.get("/api/resume").status_code, 200)
        home = self.client.get("/api/home")
        self.assertEqual(home.status_code, 200)
        self.assertEqual(home.json()["profile"]["bio"], "Hello")

    def test_default_profile_carries_configured_bio_and_photo(self):
        settings = Settings(
            default_profile_bio="<p>Strategic problem-solver.</p>",
            default_profile_photo_url="https://example.com/me.jpeg",
        )
        with patch("portfolio.routes.get_settings", return_value=settings):
            profile = self.client.get("/api/resume").json()["profile"]
        self.assertTrue(profile["is_default"])
        self.assertEqual(profile["bio"], "<p>Strategic problem-solver.</p>")
        self.assertEqual(profile["photo_url"], "https://example.com/me.jpeg")

    def test_sitemap_lists_visible_pages(self):
        self._create("projects", project_payload())
        self._create("projects", project_payload(url_slug="draft", is_visible=False))
        self._create(
            "series", {"title": "Banking", "url_slug": "banking", "badge_type": "Design Work"}
        )
        self._create("ventures", {"title": "Shop", "url_slug": "shop"})

        response = self.client.get("/api/sitemap.xml")
        self.assertEqual(response.status_code, 200)
        self.assertIn("application/xml", response.headers["content-type"])
        root = ET.fromstring(response.content)
        ns = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}
        locs = [loc.text for loc in root.findall("sm:url/sm:loc", ns)]
        self.assertEqual(
            locs,
            [
                "https://kevinlaronda.com/",
                "https://kevinlaronda.com/resume",
                "https://kevinlaronda.com/design-work",
                "https://kevinlaronda.com/ventures",
                "https://kevinlaronda.com/design-work/checkout-redesign",
                "https://kevinlaronda.com/design-work/banking",
                "https://kevinlaronda.com/ventures/shop",
            ],
        )

    def test_robots_txt(self):
        response = self.client.get("/api/robots.txt")
        self.assertEqual(response.status_code, 200)
        self.assertIn("text/plain", response.headers["content-type"])
        self.assertIn("Disallow: /admin", response.text)
        self.assertIn("Sitemap: https://kevinlaronda.com/sitemap.xml", response.text)

    def test_contact_submission(self):
        response = self.client.post(
            "/api/contact",
            json={
                "first_name": "Ada",
                "last_name": "Lovelace",
                "email": "ada@example.com",
                "message": "Hello",
            },
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(len(self.store.rows["contact_submissions"]), 1)

        response = self.client.post(
            "/api/contact",
            json={"first_name": "Ada", "last_name": "L", "email": "not-an-email", "message": "Hi"},
        )
        self.assertEqual(response.status_code, 422)

    def test_category_mismatches_and_series_options(self):
        design = self._create(
            "series", {"title": "Design", "url_slug": "design", "badge_type": "Design Work"}
        )
        self._create(
            "series", {"title": "Ventures", "url_slug": "v-series", "badge_type": "Ventures"}
        )
        project = self._create(
            "projects", project_payload(badge_type="Ventures", series_id=design["id"])
        )

        mismatches = self.client.get("/api/admin/category-mismatches").json()
        self.assertEqual([m["project_id"] for m in mismatches], [project["id"]])

        options = self.client.get(f"/api/admin/projects/{project['id']}/series-options").json()
        self.assertEqual([s["url_slug"] for s in options], ["v-series"])


if __name__ == "__main__":
    unittest.main()
