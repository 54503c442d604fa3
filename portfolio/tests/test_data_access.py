import unittest
from dataclasses import asdict
from unittest.mock import MagicMock

from content.types import BadgeType, Category, Metric, VentureStatus
from portfolio.data_access import ContentRepository
from portfolio.store import (
    LATEST_SCHEMA_VERSION,
    NOT_NULL_VIOLATION,
    TABLES,
    InMemoryTableStore,
    StoreError,
)


def project_values(**overrides):
    values = {
        "title": "Checkout redesign",
        "badge_type": BadgeType.UX_DESIGN,
        "url_slug": "checkout-redesign",
        "summary": "<p>Summary</p>",
        "situation": "Situation",
        "metrics": [Metric(value="40%", title="Conversion")],
        "images": ["a.png"],
        "is_visible": True,
        "sort_order": 1,
        "show_on_homepage": False,
    }
    values.update(overrides)
    return values


class ProjectRepositoryTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryTableStore()
        self.repo = ContentRepository(self.store)

    def test_create_and_get_project(self):
        created = self.repo.create_project(project_values())
        self.assertIsNotNone(created)
        self.assertIsNone(self.repo.last_error)
        self.assertTrue(created.id)
        self.assertIsNotNone(created.created_at)

        fetched = self.repo.get_project(created.id)
        self.assertEqual(fetched.title, "Checkout redesign")
        self.assertEqual(fetched.badge_type, BadgeType.UX_DESIGN)
        self.assertEqual(fetched.metrics, [Metric(value="40%", title="Conversion")])

        row = self.store.rows["projects"][0]
        self.assertEqual(row["badgeType"], "UX Design")
        self.assertEqual(row["metrics"], [{"value": "40%", "title": "Conversion", "description": ""}])

    def test_partial_update_leaves_other_fields(self):
        created = self.repo.create_project(
            project_values(overview="<p>Overview</p>", homepage_display_order=3)
        )
        updated = self.repo.update_project(created.id, {"title": "Renamed"})
        self.assertEqual(updated.title, "Renamed")

        before, after = asdict(created), asdict(updated)
        for untouched in (before, after):
            del untouched["title"]
            del untouched["updated_at"]
        self.assertEqual(before, after)

    def test_update_stamps_updated_column(self):
        created = self.repo.create_project(project_values())
        self.store.rows["projects"][0]["updatedAt"] = "2000-01-01T00:00:00+00:00"
        updated = self.repo.update_project_order(created.id, 7)
        self.assertEqual(updated.sort_order, 7)
        self.assertNotEqual(updated.updated_at, "2000-01-01T00:00:00+00:00")

    def test_list_orders_by_rank(self):
        self.repo.create_project(project_values(url_slug="b", sort_order=2))
        self.repo.create_project(project_values(url_slug="a", sort_order=1))
        self.repo.create_project(project_values(url_slug="hidden", sort_order=0, is_visible=False))
        self.assertEqual(
            [p.url_slug for p in self.repo.list_projects()], ["hidden", "a", "b"]
        )
        self.assertEqual([p.url_slug for p in self.repo.list_visible_projects()], ["a", "b"])

    def test_get_by_slug_serves_visible_projects_only(self):
        self.repo.create_project(project_values(url_slug="draft", is_visible=False))
        self.assertIsNone(self.repo.get_project_by_slug("draft"))
        self.assertIsNone(self.repo.last_error)
        created = self.repo.create_project(project_values(url_slug="live"))
        self.assertEqual(self.repo.get_project_by_slug("live").id, created.id)

    def test_visibility_toggle(self):
        created = self.repo.create_project(project_values())
        self.repo.update_project_visibility(created.id, False)
        self.assertEqual(self.repo.list_visible_projects(), [])

    def test_series_membership(self):
        series = self.repo.create_series(
            {"title": "Banking", "url_slug": "banking", "badge_type": Category.DESIGN_WORK}
        )
        member = self.repo.create_project(project_values(series_id=series.id))
        self.repo.create_project(project_values(url_slug="loose"))
        self.assertEqual(
            [p.id for p in self.repo.get_projects_by_series(series.id)], [member.id]
        )

        detached = self.repo.remove_project_from_series(member.id)
        self.assertIsNone(detached.series_id)
        self.assertIsNotNone(self.repo.get_project(member.id))
        self.assertEqual(self.repo.get_projects_by_series(series.id), [])

    def test_missing_rows_are_sentinels_not_errors(self):
        self.assertIsNone(self.repo.get_project("nope"))
        self.assertIsNone(self.repo.last_error)

        self.assertIsNone(self.repo.update_project("nope", {"title": "x"}))
        self.assertTrue(self.repo.not_found)
        self.assertIn("not found", self.repo.last_error)

        self.assertFalse(self.repo.delete_project("nope"))
        self.assertTrue(self.repo.not_found)

    def test_delete_project(self):
        created = self.repo.create_project(project_values())
        self.assertTrue(self.repo.delete_project(created.id))
        self.assertIsNone(self.repo.get_project(created.id))
        self.assertFalse(self.repo.not_found)


class SchemaDriftTests(unittest.TestCase):
    """An environment whose projects table predates the overview column."""

    def setUp(self):
        self.tables = dict(TABLES)
        self.tables["projects"] = TABLES["projects"].without("overview")
        self.repo = ContentRepository(InMemoryTableStore(self.tables, schema_version=None))

    def test_empty_overview_is_not_written(self):
        created = self.repo.create_project(project_values(overview=""))
        self.assertIsNotNone(created)
        self.assertIsNone(created.overview)

    def test_overview_write_names_missing_column(self):
        created = self.repo.create_project(project_values(overview="<p>Overview</p>"))
        self.assertIsNone(created)
        self.assertIn("'overview' column does not exist", self.repo.last_error)
        self.assertIn("creating project", self.repo.last_error)
        self.assertFalse(self.repo.not_found)

    def test_ledger_refuses_write_before_touching_the_store(self):
        store = InMemoryTableStore(self.tables, schema_version=1)
        repo = ContentRepository(store)
        self.assertEqual(repo.schema_version(), 1)
        self.assertEqual([m.version for m in repo.pending_migrations()], [2])

        self.assertIsNone(repo.create_project(project_values(overview="<p>Overview</p>")))
        self.assertIn("needs schema version 2", repo.last_error)
        self.assertEqual(store.rows["projects"], [])

        created = repo.create_project(project_values())
        self.assertIsNotNone(created)
        self.assertIsNone(repo.update_project(created.id, {"overview": "Later"}))
        self.assertIn("updating project", repo.last_error)

    def test_migrated_environment_has_nothing_pending(self):
        repo = ContentRepository(InMemoryTableStore())
        self.assertEqual(repo.schema_version(), LATEST_SCHEMA_VERSION)
        self.assertEqual(repo.pending_migrations(), [])
        self.assertIsNone(ContentRepository(InMemoryTableStore(schema_version=None)).schema_version())


class StoreFailureTests(unittest.TestCase):
    def setUp(self):
        self.store = MagicMock()
        self.repo = ContentRepository(self.store)

    def test_list_failure_returns_empty_and_keeps_diagnostic(self):
        self.store.select.side_effect = StoreError("connection refused")
        self.assertEqual(self.repo.list_ventures(), [])
        self.assertEqual(self.repo.last_error, "Error fetching ventures: connection refused")

    def test_get_and_write_failures(self):
        self.store.select.side_effect = StoreError("timeout", code="57014")
        self.assertIsNone(self.repo.get_series("s"))
        self.assertIn("[57014] timeout", self.repo.last_error)

        self.store.insert.side_effect = StoreError("permission denied")
        self.assertIsNone(self.repo.create_venture({"title": "V", "url_slug": "v"}))
        self.assertIn("creating venture", self.repo.last_error)

        self.store.delete.side_effect = StoreError("permission denied")
        self.assertFalse(self.repo.delete_series("s"))
        self.assertIn("deleting series", self.repo.last_error)

    def test_malformed_rows_are_treated_as_failures(self):
        self.store.select.return_value = [{"id": "1", "title": "T", "badgeType": "Unknown", "url_slug": "t"}]
        self.assertEqual(self.repo.list_projects(), [])
        self.assertIsNotNone(self.repo.last_error)

    def test_success_clears_previous_error(self):
        self.store.select.side_effect = StoreError("boom")
        self.repo.list_series()
        self.store.select.side_effect = None
        self.store.select.return_value = []
        self.assertEqual(self.repo.list_series(), [])
        self.assertIsNone(self.repo.last_error)


class OtherEntityTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryTableStore()
        self.repo = ContentRepository(self.store)

    def test_series_by_slug_and_category(self):
        self.repo.create_series({"title": "A", "url_slug": "shared", "badge_type": Category.VENTURES})
        self.assertIsNone(self.repo.get_series_by_slug("shared", Category.DESIGN_WORK))
        found = self.repo.get_series_by_slug("shared", Category.VENTURES)
        self.assertEqual(found.badge_type, Category.VENTURES)
        self.assertEqual(self.repo.get_series_by_slug("shared").title, "A")

    def test_venture_round_trip(self):
        venture = self.repo.create_venture(
            {
                "title": "Side project",
                "url_slug": "side-project",
                "status": VentureStatus.ON_HOLD,
                "is_visible": True,
                "sort_order": 3,
            }
        )
        self.assertEqual(self.store.rows["ventures"][0]["status"], "on-hold")
        self.assertEqual(self.repo.get_venture_by_slug("side-project").status, VentureStatus.ON_HOLD)
        updated = self.repo.update_venture(venture.id, {"status": VentureStatus.COMPLETED})
        self.assertEqual(updated.status, VentureStatus.COMPLETED)
        self.assertEqual(updated.title, "Side project")

    def test_current_experience_drops_end_date(self):
        created = self.repo.create_experience(
            {
                "title": "Design Lead",
                "company": "Acme",
                "start_month": 4,
                "start_year": 2020,
                "end_month": 6,
                "end_year": 2022,
                "is_current": True,
            }
        )
        row = self.store.rows["experience"][0]
        self.assertIsNone(row["end_month"])
        self.assertIsNone(row["end_year"])
        self.assertEqual(created.start_date, "2020-04-01")
        self.assertIsNone(created.end_date)
        self.assertEqual(created.date_range(), "Apr 2020 - Present")

        finished = self.repo.update_experience(
            created.id, {"is_current": False, "end_month": 6, "end_year": 2022}
        )
        self.assertEqual(finished.end_date, "2022-06-01")
        self.assertEqual(finished.date_range(), "Apr 2020 - Jun 2022")

    def test_education_year_is_numeric_in_storage(self):
        created = self.repo.create_education(
            {"title": "MFA", "institution": "RISD", "year": "2012"}
        )
        self.assertEqual(self.store.rows["education"][0]["year"], 2012)
        self.assertEqual(created.year, "2012")
        self.assertEqual(self.repo.list_education()[0].year, "2012")

    def test_profile_is_created_then_patched(self):
        self.assertIsNone(self.repo.get_profile())
        created = self.repo.update_profile({"name": "Kevin", "title": "Designer"})
        self.assertEqual(created.name, "Kevin")

        updated = self.repo.update_profile({"bio": "Hello"})
        self.assertEqual(updated.id, created.id)
        self.assertEqual(updated.name, "Kevin")
        self.assertEqual(updated.bio, "Hello")
        self.assertEqual(len(self.store.rows["profile"]), 1)

    def test_first_profile_save_needs_a_name_and_title(self):
        self.assertIsNone(self.repo.update_profile({"bio": "Hello"}))
        self.assertIn("violates not-null constraint", self.repo.last_error)
        self.assertEqual(self.store.rows["profile"], [])

        created = self.repo.update_profile(
            {"bio": "Hello"}, defaults={"name": "Kevin", "title": "Designer", "bio": "Default"}
        )
        self.assertEqual((created.name, created.title, created.bio), ("Kevin", "Designer", "Hello"))

        updated = self.repo.update_profile({"title": "Lead"}, defaults={"name": "Other", "title": "Other"})
        self.assertEqual((updated.name, updated.title), ("Kevin", "Lead"))

    def test_store_rejects_nulls_in_required_columns(self):
        with self.assertRaises(StoreError) as ctx:
            self.store.insert("profile", {"bio": "Hello"})
        self.assertEqual(ctx.exception.code, NOT_NULL_VIOLATION)

        row = self.store.insert("profile", {"name": "Kevin", "title": "Designer"})
        with self.assertRaises(StoreError):
            self.store.update("profile", {"id": row["id"]}, {"name": None})
        self.assertEqual(self.store.rows["profile"][0]["name"], "Kevin")

    def test_get_experience_and_education_by_id(self):
        experience = self.repo.create_experience(
            {"title": "Designer", "company": "Acme", "start_month": 1, "start_year": 2015}
        )
        education = self.repo.create_education(
            {"title": "MFA", "institution": "RISD", "year": "2012"}
        )
        self.assertEqual(self.repo.get_experience(experience.id).company, "Acme")
        self.assertEqual(self.repo.get_education(education.id).institution, "RISD")
        self.assertIsNone(self.repo.get_experience("nope"))
        self.assertIsNone(self.repo.get_education("nope"))
        self.assertIsNone(self.repo.last_error)

    def test_contact_submission(self):
        submission = self.repo.create_contact_submission(
            {
                "first_name": "Ada",
                "last_name": "Lovelace",
                "email": "ada@example.com",
                "message": "Hello",
            }
        )
        self.assertIsNotNone(submission.id)
        self.assertIsNotNone(submission.created_at)
        self.assertEqual(self.store.rows["contact_submissions"][0]["email"], "ada@example.com")


if __name__ == "__main__":
    unittest.main()
