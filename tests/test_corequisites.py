from corequisites import resolve_corequisites

from planner_utils import course, plan_of, planned, record, sample_catalog


class TestResolveCorequisites:
    def test_resolves_catalog_corequisite(self):
        catalog = sample_catalog()
        coreqs = resolve_corequisites(catalog.get("CSX4002"), plan_of(), {}, catalog.courses)
        assert [c.code for c in coreqs] == ["CSX4003"]

    def test_skips_completed_and_planned(self):
        catalog = sample_catalog()
        c = catalog.get("CSX4002")
        assert resolve_corequisites(c, plan_of(), record(completed=["CSX4003"]), catalog.courses) == []
        assert resolve_corequisites(c, plan_of(planned("CSX4003")), {}, catalog.courses) == []

    def test_skips_codes_missing_from_catalog(self):
        c = course("CSX4100", corequisites=["CSX9999"])
        assert resolve_corequisites(c, plan_of(), {}, {}) == []

    def test_skips_banned_and_blacklisted(self):
        coreq = course("CSX4200", banned_with=["CSX4010"])
        blocked = course("CSX4201")
        primary = course("CSX4100", corequisites=["CSX4200", "CSX4201"])
        catalog_courses = {c.code: c for c in (coreq, blocked, primary)}
        plan = plan_of(planned("CSX4010"))
        resolved = resolve_corequisites(primary, plan, {}, catalog_courses, frozenset({"CSX4201"}))
        assert resolved == []

    def test_not_transitive(self):
        b = course("BBB1001", corequisites=["CCC1001"])
        c = course("CCC1001")
        a = course("AAA1001", corequisites=["BBB1001"])
        catalog_courses = {x.code: x for x in (a, b, c)}
        resolved = resolve_corequisites(a, plan_of(), {}, catalog_courses)
        assert [x.code for x in resolved] == ["BBB1001"]

    def test_cycle_is_bounded(self):
        a = course("AAA1001", corequisites=["BBB1001"])
        b = course("BBB1001", corequisites=["AAA1001"])
        catalog_courses = {a.code: a, b.code: b}
        assert [x.code for x in resolve_corequisites(a, plan_of(), {}, catalog_courses)] == ["BBB1001"]
