"""Page scripts run end-to-end against the in-memory backend."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from forms import REQUIRED_MSG
from tests.helpers.supabase_stub import SupabaseStub

PAGES = Path(__file__).resolve().parents[1] / "pages"
USER_ID = "user-1"


def _page(suffix: str) -> AppTest:
    path = next(PAGES.glob(f"*_{suffix}.py"))
    at = AppTest.from_file(str(path), default_timeout=30)
    at.session_state["user_id"] = USER_ID
    at.session_state["user_email"] = "ada@example.org"
    return at


def _markdown(at: AppTest) -> str:
    return "\n".join(m.value for m in at.markdown)


def _toasts(at: AppTest) -> list[str]:
    return [t.value for t in at.toast]


@pytest.fixture
def seeded(stub: SupabaseStub) -> SupabaseStub:
    stub.tables["programs"] = [
        {"id": "p1", "user_id": USER_ID, "name": "Outreach", "budget": 1000, "status": "active",
         "description": "Street team", "start_date": "2026-01-01", "end_date": None,
         "created_at": "2026-01-02T00:00:00+00:00"},
    ]
    stub.tables["expenses"] = [
        {"id": "e1", "user_id": USER_ID, "program_id": "p1", "amount": 250, "category": "Travel",
         "description": "Bus passes", "payee": "Transit", "payment_method": "Cash",
         "approval_status": "approved", "created_at": "2026-02-01T00:00:00+00:00"},
        {"id": "e2", "user_id": USER_ID, "program_id": None, "amount": 100, "category": "Supplies",
         "description": "Paper", "payee": "Shop", "payment_method": "Credit Card",
         "approval_status": "pending", "created_at": "2026-02-02T00:00:00+00:00"},
    ]
    stub.tables["funding"] = [
        {"id": "f1", "user_id": USER_ID, "program_id": "p1", "amount": 400, "type": "Grant",
         "source": "City Council", "created_at": "2026-01-05T00:00:00+00:00"},
        {"id": "f2", "user_id": USER_ID, "program_id": None, "amount": 100, "type": "Internal",
         "source": "Reserve", "created_at": "2026-01-06T00:00:00+00:00"},
    ]
    return stub


# ---- dashboard ---------------------------------------------------------------


def test_dashboard_totals_match_rows(seeded):
    at = _page("Dashboard").run()

    assert not at.exception
    md = _markdown(at)
    assert "$500.00" in md  # funding
    assert "$350.00" in md  # expenses
    assert "$150.00" in md  # balance
    # Outreach: funding 400 - expenses 250
    assert "Outreach" in md and "$1,000.00" in md


def test_dashboard_empty_state(stub):
    at = _page("Dashboard").run()

    assert not at.exception
    infos = [i.value for i in at.info]
    assert "No expense data available" in infos
    assert "No funding data available" in infos
    assert "No program data available" in infos


def test_dashboard_uses_theme_from_profile(seeded):
    seeded.tables["profiles"] = [{"id": USER_ID, "display_name": "Ada", "theme_preference": "dark"}]
    at = _page("Dashboard").run()

    assert not at.exception
    assert any("Signed in as Ada" in c.value for c in at.caption)


# ---- programs ----------------------------------------------------------------


def test_program_form_blocks_empty_submit(stub):
    at = _page("Programs").run()
    at.button(key="prog_save").click().run()

    assert not at.exception
    assert REQUIRED_MSG in _toasts(at)
    assert stub.tables["programs"] == []


def test_program_form_rejects_inverted_dates(stub):
    at = _page("Programs").run()
    at.text_input(key="prog_name").input("Outreach")
    at.text_input(key="prog_budget").input("100")
    at.date_input(key="prog_start").set_value(date(2026, 5, 1))
    at.date_input(key="prog_end").set_value(date(2026, 4, 1))
    at.button(key="prog_save").click().run()

    assert "End date cannot be before start date" in _toasts(at)
    assert stub.tables["programs"] == []


def test_create_program(stub):
    at = _page("Programs").run()
    assert "No programs yet. Create your first program to get started!" in [i.value for i in at.info]

    at.text_input(key="prog_name").input("Youth Outreach")
    at.text_input(key="prog_budget").input("1500")
    at.button(key="prog_save").click().run()

    [row] = stub.tables["programs"]
    assert row["name"] == "Youth Outreach"
    assert row["budget"] == 1500.0
    assert row["status"] == "active"
    assert row["user_id"] == USER_ID

    at.run()
    assert "Youth Outreach" in _markdown(at)


def test_edit_program_prefills_and_updates(seeded):
    at = _page("Programs").run()
    at.button(key="pe_p1").click().run()

    assert at.text_input(key="prog_name").value == "Outreach"
    assert at.text_input(key="prog_budget").value == "1000"
    assert at.date_input(key="prog_start").value == date(2026, 1, 1)

    at.text_input(key="prog_name").input("Outreach 2026")
    at.selectbox(key="prog_status").set_value("on-hold")
    at.button(key="prog_save").click().run()

    row = seeded.tables["programs"][0]
    assert row["name"] == "Outreach 2026"
    assert row["status"] == "on-hold"
    assert len(seeded.tables["programs"]) == 1


def test_delete_program_after_confirmation(seeded):
    at = _page("Programs").run()
    at.button(key="pd_p1").click().run()
    assert any("Delete program « Outreach »" in w.value for w in at.warning)
    assert seeded.tables["programs"]

    at.button(key="prog_del_yes").click().run()
    assert seeded.tables["programs"] == []

    at.run()
    assert "Outreach" not in _markdown(at)


def test_cancel_delete_keeps_program(seeded):
    at = _page("Programs").run()
    at.button(key="pd_p1").click().run()
    at.button(key="prog_del_no").click().run()
    at.run()

    assert len(seeded.tables["programs"]) == 1
    assert not at.warning


# ---- expenses ----------------------------------------------------------------


def test_create_expense_defaults_to_pending(stub):
    at = _page("Expenses").run()
    at.number_input(key="exp_amount").set_value(42.5)
    at.text_input(key="exp_desc").input("Taxi")
    at.text_input(key="exp_payee").input("Cab Co")
    at.selectbox(key="exp_cat").set_value("Travel")
    at.button(key="exp_save").click().run()

    assert not at.exception
    [row] = stub.tables["expenses"]
    assert row["amount"] == 42.5
    assert row["category"] == "Travel"
    assert row["approval_status"] == "pending"
    assert row["program_id"] is None


def test_expense_form_requires_payee(stub):
    at = _page("Expenses").run()
    at.number_input(key="exp_amount").set_value(10.0)
    at.text_input(key="exp_desc").input("Taxi")
    at.button(key="exp_save").click().run()

    assert REQUIRED_MSG in _toasts(at)
    assert stub.tables["expenses"] == []


def test_expense_filter_banner(seeded):
    at = _page("Expenses").run()
    assert any("2 expense(s)" in c.value for c in at.caption)

    at.selectbox(key="flt_cat").set_value("Travel").run()

    assert "Showing filtered results: Category: Travel" in _markdown(at)
    assert any("1 expense(s)" in c.value for c in at.caption)


def test_edit_expense_status(seeded):
    at = _page("Expenses").run()
    at.button(key="ee_e1").click().run()
    assert at.selectbox(key="exp_status").value == "approved"
    assert at.selectbox(key="exp_program").value == "p1"

    at.selectbox(key="exp_status").set_value("rejected")
    at.button(key="exp_save").click().run()

    row = next(r for r in seeded.tables["expenses"] if r["id"] == "e1")
    assert row["approval_status"] == "rejected"
    assert row["amount"] == 250.0


def test_delete_expense(seeded):
    at = _page("Expenses").run()
    at.button(key="ed_e2").click().run()
    at.button(key="exp_del_yes").click().run()

    assert [r["id"] for r in seeded.tables["expenses"]] == ["e1"]


def test_expense_backend_error_is_reported(stub):
    stub.fail("insert", "expenses", "row-level security violation")
    at = _page("Expenses").run()
    at.number_input(key="exp_amount").set_value(5.0)
    at.text_input(key="exp_desc").input("Pens")
    at.text_input(key="exp_payee").input("Shop")
    at.button(key="exp_save").click().run()

    assert "Error creating expense: row-level security violation" in _toasts(at)


# ---- funding -----------------------------------------------------------------


def test_funding_list_total(seeded):
    at = _page("Funding").run()

    md = _markdown(at)
    assert "$500.00" in md
    assert "No Program" in md


def test_add_funding_without_program(stub):
    at = _page("Funding").run()
    at.text_input(key="fund_source").input("Bake sale")
    at.number_input(key="fund_amount").set_value(120.0)
    at.selectbox(key="fund_type").set_value("Other")
    at.button(key="fund_save").click().run()

    [row] = stub.tables["funding"]
    assert row["source"] == "Bake sale"
    assert row["type"] == "Other"
    assert row["program_id"] is None


def test_delete_funding(seeded):
    at = _page("Funding").run()
    at.button(key="fd_f2").click().run()
    at.button(key="fund_del_yes").click().run()

    assert [r["id"] for r in seeded.tables["funding"]] == ["f1"]


# ---- profile -----------------------------------------------------------------


def test_profile_save(stub):
    at = _page("Profile").run()
    assert at.text_input(key="pf_name").value == ""

    at.text_input(key="pf_name").input("Ada")
    at.toggle(key="pf_dark").set_value(True)
    at.button(key="pf_save").click().run()

    assert not at.exception
    assert stub.tables["profiles"] == [
        {"id": USER_ID, "created_at": stub.tables["profiles"][0]["created_at"],
         "display_name": "Ada", "theme_preference": "dark"},
    ]


# ---- cross-page --------------------------------------------------------------


@pytest.mark.parametrize("suffix", ["Dashboard", "Programs", "Expenses", "Funding", "Profile"])
def test_profile_load_failure_falls_back(stub, suffix):
    stub.fail("select", "profiles", "network down")
    at = _page(suffix).run()

    assert not at.exception
    assert "Error loading profile: network down" in _toasts(at)


def test_profile_fallback_uses_email(stub):
    stub.fail("select", "profiles", "network down")
    at = _page("Dashboard").run()

    assert any("Signed in as ada@example.org" in c.value for c in at.caption)


def test_edit_zero_budget_program(stub):
    stub.tables["programs"] = [
        {"id": "p0", "user_id": USER_ID, "name": "Volunteers", "budget": 0, "status": "active",
         "created_at": "2026-01-02T00:00:00+00:00"},
    ]
    at = _page("Programs").run()
    at.button(key="pe_p0").click().run()
    assert at.text_input(key="prog_budget").value == "0"

    at.selectbox(key="prog_status").set_value("completed")
    at.button(key="prog_save").click().run()

    assert REQUIRED_MSG not in _toasts(at)
    row = stub.tables["programs"][0]
    assert row["status"] == "completed"
    assert row["budget"] == 0.0


def test_expense_card_escapes_user_text(stub):
    stub.tables["expenses"] = [
        {"id": "e9", "user_id": USER_ID, "program_id": None, "amount": 12, "category": "Other",
         "description": "Snacks\n\n<i>team</i>", "payee": "Bob & Co", "payment_method": "Cash",
         "approval_status": "pending", "created_at": "2026-02-01T00:00:00+00:00"},
    ]
    at = _page("Expenses").run()

    md = _markdown(at)
    assert "Snacks<br><br>&lt;i&gt;team&lt;/i&gt;" in md
    assert "Paid to: Bob &amp; Co" in md
