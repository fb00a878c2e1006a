import os
import uuid

import streamlit as st
from dotenv import load_dotenv
from supabase import Client, create_client

from analyzer import build_program_summaries, normalize_summary, summarize_by_key
from logging_setup import get_logger

load_dotenv()

log = get_logger("budget.database")

PROGRAM_STATUSES = ["active", "completed", "on-hold", "cancelled"]
EXPENSE_CATEGORIES = ["Equipment", "Professional Services", "Travel", "Supplies", "Other"]
PAYMENT_METHODS = ["Credit Card", "Cash", "Bank Transfer", "Check", "Other"]
APPROVAL_STATUSES = ["pending", "approved", "rejected"]
FUNDING_TYPES = ["Grant", "Investment", "Internal", "Other"]
THEMES = ["light", "dark"]

AVATAR_BUCKET = "avatars"

# Columns the expense edit form is allowed to write back.
EXPENSE_EDITABLE = ("amount", "description", "category", "payment_method", "payee", "program_id")


def get_setting(name: str, default=None):
    value = None
    # 1) Streamlit secrets
    try:
        value = st.secrets[name]
    except Exception:
        pass
    # 2) Fallback: .env / environment variable
    if not value:
        value = os.getenv(name, default)
    return value


CACHE_TTL = int(get_setting("BUDGET_CACHE_TTL", 60))


def get_client() -> Client:
    """Backend client for the current browser session.

    Kept in session state rather than ``st.cache_resource``: the client holds
    the signed-in user's tokens, which must not leak across sessions.
    """
    client = st.session_state.get("supabase_client")
    if client is None:
        url = get_setting("SUPABASE_URL")
        key = get_setting("SUPABASE_KEY")
        if not url or not key:
            raise RuntimeError("🔑 Missing backend settings. Add `SUPABASE_URL` and `SUPABASE_KEY` to Streamlit secrets or `.env`")
        client = create_client(url, key)
        st.session_state["supabase_client"] = client
    return client


# ─── Programs ───

@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def list_programs(user_id: str) -> list[dict]:
    res = (get_client().table("programs").select("*")
           .eq("user_id", user_id)
           .order("created_at", desc=True)
           .execute())
    return res.data or []


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def list_program_choices(user_id: str) -> list[dict]:
    res = (get_client().table("programs").select("id, name")
           .eq("user_id", user_id)
           .order("name")
           .execute())
    return res.data or []


def _invalidate_programs():
    list_programs.clear()
    list_program_choices.clear()
    program_summaries.clear()
    # Joined program names on expense/funding rows
    list_expenses.clear()
    list_funding.clear()


def insert_program(user_id: str, payload: dict) -> dict | None:
    res = get_client().table("programs").insert({**payload, "user_id": user_id}).execute()
    _invalidate_programs()
    log.info("program created user=%s name=%r", user_id, payload.get("name"))
    return res.data[0] if res.data else None


def update_program(user_id: str, program_id: str, payload: dict):
    (get_client().table("programs").update(payload)
     .eq("id", program_id)
     .eq("user_id", user_id)
     .execute())
    _invalidate_programs()
    log.info("program updated user=%s id=%s", user_id, program_id)


def delete_program(user_id: str, program_id: str):
    # Child expenses/funding follow the backend's foreign-key rules.
    (get_client().table("programs").delete()
     .eq("id", program_id)
     .eq("user_id", user_id)
     .execute())
    _invalidate_programs()
    log.info("program deleted user=%s id=%s", user_id, program_id)


# ─── Expenses ───

def _expense_row(row: dict) -> dict:
    d = dict(row)
    program = d.pop("programs", None) or {}
    d["program_name"] = program.get("name")
    d["date"] = (d.get("created_at") or "")[:10]
    d["status"] = d.get("approval_status") or "pending"
    return d


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def list_expenses(user_id: str, program_id: str | None = None, category: str | None = None) -> list[dict]:
    query = (get_client().table("expenses").select("*, programs(name)")
             .eq("user_id", user_id))
    if program_id:
        query = query.eq("program_id", program_id)
    if category:
        query = query.eq("category", category)
    res = query.order("created_at", desc=True).execute()
    return [_expense_row(r) for r in res.data or []]


def _invalidate_expenses():
    list_expenses.clear()
    expenses_by_category.clear()
    program_summaries.clear()


def insert_expense(user_id: str, payload: dict) -> dict | None:
    row = {k: payload.get(k) for k in EXPENSE_EDITABLE}
    row["approval_status"] = payload.get("status") or "pending"
    row["user_id"] = user_id
    res = get_client().table("expenses").insert(row).execute()
    _invalidate_expenses()
    log.info("expense created user=%s amount=%s", user_id, row["amount"])
    return res.data[0] if res.data else None


def update_expense(user_id: str, expense_id: str, payload: dict):
    """Write back only the editable columns; ``status`` maps to ``approval_status``."""
    row = {k: payload[k] for k in EXPENSE_EDITABLE if k in payload}
    if "status" in payload:
        row["approval_status"] = payload["status"]
    (get_client().table("expenses").update(row)
     .eq("id", expense_id)
     .eq("user_id", user_id)
     .execute())
    _invalidate_expenses()
    log.info("expense updated user=%s id=%s", user_id, expense_id)


def delete_expense(user_id: str, expense_id: str):
    (get_client().table("expenses").delete()
     .eq("id", expense_id)
     .eq("user_id", user_id)
     .execute())
    _invalidate_expenses()
    log.info("expense deleted user=%s id=%s", user_id, expense_id)


# ─── Funding ───

@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def list_funding(user_id: str) -> list[dict]:
    res = (get_client().table("funding").select("*, programs(name)")
           .eq("user_id", user_id)
           .order("created_at", desc=True)
           .execute())
    rows = []
    for r in res.data or []:
        d = dict(r)
        program = d.pop("programs", None) or {}
        d["program_name"] = program.get("name") or "No Program"
        rows.append(d)
    return rows


def _invalidate_funding():
    list_funding.clear()
    funding_by_type.clear()
    program_summaries.clear()


def insert_funding(user_id: str, payload: dict) -> dict | None:
    res = get_client().table("funding").insert({**payload, "user_id": user_id}).execute()
    _invalidate_funding()
    log.info("funding created user=%s source=%r", user_id, payload.get("source"))
    return res.data[0] if res.data else None


def update_funding(user_id: str, funding_id: str, payload: dict):
    (get_client().table("funding").update(payload)
     .eq("id", funding_id)
     .eq("user_id", user_id)
     .execute())
    _invalidate_funding()
    log.info("funding updated user=%s id=%s", user_id, funding_id)


def delete_funding(user_id: str, funding_id: str):
    (get_client().table("funding").delete()
     .eq("id", funding_id)
     .eq("user_id", user_id)
     .execute())
    _invalidate_funding()
    log.info("funding deleted user=%s id=%s", user_id, funding_id)


# ─── Profiles ───

@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def get_profile(user_id: str) -> dict | None:
    res = get_client().table("profiles").select("*").eq("id", user_id).limit(1).execute()
    return res.data[0] if res.data else None


def update_profile(user_id: str, display_name: str, theme_preference: str):
    # Upsert: the profile row is normally created by a signup trigger, but may be missing.
    (get_client().table("profiles")
     .upsert({"id": user_id, "display_name": display_name, "theme_preference": theme_preference})
     .execute())
    get_profile.clear()
    log.info("profile updated user=%s theme=%s", user_id, theme_preference)


def upload_avatar(user_id: str, data: bytes, extension: str, content_type: str) -> str:
    """Store the image under ``<user_id>/<uuid>.<ext>`` then point the profile at it.

    The two calls are not atomic: a failed profile update leaves the uploaded
    file in the bucket.
    """
    path = f"{user_id}/{uuid.uuid4().hex}.{extension}"
    bucket = get_client().storage.from_(AVATAR_BUCKET)
    bucket.upload(path, data, {"content-type": content_type})
    url = bucket.get_public_url(path)
    log.info("avatar uploaded user=%s path=%s", user_id, path)

    get_client().table("profiles").upsert({"id": user_id, "avatar_url": url}).execute()
    get_profile.clear()
    return url


# ─── Dashboard aggregates ───

def _summary_with_fallback(proc: str, table: str, key: str, user_id: str) -> list[dict]:
    client = get_client()
    try:
        res = client.rpc(proc, {"user_id_param": user_id}).execute()
        return normalize_summary(res.data, key)
    except Exception as e:
        log.warning("%s failed, aggregating %s rows locally: %s", proc, table, e)
    res = client.table(table).select(f"{key}, amount").eq("user_id", user_id).execute()
    return summarize_by_key(res.data, key)


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def expenses_by_category(user_id: str) -> list[dict]:
    return _summary_with_fallback("get_expenses_by_category", "expenses", "category", user_id)


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def funding_by_type(user_id: str) -> list[dict]:
    return _summary_with_fallback("get_funding_by_type", "funding", "type", user_id)


@st.cache_data(ttl=CACHE_TTL, show_spinner=False)
def program_summaries(user_id: str) -> list[dict]:
    client = get_client()
    programs = (client.table("programs").select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()).data or []
    if not programs:
        return []
    expenses = client.table("expenses").select("program_id, amount").eq("user_id", user_id).execute().data
    funding = client.table("funding").select("program_id, amount").eq("user_id", user_id).execute().data
    return build_program_summaries(programs, expenses, funding)


def clear_caches():
    st.cache_data.clear()
