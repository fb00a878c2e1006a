"""Pytest configuration for test isolation.

Every read in ``database`` goes through ``st.cache_data``, which is process
global. A result cached by one test would otherwise be served to the next one
and hide the stubbed backend, so the cache is dropped around every test.

The ``stub`` fixture swaps the backend client for an in-memory
:class:`~tests.helpers.supabase_stub.SupabaseStub`. ``auth`` imports
``get_client`` by name, so both module attributes are patched.
"""

from __future__ import annotations

import pytest
import streamlit as st

import auth
import database
from tests.helpers.supabase_stub import SupabaseStub


@pytest.fixture(autouse=True)
def _clear_streamlit_cache():
    st.cache_data.clear()
    yield
    st.cache_data.clear()


@pytest.fixture
def stub(monkeypatch: pytest.MonkeyPatch) -> SupabaseStub:
    client = SupabaseStub()
    monkeypatch.setattr(database, "get_client", lambda: client)
    monkeypatch.setattr(auth, "get_client", lambda: client)
    return client
