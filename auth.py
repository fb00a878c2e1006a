import streamlit as st

from database import get_client, get_profile
from logging_setup import get_logger
from styles import toast_error

log = get_logger("budget.auth")

MIN_PASSWORD_LENGTH = 6


def _store_session(response) -> bool:
    """Copy the backend auth response into session state. False if no session yet."""
    user = getattr(response, "user", None)
    session = getattr(response, "session", None)
    if user is None or session is None:
        return False
    st.session_state["user_id"] = user.id
    st.session_state["user_email"] = user.email
    st.session_state["access_token"] = session.access_token
    st.session_state["refresh_token"] = session.refresh_token
    return True


def sign_in(email: str, password: str) -> bool:
    response = get_client().auth.sign_in_with_password({"email": email.strip(), "password": password})
    ok = _store_session(response)
    if ok:
        log.info("signed in user=%s", st.session_state["user_id"])
    return ok


def sign_up(email: str, password: str) -> bool:
    """Create the account. Returns False when the backend wants e-mail confirmation first."""
    response = get_client().auth.sign_up({"email": email.strip(), "password": password})
    ok = _store_session(response)
    log.info("signed up email=%s confirmed=%s", email.strip(), ok)
    return ok


def get_current_user_id() -> str | None:
    return st.session_state.get("user_id")


def get_current_user() -> dict | None:
    uid = get_current_user_id()
    if uid is None:
        return None
    try:
        profile = get_profile(uid) or {}
    except Exception as e:
        toast_error("Error loading profile", e, log)
        profile = {}
    email = st.session_state.get("user_email") or ""
    return {
        "id": uid,
        "email": email,
        "display_name": profile.get("display_name") or email,
        "avatar_url": profile.get("avatar_url"),
        "theme": profile.get("theme_preference") or "light",
    }


def require_auth():
    """Call at top of each page. Stops execution if not logged in."""
    if get_current_user_id() is None:
        st.switch_page("app.py")
        st.stop()


def logout():
    try:
        get_client().auth.sign_out()
    except Exception as e:
        log.warning("backend sign-out failed: %s", e)
    for key in list(st.session_state.keys()):
        del st.session_state[key]


def show_auth_page():
    """Display sign in / sign up. Returns True if authenticated."""
    if get_current_user_id() is not None:
        return True

    st.markdown("""
    <div style="text-align:center;margin-bottom:1.5rem">
        <h2 style="margin:0">💼 Budget Manager</h2>
        <p style="color:#6b7280;font-size:0.9rem">Programs, expenses and funding in one place</p>
    </div>
    """, unsafe_allow_html=True)

    tab_login, tab_register = st.tabs(["🔑 Sign in", "📝 Sign up"])

    with tab_login:
        email = st.text_input("Email", key="login_email", placeholder="you@example.org")
        password = st.text_input("Password", type="password", key="login_pass")

        if st.button("Sign in", type="primary", use_container_width=True, key="login_btn"):
            if not email or not password:
                st.warning("⚠️ Please fill in all fields.")
            else:
                try:
                    if sign_in(email, password):
                        st.rerun()
                    else:
                        st.error("❌ Sign in failed.")
                except Exception as e:
                    log.warning("sign in failed email=%s: %s", email, e)
                    st.error(f"❌ {e}")

    with tab_register:
        new_email = st.text_input("Email", key="reg_email", placeholder="you@example.org")
        new_pass = st.text_input("Password", type="password", key="reg_pass")
        new_pass2 = st.text_input("Confirm password", type="password", key="reg_pass2")

        if st.button("Create account", type="primary", use_container_width=True, key="reg_btn"):
            if not new_email or not new_pass:
                st.warning("⚠️ Please fill in all fields.")
            elif len(new_pass) < MIN_PASSWORD_LENGTH:
                st.warning(f"⚠️ Password too short ({MIN_PASSWORD_LENGTH} characters min).")
            elif new_pass != new_pass2:
                st.error("❌ Passwords do not match.")
            else:
                try:
                    if sign_up(new_email, new_pass):
                        st.rerun()
                    else:
                        st.success("✅ Account created. Check your inbox to confirm it, then sign in.")
                except Exception as e:
                    log.warning("sign up failed email=%s: %s", new_email, e)
                    st.error(f"❌ {e}")

    return False
