from __future__ import annotations

from datetime import date, datetime, time

import streamlit as st

from ui_client import (
    API_BASE,
    ApiError,
    api_delete,
    api_get,
    api_login,
    api_post,
    api_put,
    jwt_is_expired,
    jwt_role,
    jwt_username,
)

st.set_page_config(page_title="Home Care", layout="wide")


def is_logged_in() -> bool:
    token = st.session_state.get("token")
    return bool(token) and isinstance(token, str) and len(token) > 0


def do_logout() -> None:
    st.session_state.pop("token", None)
    st.session_state.pop("me", None)
    st.rerun()


def session_lost() -> None:
    # a 401 means the token is useless: purge it and go back to the login form
    st.session_state.pop("token", None)
    st.session_state.pop("me", None)
    st.session_state["auth_error"] = "Session expired. Please log in again."
    st.rerun()


def require_auth() -> str | None:
    token = st.session_state.get("token")
    if not token:
        st.warning("Please log in from the sidebar.")
        return None

    if jwt_is_expired(token):
        session_lost()

    return token


def load_me(token: str) -> dict:
    if "me" not in st.session_state:
        st.session_state["me"] = api_get("/api/auth/me", token=token)
    return st.session_state["me"]


def list_or_empty(path: str, token: str | None = None) -> list[dict]:
    # GET list endpoints answer 404 when there is nothing to show
    try:
        return api_get(path, token=token) or []
    except ApiError as e:
        if e.status_code == 404:
            return []
        raise


# Sidebar login / register

with st.sidebar:
    st.header("Access")

    if st.session_state.get("auth_error"):
        st.error(st.session_state.pop("auth_error"))

    if not is_logged_in():
        mode = st.radio("Mode", ["Login", "Register"], horizontal=True, key="auth_mode")
        u = st.text_input("Username", key="login_user")
        p = st.text_input("Password", type="password", key="login_pass")

        if mode == "Login":
            if st.button("Login", key="login_btn"):
                try:
                    st.session_state["token"] = api_login(u.strip().lower(), p)
                    st.rerun()
                except ApiError as e:
                    st.error(e.message)
        else:
            email = st.text_input("Email", key="reg_email")
            role = st.selectbox("Role", ["Patient", "Employee"], key="reg_role")
            if st.button("Register", key="reg_btn"):
                try:
                    res = api_post(
                        "/api/auth/register",
                        {"username": u, "email": email, "password": p, "role": role},
                    )
                    st.success(res["message"])
                except ApiError as e:
                    st.error(e.message)
    else:
        token = st.session_state["token"]
        st.write(f"User: **{jwt_username(token)}** ({jwt_role(token) or '-'})")

        if st.button("Logout", key="logout_btn"):
            do_logout()

    st.divider()
    st.caption(f"API: {API_BASE}")


# UI

st.title("Home Care Scheduling")

token = require_auth()
if not token:
    st.stop()

try:
    me = load_me(token)
except PermissionError:
    session_lost()

is_employee = me["role"] in ("Employee", "Admin")

tab_appt, tab_med, tab_notif, tab_profile = st.tabs(["Appointments", "Medications", "Notifications", "Profile"])


# TAB 1 - Appointments

with tab_appt:
    try:
        if is_employee:
            appointments = list_or_empty("/api/appointments", token)
        elif me.get("patient_id"):
            appointments = list_or_empty(f"/api/appointments/patient/{me['patient_id']}", token)
        else:
            appointments = []
            st.info("Complete your profile to book appointments.")

        if not appointments:
            st.info("No appointments.")
        for a in appointments:
            state = "Confirmed" if a["is_confirmed"] else "Pending"
            c1, c2, c3 = st.columns([6, 1, 1])
            c1.write(
                f"**{a['date'][:10]}** | {a['subject']} | {a['patient_name']} with {a['employee_name']} | {state}"
            )
            if is_employee and not a["is_confirmed"] and c2.button("Confirm", key=f"conf_{a['id']}"):
                try:
                    st.success(api_post(f"/api/appointments/{a['id']}/confirm", {}, token=token)["message"])
                except ApiError as e:
                    st.error(e.message)
            if c3.button("Delete", key=f"del_{a['id']}"):
                try:
                    api_delete(f"/api/appointments/{a['id']}", token=token)
                    st.rerun()
                except ApiError as e:
                    st.error(e.message)

        st.divider()
        st.subheader("Book an appointment")
        employees = api_get("/api/employees", token=token)
        patients = api_get("/api/patients", token=token) if is_employee else []

        with st.form("book_form"):
            subject = st.text_input("Subject")
            description = st.text_area("Description", height=80)
            day = st.date_input("Date", value=date.today())
            employee = st.selectbox("Employee", options=employees, format_func=lambda e: e["full_name"])
            if is_employee:
                patient = st.selectbox("Patient", options=patients, format_func=lambda p: p["full_name"])
                patient_id = patient["id"] if patient else None
            else:
                patient_id = me.get("patient_id")
            submitted = st.form_submit_button("Book")

        if submitted:
            if not employee or not patient_id:
                st.error("Patient and employee are required.")
            else:
                payload = {
                    "subject": subject,
                    "description": description,
                    "date": datetime.combine(day, time(23, 59)).isoformat(),
                    "patient_id": patient_id,
                    "employee_id": employee["id"],
                }
                try:
                    res = api_post("/api/appointments", payload, token=token)
                    st.success("Appointment booked." if res["is_confirmed"] else "Appointment requested.")
                except ApiError as e:
                    st.error(e.message)
    except PermissionError:
        session_lost()
    except ApiError as e:
        st.error(e.message)


# TAB 2 - Medications

with tab_med:
    try:
        if is_employee:
            meds = api_get("/api/medications", token=token)
        elif me.get("patient_id"):
            meds = api_get(f"/api/medications/patient/{me['patient_id']}", token=token)
        else:
            meds = []

        if not meds:
            st.info("No medications.")
        for m in meds:
            until = m["end_date"] or "ongoing"
            st.write(f"- **{m['name']}** ({m['patient_name']}) | {m['dosage'] or '-'} | {m['start_date']} -> {until}")

        if is_employee:
            st.divider()
            st.subheader("Add medication")
            patients = api_get("/api/patients", token=token)
            with st.form("med_form"):
                name = st.text_input("Name")
                patient = st.selectbox("Patient", options=patients, format_func=lambda p: p["full_name"])
                dosage = st.text_input("Dosage")
                indication = st.text_input("Indication")
                start = st.date_input("Start date", value=date.today())
                submitted = st.form_submit_button("Add")
            if submitted and patient:
                try:
                    api_post(
                        "/api/medications",
                        {
                            "name": name,
                            "patient_id": patient["id"],
                            "dosage": dosage,
                            "indication": indication,
                            "start_date": start.isoformat(),
                        },
                        token=token,
                    )
                    st.success("Medication added.")
                except ApiError as e:
                    st.error(e.message)
    except PermissionError:
        session_lost()
    except ApiError as e:
        st.error(e.message)


# TAB 3 - Notifications

with tab_notif:
    try:
        unread = api_get("/api/notifications/unread-count", token=token)
        c1, c2 = st.columns([4, 1])
        c1.subheader(f"Notifications ({unread} unread)")
        if c2.button("Mark all read", key="notif_all"):
            api_put("/api/notifications/mark-all-read", token=token)
            st.rerun()

        for n in api_get("/api/notifications", token=token):
            flag = "" if n["is_read"] else "🔵 "
            with st.expander(f"{flag}{n['title']} | {n['created_at'][:16].replace('T', ' ')}"):
                st.write(n["message"])
                b1, b2 = st.columns(2)
                if not n["is_read"] and b1.button("Mark read", key=f"nr_{n['id']}"):
                    api_put(f"/api/notifications/{n['id']}/mark-read", token=token)
                    st.rerun()
                if b2.button("Delete", key=f"nd_{n['id']}"):
                    api_delete(f"/api/notifications/{n['id']}", token=token)
                    st.rerun()
    except PermissionError:
        session_lost()
    except ApiError as e:
        st.error(e.message)


# TAB 4 - Profile

with tab_profile:
    st.write(f"Username: **{me['username']}** | Email: {me['email']} | Role: {me['role']}")

    try:
        if me["role"] == "Patient" and not me.get("patient_id"):
            with st.form("patient_profile"):
                full_name = st.text_input("Full name")
                address = st.text_input("Address")
                dob = st.date_input("Date of birth", value=date(1950, 1, 1), min_value=date(1900, 1, 1))
                phone = st.text_input("Phone")
                health_info = st.text_area("Health information")
                submitted = st.form_submit_button("Save profile")
            if submitted:
                try:
                    payload = {
                        "full_name": full_name,
                        "address": address,
                        "date_of_birth": dob.isoformat(),
                        "phone": phone,
                        "health_info": health_info,
                    }
                    st.success(api_post("/api/auth/complete-patient-profile", payload, token=token)["message"])
                    st.session_state.pop("me", None)
                except ApiError as e:
                    st.error(e.message)
        elif me["role"] == "Employee" and not me.get("employee_id"):
            with st.form("employee_profile"):
                full_name = st.text_input("Full name")
                address = st.text_input("Address")
                department = st.text_input("Department")
                submitted = st.form_submit_button("Save profile")
            if submitted:
                try:
                    payload = {"full_name": full_name, "address": address, "department": department}
                    st.success(api_post("/api/auth/complete-employee-profile", payload, token=token)["message"])
                    st.session_state.pop("me", None)
                except ApiError as e:
                    st.error(e.message)

        st.divider()
        if st.checkbox("I want to delete my account", key="del_confirm"):
            if st.button("Delete account", key="del_account"):
                api_delete("/api/auth/delete-account", token=token)
                do_logout()
    except PermissionError:
        session_lost()
