from __future__ import annotations

import argparse

from homecare.appointments import AppointmentService
from homecare.auth_security import Principal
from homecare.config import configure_logging
from homecare.db import db_session, init_db
from homecare.errors import DomainError
from homecare.notifications import NotificationDispatcher, NotificationService
from homecare.repositories import (
    AppointmentRepository,
    EmployeeRepository,
    MedicationRepository,
    NotificationRepository,
    PatientRepository,
)
from homecare.seed import seed_demo


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_demo()
    print("Database initialised and demo data loaded.")


def cmd_list(args: argparse.Namespace) -> None:
    with db_session() as s:
        if args.entity == "patients":
            for p in PatientRepository(s).list():
                print(f"{p.id} | {p.full_name} | {p.phone or '-'} | user {p.user_id}")
        elif args.entity == "employees":
            for e in EmployeeRepository(s).list():
                print(f"{e.id} | {e.full_name} | {e.department or '-'} | user {e.user_id}")
        elif args.entity == "appointments":
            for a in AppointmentRepository(s).list():
                state = "confirmed" if a.is_confirmed else "pending"
                print(f"{a.id} | {a.date:%Y-%m-%d} | {a.subject} | {a.patient_name} -> {a.employee_name} | {state}")
        elif args.entity == "medications":
            for m in MedicationRepository(s).list():
                until = m.end_date.isoformat() if m.end_date else "ongoing"
                print(f"{m.name} | {m.patient_name} | {m.dosage or '-'} | {m.start_date.isoformat()} -> {until}")


def cmd_notifications(args: argparse.Namespace) -> None:
    """
    Read the notifications of one user:
    - prints them newest first
    - optionally marks them all as read
    """
    with db_session() as s:
        service = NotificationService(NotificationRepository(s))
        items = service.list_unread_for_user(args.user_id) if args.unread else service.list_for_user(args.user_id)
        if not items:
            print("No notifications.")
            return

        for n in items:
            flag = " " if n.is_read else "*"
            print(f"{flag}[{n.id}] {n.type.value} | {n.created_at.isoformat(timespec='seconds')} | {n.title}: {n.message}")

        if args.mark_read:
            count = service.mark_all_read(args.user_id)
            print(f"{count} notification(s) marked as read.")


def cmd_confirm(args: argparse.Namespace) -> None:
    principal = Principal(id=args.employee_user_id, username="cli", roles=frozenset(["Employee"]))
    with db_session() as s:
        service = AppointmentService(
            AppointmentRepository(s),
            PatientRepository(s),
            EmployeeRepository(s),
            NotificationDispatcher(NotificationRepository(s)),
        )
        try:
            result = service.confirm(args.appointment_id, principal)
        except DomainError as exc:
            print(f"Error: {exc.message}")
            raise SystemExit(1)
    print(result.message)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="homecare", description="Home-care scheduling operator CLI")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create the databases and load demo data")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="List entities")
    p_list.add_argument("entity", choices=["patients", "employees", "appointments", "medications"])
    p_list.set_defaults(func=cmd_list)

    p_not = sub.add_parser("notifications", help="Show the notifications of a user")
    p_not.add_argument("--user-id", required=True)
    p_not.add_argument("--unread", action="store_true", help="Only unread notifications")
    p_not.add_argument("--mark-read", action="store_true", help="Mark all as read after printing them")
    p_not.set_defaults(func=cmd_notifications)

    p_conf = sub.add_parser("confirm", help="Confirm an appointment as its assigned employee")
    p_conf.add_argument("--appointment-id", type=int, required=True)
    p_conf.add_argument("--employee-user-id", required=True)
    p_conf.set_defaults(func=cmd_confirm)

    return p


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    init_db()  # make sure tables exist
    args.func(args)


if __name__ == "__main__":
    main()
