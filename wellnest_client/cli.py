"""
Command-line front end for WellNest
"""

import argparse
import asyncio
import getpass
import sys
from typing import Awaitable, Callable, Dict, List, Optional

from .app import WellNestApp
from .config import get_settings
from .exceptions import WellNestError
from .logging_utils import setup_logging
from .models import FitnessProfile, RegistrationDetails, Report, ReportStatus, Role, UserSummary
from .notifications import Notification, NotificationLevel
from .otp import PasswordResetState, RegistrationState
from .routing import Outcome

SYMBOLS = {
    NotificationLevel.SUCCESS: "[ok]",
    NotificationLevel.INFO: "[i]",
    NotificationLevel.WARNING: "[!]",
    NotificationLevel.ERROR: "[x]",
}


def show(notification: Notification) -> None:
    stream = sys.stderr if notification.level is NotificationLevel.ERROR else sys.stdout
    print(f"{SYMBOLS[notification.level]} {notification.message}", file=stream)


async def ask(prompt: str, secret: bool = False) -> str:
    # Prompt off the event loop so the resend countdown keeps ticking
    reader = getpass.getpass if secret else input
    return (await asyncio.to_thread(reader, prompt)).strip()


def _print_reports(reports: List[Report]) -> None:
    if not reports:
        print("No reports.")
        return
    for report in reports:
        print(f"{report.id}  {report.status.value:<9}  trainer={report.trainer_name or report.trainer_id}"
              f"  by={report.customer_name or report.customer_id or '-'}")
        print(f"    {report.message}")


def _print_users(users: List[UserSummary]) -> None:
    if not users:
        print("No users.")
        return
    for user in users:
        verified = "verified" if user.email_verified else "unverified"
        extra = f"  clients={user.assigned_clients}" if user.assigned_clients is not None else ""
        print(f"{user.id}  {user.username:<16} {user.email:<28} {verified}{extra}")


async def _otp_loop(flow, expected_state, submit) -> bool:
    """Read codes until one is accepted; 'resend' asks for a new one"""
    while flow.state is expected_state:
        code = await ask(f"Enter the {flow.buffer.length}-digit code (or 'resend', 'quit'): ")
        if code.lower() == "quit":
            return False
        if code.lower() == "resend":
            await flow.resend()
            continue
        flow.buffer.clear()
        flow.buffer.paste(code)
        await submit()
    return True


async def cmd_login(app: WellNestApp, args) -> int:
    password = args.password or await ask("Password: ", secret=True)
    notification = await app.sign_in(args.username, password)
    show(notification)
    return 0 if notification.level is NotificationLevel.SUCCESS else 1


async def cmd_register(app: WellNestApp, args) -> int:
    details = RegistrationDetails(
        full_name=args.full_name or await ask("Full name: "),
        username=args.username or await ask("Username: "),
        email=args.email or await ask("Email: "),
        password=await ask("Password (min 6 chars): ", secret=True),
        confirm_password=await ask("Confirm password: ", secret=True),
        role=Role(args.role.upper()),
    )

    async with app.registration_flow(notify=show) as flow:
        if not await flow.submit_details(details):
            return 1
        if not await _otp_loop(flow, RegistrationState.OTP_SENT, flow.submit_otp):
            return 1
        return 0 if flow.state is RegistrationState.COMPLETE else 1


async def cmd_verify(app: WellNestApp, args) -> int:
    session = await app.store.verify_email(args.email, args.otp)
    show(Notification.success(f"Email verified! Signed in as {session.username}"))
    return 0


async def cmd_forgot_password(app: WellNestApp, args) -> int:
    async with app.password_reset_flow(notify=show) as flow:
        email = args.email or await ask("Email: ")
        if not await flow.submit_email(email):
            return 1

        while flow.state is not PasswordResetState.DONE:
            if flow.state is PasswordResetState.OTP_ENTRY:
                if not await _otp_loop(flow, PasswordResetState.OTP_ENTRY, _sync(flow.submit_otp)):
                    return 1
                continue
            await flow.submit_password(
                await ask("New password: ", secret=True),
                await ask("Confirm new password: ", secret=True),
            )
    return 0


def _sync(func: Callable[[], object]) -> Callable[[], Awaitable[None]]:
    async def wrapper() -> None:
        func()
    return wrapper


async def cmd_logout(app: WellNestApp, args) -> int:
    show(app.sign_out())
    return 0


async def cmd_whoami(app: WellNestApp, args) -> int:
    session = app.store.session
    if session is None:
        print("Not signed in.")
        return 1
    print(f"{session.full_name} ({session.username}) <{session.email}>  role={session.role.value}")
    return 0


async def cmd_open(app: WellNestApp, args) -> int:
    decision = app.navigator.navigate(args.path)
    if decision.outcome is Outcome.LOADING:
        print("Loading...")
    elif app.navigator.current_path != app.navigator.requested_path:
        print(f"{app.navigator.requested_path} -> {decision.path}")
    else:
        print(decision.path)
    return 0


async def cmd_trainers(app: WellNestApp, args) -> int:
    client = app.client
    if args.action == "list":
        trainers = await client.get_available_trainers()
        for trainer in trainers:
            print(f"{trainer.id}  {trainer.full_name or trainer.username:<24} "
                  f"trainees={trainer.active_trainee_count}")
        if not trainers:
            print("No trainers available.")
    elif args.action == "select":
        show(Notification.success(await client.select_trainer(args.trainer_id)))
    elif args.action == "trainees":
        trainees = await client.get_my_trainees()
        for trainee in trainees:
            profile = "profile" if trainee.has_profile else "no profile"
            print(f"{trainee.id}  {trainee.full_name or trainee.username:<24} "
                  f"goal={trainee.fitness_goal or '-'}  ({profile})")
        if not trainees:
            print("No trainees today.")
    elif args.action == "today":
        trainer = await client.get_my_trainer_today()
        print(f"Today's trainer: {trainer.full_name or trainer.username}" if trainer
              else "No trainer selected for today.")
    return 0


async def cmd_profile(app: WellNestApp, args) -> int:
    if args.action == "show":
        profile = await app.client.get_profile()
        print(f"{profile.full_name} ({profile.username}) <{profile.email}>  role={profile.role.value}")
        fitness = profile.fitness_profile
        if fitness:
            for key, value in fitness.model_dump(exclude={"id"}, exclude_none=True).items():
                print(f"  {key.replace('_', ' ')}: {value}")
        else:
            print("  No fitness profile yet.")
        return 0

    profile = FitnessProfile(
        age=args.age, weight=args.weight, height=args.height, gender=args.gender,
        fitness_goal=args.goal, activity_level=args.activity, medical_notes=args.notes,
    )
    await app.client.save_fitness_profile(profile)
    show(Notification.success("Fitness profile saved"))
    return 0


async def cmd_reports(app: WellNestApp, args) -> int:
    client = app.client
    if args.action == "create":
        await client.create_report(args.trainer_id, args.message)
        show(Notification.success("Report submitted successfully. Admin will review it soon."))
    elif args.action == "mine":
        _print_reports(await client.get_my_reports())
    elif args.action == "list":
        _print_reports(await client.get_all_reports())
    elif args.action == "pending":
        _print_reports(await client.get_pending_reports())
    elif args.action == "trainer":
        _print_reports(await client.get_reports_by_trainer(args.trainer_id))
    elif args.action == "status":
        report = await client.update_report_status(args.report_id, ReportStatus(args.status.upper()))
        show(Notification.success(f"Report {report.id} marked {report.status.value}"))
    elif args.action == "delete":
        show(Notification.success(await client.delete_report(args.report_id)))
    return 0


async def cmd_admin(app: WellNestApp, args) -> int:
    client = app.client
    if args.action == "stats":
        stats = await client.get_admin_stats()
        for key, value in stats.model_dump().items():
            print(f"{key.replace('_', ' ')}: {value}")
    elif args.action == "customers":
        _print_users(await client.get_all_customers())
    elif args.action == "trainers":
        _print_users(await client.get_all_trainers())
    elif args.action == "delete-user":
        show(Notification.success(await client.delete_user(args.user_id)))
    return 0


COMMANDS: Dict[str, Callable[[WellNestApp, argparse.Namespace], Awaitable[int]]] = {
    "login": cmd_login,
    "register": cmd_register,
    "verify": cmd_verify,
    "forgot-password": cmd_forgot_password,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "open": cmd_open,
    "trainers": cmd_trainers,
    "profile": cmd_profile,
    "reports": cmd_reports,
    "admin": cmd_admin,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wellnest", description="WellNest fitness coaching client")
    parser.add_argument("--api-url", help="API base URL (default: $WELLNEST_API_URL)")
    parser.add_argument("--session-file", help="Where the signed-in session is kept")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in")
    login.add_argument("username", help="Username or email")
    login.add_argument("--password", help="Prompted for when omitted")

    register = sub.add_parser("register", help="Create an account and verify the email")
    register.add_argument("--username")
    register.add_argument("--email")
    register.add_argument("--full-name")
    register.add_argument("--role", choices=["user", "trainer"], default="user")

    verify = sub.add_parser("verify", help="Verify an email with a code you already have")
    verify.add_argument("email")
    verify.add_argument("otp")

    forgot = sub.add_parser("forgot-password", help="Reset a forgotten password")
    forgot.add_argument("--email")

    sub.add_parser("logout", help="Sign out")
    sub.add_parser("whoami", help="Show the signed-in account")

    open_ = sub.add_parser("open", help="Show where a page path leads")
    open_.add_argument("path")

    trainers = sub.add_parser("trainers", help="Trainer selection")
    trainers_sub = trainers.add_subparsers(dest="action", required=True)
    trainers_sub.add_parser("list")
    select = trainers_sub.add_parser("select")
    select.add_argument("trainer_id")
    trainers_sub.add_parser("trainees")
    trainers_sub.add_parser("today")

    profile = sub.add_parser("profile", help="Your profile")
    profile_sub = profile.add_subparsers(dest="action", required=True)
    profile_sub.add_parser("show")
    fitness = profile_sub.add_parser("fitness")
    fitness.add_argument("--age", type=int)
    fitness.add_argument("--weight", type=float, help="kg")
    fitness.add_argument("--height", type=float, help="cm")
    fitness.add_argument("--gender")
    fitness.add_argument("--goal")
    fitness.add_argument("--activity")
    fitness.add_argument("--notes")

    reports = sub.add_parser("reports", help="Trainer misconduct reports")
    reports_sub = reports.add_subparsers(dest="action", required=True)
    create = reports_sub.add_parser("create")
    create.add_argument("trainer_id")
    create.add_argument("message")
    reports_sub.add_parser("mine")
    reports_sub.add_parser("list")
    reports_sub.add_parser("pending")
    by_trainer = reports_sub.add_parser("trainer")
    by_trainer.add_argument("trainer_id")
    status = reports_sub.add_parser("status")
    status.add_argument("report_id")
    status.add_argument("status", choices=[s.value.lower() for s in ReportStatus])
    delete = reports_sub.add_parser("delete")
    delete.add_argument("report_id")

    admin = sub.add_parser("admin", help="Administration")
    admin_sub = admin.add_subparsers(dest="action", required=True)
    admin_sub.add_parser("stats")
    admin_sub.add_parser("customers")
    admin_sub.add_parser("trainers")
    delete_user = admin_sub.add_parser("delete-user")
    delete_user.add_argument("user_id")

    return parser


async def run(app: WellNestApp, args: argparse.Namespace) -> int:
    app.start()
    try:
        return await COMMANDS[args.command](app, args)
    except WellNestError as e:
        show(Notification.from_error(e))
        return 1
    finally:
        await app.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.api_url:
        settings.api.base_url = args.api_url
    if args.session_file:
        settings.storage.session_file = args.session_file
    if args.verbose:
        settings.logging.level = "DEBUG"
    setup_logging(settings.logging)

    try:
        return asyncio.run(run(WellNestApp(settings), args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
