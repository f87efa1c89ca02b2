"""
One-time code entry and the two flows built on it: email verification after
registration, and password reset.

Both flows are explicit state machines. Every step names an event; the
``TRANSITIONS`` table says which state the event is legal in and where it
leads. Remote failures never escape a flow, they become notifications.
"""

import asyncio
import re
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple

from .auth import SessionStore
from .client import WellNestClient
from .exceptions import InvalidTransitionError, ValidationError, VerificationError, WellNestError
from .logging_utils import get_logger
from .models import MIN_PASSWORD_LENGTH, OTP_LENGTH, RegistrationDetails, Session
from .notifications import Notification, NotificationLevel

logger = get_logger("otp")

RESEND_COOLDOWN_SECONDS = 60

_DIGITS_ONLY = re.compile(r"[0-9]*")
_NON_DIGITS = re.compile(r"[^0-9]")


class OtpBuffer:
    """Fixed-width row of single-digit slots with a focus cursor"""

    def __init__(self, length: int = OTP_LENGTH):
        if length < 1:
            raise ValueError("OTP length must be positive")
        self.length = length
        self.slots: List[str] = [""] * length
        self.focus = 0

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.length:
            raise IndexError(f"OTP slot {index} out of range 0..{self.length - 1}")

    def enter(self, index: int, value: str) -> bool:
        """Type into one slot. Non-digits are refused and change nothing."""
        self._check_index(index)
        if not _DIGITS_ONLY.fullmatch(value):
            return False

        self.slots[index] = value[-1:]
        if value and index < self.length - 1:
            self.focus = index + 1
        else:
            self.focus = index
        return True

    def backspace(self, index: int) -> None:
        """Clear a filled slot, or step back from an empty one"""
        self._check_index(index)
        if self.slots[index]:
            self.slots[index] = ""
            self.focus = index
        elif index > 0:
            self.focus = index - 1

    def paste(self, text: str) -> int:
        """Fill slots from the start with the digits found in ``text``"""
        digits = _NON_DIGITS.sub("", text or "")[:self.length]
        for i, digit in enumerate(digits):
            self.slots[i] = digit

        empty = [i for i, slot in enumerate(self.slots) if not slot]
        self.focus = empty[0] if empty else self.length - 1
        return len(digits)

    def clear(self) -> None:
        self.slots = [""] * self.length
        self.focus = 0

    @property
    def is_complete(self) -> bool:
        return all(len(slot) == 1 for slot in self.slots)

    @property
    def value(self) -> str:
        return "".join(self.slots)

    def __repr__(self) -> str:
        return f"OtpBuffer({self.slots!r}, focus={self.focus})"


class ResendCooldown:
    """Seconds left before another code may be requested.

    Inside a running event loop ``start()`` also schedules a task that ticks
    once per ``interval``; without one (or with ``auto_tick=False``) the
    caller drives ``tick()``.
    """

    def __init__(self, seconds: int = RESEND_COOLDOWN_SECONDS, interval: float = 1.0,
                 auto_tick: bool = True):
        self.seconds = seconds
        self.interval = interval
        self.auto_tick = auto_tick
        self.remaining = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def ready(self) -> bool:
        return self.remaining == 0

    def tick(self) -> int:
        if self.remaining > 0:
            self.remaining -= 1
        return self.remaining

    def start(self) -> None:
        self.remaining = self.seconds
        if self.auto_tick:
            self._ensure_ticking()

    def _ensure_ticking(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.interval)
            self.tick()

    def stop(self) -> None:
        """Cancel the ticking task and zero the counter"""
        if self._task:
            self._task.cancel()
            self._task = None
        self.remaining = 0


class _OtpFlow:
    """Shared machinery: state table, busy flag, cooldown, notifications"""

    TRANSITIONS: Dict[Tuple[Enum, str], Enum] = {}
    INITIAL_STATE: Enum
    RESEND_STATES: FrozenSet[Enum] = frozenset()

    def __init__(self, cooldown_seconds: int = RESEND_COOLDOWN_SECONDS,
                 tick_interval: float = 1.0, auto_tick: bool = True,
                 notify: Optional[Callable[[Notification], None]] = None):
        self.state = self.INITIAL_STATE
        self.buffer = OtpBuffer(OTP_LENGTH)
        self.cooldown = ResendCooldown(cooldown_seconds, tick_interval, auto_tick)
        self.busy = False
        self.closed = False
        self.last_error: Optional[WellNestError] = None
        self.notifications: List[Notification] = []
        self._notify_hook = notify

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Discard the flow; late results are ignored from here on"""
        self.closed = True
        self.cooldown.stop()

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        if notification.level is NotificationLevel.ERROR:
            logger.info("%s: %s", type(self).__name__, notification.message)
        if self._notify_hook:
            self._notify_hook(notification)

    def can(self, event: str) -> bool:
        return (self.state, event) in self.TRANSITIONS

    def _require(self, event: str) -> None:
        if not self.can(event):
            raise InvalidTransitionError(f"Cannot {event.replace('_', ' ')} while {self.state.value}")

    def _fire(self, event: str) -> None:
        self._require(event)
        previous = self.state
        self.state = self.TRANSITIONS[(self.state, event)]
        logger.debug("%s: %s --%s--> %s", type(self).__name__,
                     previous.value, event, self.state.value)

    async def _call(self, operation: Callable[[], Awaitable[Any]]) -> Tuple[bool, Any]:
        """Run one remote step with the submit affordance disabled"""
        self.busy = True
        self.last_error = None
        try:
            result = await operation()
        except WellNestError as e:
            if not self.closed:
                self.last_error = e
                self.notify(Notification.from_error(e))
            return False, None
        finally:
            self.busy = False
        return True, result

    def _reject_locally(self, error: ValidationError) -> None:
        self.last_error = error
        self.notify(Notification.from_error(error))

    def _check_otp(self) -> bool:
        if self.buffer.is_complete:
            return True
        self._reject_locally(ValidationError(f"Please enter the {self.buffer.length}-digit OTP"))
        return False

    async def _send_code(self) -> Any:
        raise NotImplementedError

    @property
    def can_resend(self) -> bool:
        return (self.state in self.RESEND_STATES and self.cooldown.ready
                and not self.busy and not self.closed)

    async def resend(self) -> bool:
        """Request a fresh code once the cooldown has run out"""
        if self.busy or self.closed:
            return False
        if self.state not in self.RESEND_STATES:
            raise InvalidTransitionError(f"Cannot resend code while {self.state.value}")
        if not self.cooldown.ready:
            self.notify(Notification.info(f"Resend OTP in {self.cooldown.remaining}s"))
            return False

        ok, _ = await self._call(self._send_code)
        if not ok or self.closed:
            return False

        self.buffer.clear()
        self.cooldown.start()
        self.notify(Notification.success("New OTP sent!"))
        return True


class RegistrationState(str, Enum):
    COLLECTING_DETAILS = "COLLECTING_DETAILS"
    OTP_SENT = "OTP_SENT"
    VERIFYING = "VERIFYING"
    COMPLETE = "COMPLETE"


class RegistrationFlow(_OtpFlow):
    """Sign-up form, then email verification. The session starts only at COMPLETE."""

    INITIAL_STATE = RegistrationState.COLLECTING_DETAILS
    TRANSITIONS = {
        (RegistrationState.COLLECTING_DETAILS, "send_code"): RegistrationState.OTP_SENT,
        (RegistrationState.OTP_SENT, "verify"): RegistrationState.VERIFYING,
        (RegistrationState.VERIFYING, "verified"): RegistrationState.COMPLETE,
        (RegistrationState.VERIFYING, "rejected"): RegistrationState.OTP_SENT,
        (RegistrationState.OTP_SENT, "back"): RegistrationState.COLLECTING_DETAILS,
    }
    RESEND_STATES = frozenset({RegistrationState.OTP_SENT})

    def __init__(self, store: SessionStore, **kwargs):
        super().__init__(**kwargs)
        self.store = store
        self.details = RegistrationDetails()
        self.session: Optional[Session] = None

    async def submit_details(self, details: RegistrationDetails) -> bool:
        if self.busy or self.closed:
            return False
        self._require("send_code")

        # Keep what was typed so a failed attempt can be corrected in place
        self.details = details
        try:
            details.check()
        except ValidationError as e:
            self._reject_locally(e)
            return False

        ok, _ = await self._call(lambda: self.store.register(details))
        if not ok or self.closed:
            return False

        self._fire("send_code")
        self.buffer.clear()
        self.cooldown.start()
        self.notify(Notification.success("OTP sent to your email!"))
        return True

    async def submit_otp(self) -> Optional[Session]:
        if self.busy or self.closed:
            return None
        self._require("verify")
        if not self._check_otp():
            return None

        self._fire("verify")
        ok, session = await self._call(
            lambda: self.store.verify_email(self.details.email, self.buffer.value)
        )
        if self.closed:
            return None
        if not ok:
            self._fire("rejected")
            return None

        self._fire("verified")
        self.session = session
        self.cooldown.stop()
        self.notify(Notification.success("Email verified! Welcome to WellNest!"))
        return session

    def back(self) -> None:
        """Return to the form; the entered code is dropped"""
        self._fire("back")
        self.buffer.clear()
        self.cooldown.stop()

    async def _send_code(self) -> Any:
        return await self.store.resend_verification_code(self.details.email)


class PasswordResetState(str, Enum):
    EMAIL_ENTRY = "EMAIL_ENTRY"
    OTP_ENTRY = "OTP_ENTRY"
    PASSWORD_ENTRY = "PASSWORD_ENTRY"
    DONE = "DONE"


class PasswordResetFlow(_OtpFlow):
    """Email, code, new password.

    The code is only checked locally for completeness; the server redeems it
    together with the new password. A rejected code sends the flow back to
    OTP_ENTRY.
    """

    INITIAL_STATE = PasswordResetState.EMAIL_ENTRY
    TRANSITIONS = {
        (PasswordResetState.EMAIL_ENTRY, "send_code"): PasswordResetState.OTP_ENTRY,
        (PasswordResetState.OTP_ENTRY, "accept_otp"): PasswordResetState.PASSWORD_ENTRY,
        (PasswordResetState.PASSWORD_ENTRY, "reset"): PasswordResetState.DONE,
        (PasswordResetState.PASSWORD_ENTRY, "otp_rejected"): PasswordResetState.OTP_ENTRY,
    }
    RESEND_STATES = frozenset({PasswordResetState.OTP_ENTRY})

    def __init__(self, client: WellNestClient, **kwargs):
        super().__init__(**kwargs)
        self.client = client
        self.email = ""
        self.new_password = ""
        self.confirm_password = ""

    async def submit_email(self, email: str) -> bool:
        if self.busy or self.closed:
            return False
        self._require("send_code")

        self.email = (email or "").strip()
        if "@" not in self.email:
            self._reject_locally(ValidationError("Email must be valid"))
            return False

        ok, _ = await self._call(self._send_code)
        if not ok or self.closed:
            return False

        self._fire("send_code")
        self.buffer.clear()
        self.cooldown.start()
        self.notify(Notification.success("OTP sent to your email!"))
        return True

    def submit_otp(self) -> bool:
        if self.busy or self.closed:
            return False
        self._require("accept_otp")
        if not self._check_otp():
            return False
        self._fire("accept_otp")
        return True

    async def submit_password(self, new_password: str, confirm_password: str) -> bool:
        if self.busy or self.closed:
            return False
        self._require("reset")

        self.new_password = new_password
        self.confirm_password = confirm_password
        if len(new_password) < MIN_PASSWORD_LENGTH:
            self._reject_locally(
                ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
            )
            return False
        if new_password != confirm_password:
            self._reject_locally(ValidationError("Passwords do not match"))
            return False

        ok, _ = await self._call(
            lambda: self.client.reset_password(self.email, self.buffer.value, new_password)
        )
        if self.closed:
            return False
        if not ok:
            if isinstance(self.last_error, VerificationError):
                self._fire("otp_rejected")
                self.buffer.clear()
            return False

        self._fire("reset")
        self.cooldown.stop()
        self.new_password = self.confirm_password = ""
        self.notify(Notification.success("Password reset successful!"))
        return True

    async def _send_code(self) -> Any:
        return await self.client.forgot_password(self.email)
