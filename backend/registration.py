"""
Registration with fixed group buckets.

Every new account lands in one of the configured groups, each capped at
`users_per_group`. Assignment is first-fit over the configured order: the
first group still under capacity wins. `last_assigned_group_index` is kept
as the index after the last pick, for reporting only.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .passwords import hash_password, verify_password
from .store import AccountStore

logger = logging.getLogger(__name__)

Notify = Callable[[str], Any]


class RegistrationError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateEmailError(RegistrationError):
    status_code = 409


class CapacityReachedError(RegistrationError):
    status_code = 503


class InvalidCredentialsError(RegistrationError):
    status_code = 401


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def assign_group(group_counts: Dict[str, int], group_ids: List[str],
                 capacity: int) -> Optional[Tuple[str, int]]:
    """First group under capacity and the index after it, or None if all are full."""
    for i, group_id in enumerate(group_ids):
        if group_counts.get(group_id, 0) < capacity:
            return group_id, (i + 1) % len(group_ids)
    return None


def distribution_report(state: Dict[str, Any], group_ids: List[str], capacity: int) -> str:
    lines = []
    for group_id in group_ids:
        count = state["group_counts"].get(group_id, 0)
        # Halves round up, matching the admin report format
        percentage = int(count * 100 / capacity + 0.5)
        lines.append(f"Group {group_id}: {count}/{capacity} ({percentage}%)")
    return "\n".join(lines)


def public_account(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k != "password_hash"}


class RegistrationService:
    def __init__(self, store: AccountStore, group_ids: List[str], users_per_group: int,
                 notify: Optional[Notify] = None):
        self.store = store
        self.group_ids = list(group_ids)
        self.users_per_group = users_per_group
        self.notify = notify or (lambda text: None)

    @property
    def account_limit(self) -> int:
        return len(self.group_ids) * self.users_per_group

    def register(self, name: str, email: str, phone: str, password: str,
                 confirm_password: str, notify: Optional[Notify] = None) -> Dict[str, Any]:
        notify = notify or self.notify
        name = (name or "").strip()
        email = normalize_email(email)
        phone = (phone or "").strip()

        if not name or not email or not phone or not password or not confirm_password:
            raise RegistrationError("Please fill in all fields")
        if password != confirm_password:
            raise RegistrationError("Passwords do not match")

        with self.store.transaction() as state:
            users = state["users"]
            if email in users:
                raise DuplicateEmailError("Email already registered")

            total = len(users)
            if total >= self.account_limit:
                logger.warning(f"Registration refused, all {self.account_limit} slots filled")
                notify(f"🚨 MAXIMUM CAPACITY REACHED 🚨\nAll {self.account_limit} accounts slots are filled!")
                raise CapacityReachedError("Registration closed. All groups are full.")

            assignment = assign_group(state["group_counts"], self.group_ids, self.users_per_group)
            if assignment is None:
                logger.error("No group with free capacity although the account limit was not reached")
                notify("🚨 GROUP ASSIGNMENT FAILED 🚨\nNo available groups found!")
                raise CapacityReachedError("Registration currently closed. Please try again later.")
            group_id, next_index = assignment

            record = {
                "name": name,
                "email": email,
                "phone": phone,
                "password_hash": hash_password(password),
                "group_id": group_id,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            users[email] = record
            state["group_counts"][group_id] += 1
            state["last_assigned_group_index"] = next_index

            group_count = state["group_counts"][group_id]
            report = distribution_report(state, self.group_ids, self.users_per_group)

        logger.info(f"Registered {email} in group {group_id} ({group_count}/{self.users_per_group})")
        notify(
            "✅ NEW ACCOUNT CREATED\n"
            f"Name: {name}\n"
            f"Email: {email}\n"
            f"Phone: {phone}\n"
            f"Assigned Group: {group_id}\n"
            f"Group Count: {group_count}/{self.users_per_group}\n"
            f"Created At: {record['created_at']}\n"
            f"Total Accounts: {total + 1}/{self.account_limit}\n"
            f"Group Distribution:\n{report}"
        )
        return public_account(record)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        record = self.store.load().get("users", {}).get(normalize_email(email))
        if record is None or not verify_password(password or "", record.get("password_hash", "")):
            raise InvalidCredentialsError("Invalid email or password")
        return public_account(record)

    def distribution(self) -> Dict[str, Any]:
        state = self.store.load()
        counts = {g: state["group_counts"][g] for g in self.group_ids}
        return {
            "groups": counts,
            "capacity": self.users_per_group,
            "total": len(state.get("users", {})),
            "limit": self.account_limit,
            "lastAssignedGroupIndex": state.get("last_assigned_group_index", 0),
            "report": distribution_report({"group_counts": counts}, self.group_ids, self.users_per_group),
        }
