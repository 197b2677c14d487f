"""
Identity & Membership

Users, roles, sessions and the password check.

SECURITY WARNING: passwords are stored as the output of simple_hash(), a
32-bit rolling string hash kept for compatibility with existing user
collections. It is trivially reversible by brute force and must not be
mistaken for real password security. Anyone who can read the data
directory can log in as anyone.

User.total_savings returned from this service is always recomputed from
the ledger at read time; the stored value is never trusted on read.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from savings_fund.audit import AuditLogger
from savings_fund.config import FundSettings, get_settings
from savings_fund.core.authorization import AuthorizationGate, admin_only, fund_operation
from savings_fund.core.errors import (
    AuthenticationFailedError,
    EntityNotFoundError,
    InactiveUserError,
    PermissionDeniedError,
    ValidationFailedError,
)
from savings_fund.core.ledger import ledger_totals
from savings_fund.models.fund import (
    OperationResult,
    StoredUser,
    User,
    UserRole,
    UserUpdate,
    apply_update,
)
from savings_fund.services.storage import FundRepository
from savings_fund.validation import MembershipValidator, has_errors, summarize


def simple_hash(text: str) -> str:
    """
    32-bit rolling hash (hash * 31 + code unit), as a signed decimal string.

    Code units are UTF-16, so hashes match the ones already stored.
    NOT a password hash in any security sense.
    """
    value = 0
    units = text.encode("utf-16-le")
    for i in range(0, len(units), 2):
        code = units[i] | (units[i + 1] << 8)
        value = ((value << 5) - value + code) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return str(value)


class MembershipService:
    """
    User accounts and the authenticated session.

    Admin-only mutations go through the authorization gate; registration,
    login and logout do not need an acting user.
    """

    def __init__(
        self,
        repository: FundRepository,
        gate: Optional[AuthorizationGate] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[MembershipValidator] = None,
        settings: Optional[FundSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._audit = audit_logger or AuditLogger()
        self._gate = gate or AuthorizationGate(repository, self._audit)
        self._settings = settings or get_settings().fund
        self._validator = validator or MembershipValidator(self._settings)
        self._clock = clock or datetime.now

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _with_totals(self, users: list[StoredUser]) -> list[User]:
        totals = ledger_totals(self._repository.load_entries())
        return [
            user.public().model_copy(
                update={"total_savings": totals.get(user.id, Decimal("0"))}
            )
            for user in users
        ]

    def list_users(self) -> list[User]:
        """All users, in insertion order, without password hashes."""
        return self._with_totals(self._repository.load_users())

    def list_members(self) -> list[User]:
        return [u for u in self.list_users() if u.role == UserRole.MEMBER]

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.list_users() if u.id == user_id), None)

    def find_by_email(self, email: str) -> Optional[User]:
        email = email.strip()
        return next((u for u in self.list_users() if u.email == email), None)

    def current_user(self) -> Optional[User]:
        session = self._repository.get_session()
        if session is None:
            return None
        return self.get_user(session.user_id)

    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    def is_admin(self) -> bool:
        user = self.current_user()
        return user is not None and user.is_admin

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    @fund_operation
    def register(self, name: str, email: str, password: str) -> OperationResult:
        """
        Self-registration. The very first user becomes an admin.

        Logs the new user in on success.
        """
        users = self._repository.load_users()
        issues = self._validator.validate_new_user(name, email, password, users)
        if has_errors(issues):
            raise ValidationFailedError(summarize(issues), issues)

        role = UserRole.ADMIN if not users else UserRole.MEMBER
        user = self._new_user(name, email, password, role)
        users.append(user)
        self._repository.save_users(users)
        self._repository.set_session(user.id)

        self._audit.log_user_created(user.id, user.email, role.value, actor_id=user.id)
        return OperationResult.ok(user.public())

    @fund_operation
    def login(self, email: str, password: str) -> OperationResult:
        email = (email or "").strip()
        user = next((u for u in self._repository.load_users() if u.email == email), None)

        if user is None:
            self._audit.log_login_failed(email, "unknown_email")
            raise AuthenticationFailedError("Incorrect email or password")

        if not user.is_active:
            self._audit.log_login_failed(email, "inactive")
            raise InactiveUserError("User is inactive. Contact the administrator.")

        if user.password_hash != simple_hash(password or ""):
            self._audit.log_login_failed(email, "wrong_password")
            raise AuthenticationFailedError("Incorrect email or password")

        self._repository.set_session(user.id)
        self._audit.log_login(user.id)
        return OperationResult.ok(self.get_user(user.id))

    def logout(self) -> None:
        session = self._repository.get_session()
        self._repository.clear_session()
        self._audit.log_logout(session.user_id if session else None)

    # -------------------------------------------------------------------------
    # Admin mutations
    # -------------------------------------------------------------------------

    @admin_only
    def create_user(
        self,
        name: str,
        email: str,
        password: Optional[str] = None,
        role: UserRole = UserRole.MEMBER,
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        """
        Create a user on someone's behalf.

        Without a password the configured default member password is used.
        """
        users = self._repository.load_users()
        issues = self._validator.validate_new_user(
            name, email, password, users, check_password=False
        )
        if has_errors(issues):
            raise ValidationFailedError(summarize(issues), issues)

        user = self._new_user(
            name,
            email,
            password or self._settings.default_member_password,
            role,
        )
        users.append(user)
        self._repository.save_users(users)

        self._audit.log_user_created(user.id, user.email, role.value, actor_id=acting_admin_id)
        return OperationResult.ok(user.public())

    @admin_only
    def update_user(
        self,
        user_id: str,
        update: UserUpdate,
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        users = self._repository.load_users()
        index = next((i for i, u in enumerate(users) if u.id == user_id), None)
        if index is None:
            raise EntityNotFoundError(f"User not found: {user_id}")

        changes = update.model_dump(exclude_unset=True)
        issues = []
        if "email" in changes:
            issues.extend(self._validator.validate_email(
                changes["email"] or "", users, exclude_user_id=user_id
            ))
        if "name" in changes:
            issues.extend(self._validator.validate_name(changes["name"] or ""))
        if has_errors(issues):
            raise ValidationFailedError(summarize(issues), issues)

        users[index] = apply_update(users[index], update)
        self._repository.save_users(users)

        self._audit.log_user_updated(user_id, sorted(changes), acting_admin_id)
        return OperationResult.ok(self.get_user(user_id))

    @admin_only
    def delete_user(self, user_id: str, *, acting_admin_id: str) -> OperationResult:
        """
        Delete a member, every savings entry they own and their personal
        debts, goals and preferences. Loans are kept.

        Admin users cannot be deleted.
        """
        users = self._repository.load_users()
        target = next((u for u in users if u.id == user_id), None)
        if target is None:
            raise EntityNotFoundError(f"User not found: {user_id}")
        if target.is_admin:
            raise PermissionDeniedError("Administrator users cannot be deleted")

        self._repository.save_users([u for u in users if u.id != user_id])

        entries = self._repository.load_entries()
        kept = [e for e in entries if e.user_id != user_id]
        self._repository.save_entries(kept)
        self._repository.remove_user_collections(user_id)

        self._audit.log_user_deleted(user_id, len(entries) - len(kept), acting_admin_id)
        return OperationResult.ok(target.public())

    # -------------------------------------------------------------------------
    # Bootstrap
    # -------------------------------------------------------------------------

    def ensure_bootstrap_admin(self) -> Optional[User]:
        """
        Create the configured bootstrap admin if it does not exist yet.

        Does nothing unless both FUND_BOOTSTRAP_ADMIN_EMAIL and
        FUND_BOOTSTRAP_ADMIN_PASSWORD are set.
        """
        email = self._settings.bootstrap_admin_email
        password = self._settings.bootstrap_admin_password
        if not email or not password:
            return None

        users = self._repository.load_users()
        existing = next((u for u in users if u.email == email.strip()), None)
        if existing is not None:
            return existing.public()

        admin = self._new_user(
            self._settings.bootstrap_admin_name, email, password, UserRole.ADMIN
        )
        users.append(admin)
        self._repository.save_users(users)
        self._audit.log_user_created(admin.id, admin.email, UserRole.ADMIN.value, actor_id=None)
        return admin.public()

    def _new_user(self, name: str, email: str, password: str, role: UserRole) -> StoredUser:
        return StoredUser(
            name=name.strip(),
            email=email.strip(),
            role=role,
            is_active=True,
            total_savings=Decimal("0"),
            created_at=self._clock(),
            password_hash=simple_hash(password),
        )
