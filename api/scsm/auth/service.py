"""Student session service.

Business logic for:
- Login by name, mobile and email (no password)
- Minting the single current session token of a student
- Verifying presented tokens (signature, expiry, single device)

Single-device rule: the store keeps exactly one current session token per
student. Issuing a token replaces it, so every previously issued token
stops verifying.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError

from scsm.core.exceptions import AccessError, AuthError, NotFoundError
from scsm.core.locks import UserLocks, mobile_key
from scsm.core.logging import get_logger
from scsm.enrollments.migration import migrate_legacy
from scsm.enrollments.models import Entitlement, StudentAccount
from scsm.enrollments.schemas import SessionGrant, StudentSummary
from scsm.enrollments.store import UserStore

from .schemas import SessionIdentity
from .security import create_session_token, decode_session_token, get_token_expiration
from .validators import names_match, require_fields


logger = get_logger(__name__)


class SessionService:
    """Issues and verifies student session tokens."""

    def __init__(
        self,
        store: UserStore,
        secret_key: str,
        algorithm: str = "HS256",
        token_lifetime: timedelta = timedelta(hours=24),
        locks: UserLocks | None = None,
    ):
        """Initialize with record store and signing configuration.

        Args:
            store: Student record store
            secret_key: Session token signing key
            algorithm: JWT algorithm
            token_lifetime: Session token validity
            locks: Per-student mutation locks (a private registry if None)
        """
        self.store = store
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._token_lifetime = token_lifetime
        self.locks = locks or UserLocks()

    # ==========================================================================
    # Login
    # ==========================================================================

    async def login(self, name: str, mobile: str, email: str) -> SessionGrant:
        """Log a student in and issue a fresh session token.

        Args:
            name: Full name used at enrollment
            mobile: Mobile number
            email: Email address (case-insensitive)

        Returns:
            SessionGrant with token and currently valid courses

        Raises:
            ValidationError: If any field is missing
            NotFoundError: If no student has this mobile and email
            AuthError: If the name does not match
            AccessError: If no course is paid and unexpired
            StorageError: If the store fails
        """
        require_fields(
            "Name, Mobile and Email required", name=name, mobile=mobile, email=email
        )
        mobile = mobile.strip()

        async with self.locks.hold(mobile_key(mobile)):
            student = await self.store.find_by_mobile_and_email(mobile, email.strip())
            if student is None:
                raise NotFoundError("User not found. Check details or Purchase Course.")

            if not names_match(student.name, name):
                logger.info("login_failed_name_mismatch", mobile=mobile)
                raise AuthError(
                    "Name mismatch. Please enter your full registered name."
                )

            now = datetime.now(UTC)
            if migrate_legacy(student, now):
                await self.store.save(student)

            valid_courses = student.valid_entitlements(now)
            if not valid_courses:
                logger.info("login_denied_no_active_course", mobile=mobile)
                raise AccessError(
                    "No active course found. Please purchase a course.",
                    code="no_active_course",
                )

            token = await self.issue_session(student)

        logger.info(
            "student_logged_in",
            student_id=str(student.id),
            courses=[c.course_id for c in valid_courses],
        )
        return self.build_grant(student, token, valid_courses)

    # ==========================================================================
    # Token Issue / Verification
    # ==========================================================================

    async def issue_session(self, student: StudentAccount) -> str:
        """Mint a token, make it the student's only valid one and persist.

        Callers must hold the student's lock.
        """
        token = create_session_token(
            {
                "sub": str(student.id),
                "mobile": student.mobile,
                "name": student.name,
            },
            self._secret_key,
            algorithm=self._algorithm,
            expires_delta=self._token_lifetime,
        )
        student.session_token = token
        await self.store.save(student)
        return token

    async def verify_token(self, token: str) -> SessionIdentity:
        """Verify a presented session token.

        Raises:
            AuthError: If the token is invalid, expired, or no longer the
                student's current session
            StorageError: If the store fails
        """
        if not token:
            raise AuthError("Access Denied. No Token Provided.")

        try:
            payload = decode_session_token(token, self._secret_key, self._algorithm)
            student_id = UUID(payload["sub"])
        except (JWTError, ValueError) as e:
            raise AuthError("Invalid or Expired Token") from e

        student = await self.store.find_by_id(student_id)
        if student is None:
            raise AuthError("User not found.")

        if student.session_token != token:
            logger.info("session_superseded", student_id=str(student_id))
            raise AuthError("Logged in on another device. Please login again.")

        return SessionIdentity(
            student_id=student.id,
            mobile=student.mobile,
            name=student.name,
            token=token,
        )

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def build_grant(
        self,
        student: StudentAccount,
        token: str,
        courses: list[Entitlement],
    ) -> SessionGrant:
        return SessionGrant(
            token=token,
            expires_at=get_token_expiration(token),
            user=StudentSummary.from_student(student, courses),
        )
