from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, Numeric, Text, String, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base


DAYS_OF_WEEK = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
ACTIVITY_TYPES = ("Gym", "Class")
MEMBER_STATUSES = ("active", "expired", "inactive")
MEMBERSHIP_STATUSES = ("pending", "active", "cancelled", "expired")
ATTENDANCE_METHODS = ("manual", "fingerprint")
DIFFICULTY_LEVELS = ("Beginner", "Intermediate", "Advanced")


def _in(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)  # 'admin', 'staff', 'trainer'


class User(Base):
    """Staff account (admin/front desk/trainer). Members log in separately."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(Text, nullable=False)  # bcrypt hash
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    role = relationship("Role")


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint(_in("status", MEMBER_STATUSES), name="ck_members_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(20), nullable=False)
    nic = Column(String(20), unique=True, nullable=True)  # National identity card number
    dob = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    photo_url = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="inactive", server_default="inactive")
    # Weak reference: cleared when the plan is deleted
    active_plan_id = Column(Integer, ForeignKey("workout_plans.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    active_plan = relationship("WorkoutPlan", foreign_keys=[active_plan_id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Attendance(Base):
    """
    One check-in (and optional check-out) for a member on a local calendar day.

    Several open records for the same member/day are possible; check-out
    closes the most recent one.
    """
    __tablename__ = "attendance"
    __table_args__ = (
        CheckConstraint(_in("method", ATTENDANCE_METHODS), name="ck_attendance_method"),
        Index("ix_attendance_member_date", "member_id", "date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    check_in_time = Column(DateTime, nullable=False)  # local wall-clock time
    check_out_time = Column(DateTime, nullable=True)
    method = Column(String(20), nullable=False, default="manual")

    member = relationship("Member")


class BiometricCredential(Base):
    __tablename__ = "biometric_credentials"

    id = Column(String(255), primary_key=True)  # base64url credential id
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    public_key = Column(Text, nullable=False)  # base64 COSE public key
    counter = Column(Integer, nullable=False, default=0)
    transports = Column(String(255), nullable=True)  # JSON list
    attestation_type = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class MembershipPlan(Base):
    __tablename__ = "membership_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    duration_months = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (
        CheckConstraint(_in("status", MEMBERSHIP_STATUSES), name="ck_memberships_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("membership_plans.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    member = relationship("Member")
    plan = relationship("MembershipPlan")


class Payment(Base):
    """Append-only ledger row."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    membership_id = Column(Integer, ForeignKey("memberships.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(50), nullable=False)
    invoice_number = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime, nullable=False)  # local wall-clock time

    member = relationship("Member")


class WorkoutPlan(Base):
    __tablename__ = "workout_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    difficulty_level = Column(String(20), nullable=False, default="Beginner")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    items = relationship(
        "WorkoutPlanItem",
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class WorkoutPlanItem(Base):
    __tablename__ = "workout_plan_items"
    __table_args__ = (
        CheckConstraint(_in("day_of_week", DAYS_OF_WEEK), name="ck_plan_items_day"),
        CheckConstraint(_in("type", ACTIVITY_TYPES), name="ck_plan_items_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_id = Column(Integer, ForeignKey("workout_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(String(3), nullable=False)
    activity = Column(String(255), nullable=False)
    time = Column(String(20), nullable=False, default="09:00 AM")
    type = Column(String(10), nullable=False, default="Gym")
    trainer = Column(String(100), nullable=True, default="Staff")

    plan = relationship("WorkoutPlan", back_populates="items")


class MemberSchedule(Base):
    """Per-member copy of a schedule item; independent of the plan it came from."""
    __tablename__ = "member_schedules"
    __table_args__ = (
        CheckConstraint(_in("day_of_week", DAYS_OF_WEEK), name="ck_member_schedules_day"),
        CheckConstraint(_in("type", ACTIVITY_TYPES), name="ck_member_schedules_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(String(3), nullable=False)
    activity = Column(String(255), nullable=False)
    time = Column(String(20), nullable=False)
    type = Column(String(10), nullable=False, default="Gym")
    trainer = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ActivityCompletion(Base):
    __tablename__ = "activity_completions"
    __table_args__ = (
        UniqueConstraint("member_id", "schedule_id", "completion_date", name="unique_completion"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    schedule_id = Column(Integer, ForeignKey("member_schedules.id", ondelete="CASCADE"), nullable=False)
    completion_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
