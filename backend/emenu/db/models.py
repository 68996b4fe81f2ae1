import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from emenu.services.classifier import AttendanceStatus


class Base(DeclarativeBase):
    pass


class Business(Base):
    __tablename__ = "businesses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Business id={self.id} name={self.name}>"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("businesses.id", ondelete="SET NULL"), nullable=True
    )
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        Enum("admin", "manager", "employee", name="user_role"),
        nullable=False,
        default="employee",
    )
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    schedules: Mapped[list["WorkSchedule"]] = relationship(
        "WorkSchedule", back_populates="employee", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role}>"


class AttendancePolicy(Base):
    __tablename__ = "attendance_policies"

    __table_args__ = (
        CheckConstraint("late_threshold_minutes >= 0", name="ck_policy_late_threshold"),
        CheckConstraint("half_day_threshold_minutes >= 0", name="ck_policy_half_day_threshold"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    shift_start: Mapped[time] = mapped_column(Time, nullable=False)
    shift_end: Mapped[time] = mapped_column(Time, nullable=False)
    late_threshold_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    half_day_threshold_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    break_start: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_end: Mapped[time | None] = mapped_column(Time, nullable=True)

    require_location_check: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    office_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    office_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    allowed_radius_meters: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        return f"<AttendancePolicy id={self.id} name={self.name}>"


class WorkSchedule(Base):
    __tablename__ = "work_schedules"

    __table_args__ = (Index("ix_work_schedules_employee", "employee_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    policy_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attendance_policies.id", ondelete="RESTRICT"), nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Free-form label such as FULL_TIME or PART_TIME; informational only
    schedule_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # Weekday names, e.g. ["MONDAY", "TUESDAY"]
    work_days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    custom_start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    custom_end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    employee: Mapped["User"] = relationship("User", back_populates="schedules", lazy="raise")
    policy: Mapped["AttendancePolicy"] = relationship("AttendancePolicy", lazy="joined")

    def __repr__(self) -> str:
        return f"<WorkSchedule id={self.id} employee_id={self.employee_id} policy_id={self.policy_id}>"


class Attendance(Base):
    __tablename__ = "attendances"

    __table_args__ = (
        UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_employee_date"),
        Index("ix_attendance_date", "attendance_date"),
        Index("ix_attendance_status", "status"),
        CheckConstraint(
            "check_out_time IS NULL OR check_out_time > check_in_time",
            name="ck_attendance_checkout_after_checkin",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    work_schedule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("work_schedules.id", ondelete="RESTRICT"), nullable=False
    )
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)

    check_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_in_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_in_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_in_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    check_in_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    late_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="attendance_status"), nullable=False
    )

    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    check_out_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_work_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    work_schedule: Mapped["WorkSchedule"] = relationship("WorkSchedule", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Attendance id={self.id} employee_id={self.employee_id} "
            f"date={self.attendance_date} status={self.status}>"
        )
