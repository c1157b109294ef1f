from datetime import date, datetime
from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, UniqueConstraint, Computed, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects import mysql
from orgstruct.db import Base

NAME_MAX_LENGTH = 200

# sibling names compare case-sensitively; MySQL defaults to a _ci collation
DepartmentName = String(NAME_MAX_LENGTH).with_variant(
    mysql.VARCHAR(NAME_MAX_LENGTH, collation="utf8mb4_bin"), "mysql"
)


class Department(Base):
    __tablename__ = "departments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(DepartmentName, nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    # roots share bucket 0 so the unique key below covers them as well.
    # Storage is left to the dialect: MySQL rejects ON DELETE CASCADE on the
    # base column of a STORED generated column, PostgreSQL only has STORED.
    parent_key: Mapped[int] = mapped_column(Integer, Computed("coalesce(parent_id, 0)", persisted=None))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    employees: Mapped[list["Employee"]] = relationship(
        back_populates="department", passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint("parent_key", "name", name="uq_departments_parent_name"),
    )


class Employee(Base):
    __tablename__ = "employees"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    department_id: Mapped[int] = mapped_column(
        ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    full_name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    position: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    hired_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    department: Mapped["Department"] = relationship(back_populates="employees")
