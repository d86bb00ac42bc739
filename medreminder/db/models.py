import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, Time, Uuid
from sqlalchemy.orm import relationship

from medreminder.db.database import Base


class UserProfile(Base):
    """The single profile row: who takes the medicines and when they eat/sleep."""

    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False, default=0)
    gender = Column(String(64), nullable=False, default="")
    medical_conditions = Column(JSON, nullable=False, default=list)
    breakfast_time = Column(Time, nullable=False)
    lunch_time = Column(Time, nullable=False)
    dinner_time = Column(Time, nullable=False)
    bedtime = Column(Time, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<UserProfile name={self.name} breakfast={self.breakfast_time} bedtime={self.bedtime}>"


class MedicineCourse(Base):
    __tablename__ = "medicine_courses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    duration = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    medicines = relationship(
        "Medicine",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Medicine.position",
    )

    def __repr__(self) -> str:
        return f"<MedicineCourse id={self.id} name={self.name} duration={self.duration}>"


class Medicine(Base):
    """A medicine inside a course.

    status_by_date maps "yyyy-MM-dd" to a status string; inventory holds the
    serialized MedicineInventory or NULL when the user never set one up.
    """

    __tablename__ = "medicines"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("medicine_courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    frequency = Column(String(32), nullable=False)
    timing = Column(String(32), nullable=False)
    when_to_take = Column(String(32), nullable=False)
    custom_time = Column(Time, nullable=True)
    x_minutes = Column(Integer, nullable=True)
    x_hours = Column(Integer, nullable=True)
    status_by_date = Column(JSON, nullable=False, default=dict)
    inventory = Column(JSON, nullable=True)

    course = relationship("MedicineCourse", back_populates="medicines")

    def __repr__(self) -> str:
        return f"<Medicine id={self.id} name={self.name} frequency={self.frequency}>"
