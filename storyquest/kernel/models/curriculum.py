"""
Curriculum models - the program hierarchy and its discussion questions.

Rows are static content; at runtime they are read once and assembled into
an in-memory CurriculumTree.
"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storyquest.kernel.models.base import Base, TimestampMixin


class QuestionType(str, Enum):
    """Kinds of companion discussion questions."""
    UNDERSTANDING = "understanding"
    FEELING = "feeling"
    PRACTICE = "practice"


class ProgramBlock(Base, TimestampMixin):
    """Top-level curriculum block."""

    __tablename__ = "program_blocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_num: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)

    months: Mapped[List["ProgramMonth"]] = relationship(back_populates="block")


class ProgramMonth(Base, TimestampMixin):
    """Themed month within a block."""

    __tablename__ = "program_months"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    block_id: Mapped[int] = mapped_column(
        ForeignKey("program_blocks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    themes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    plot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_num: Mapped[int] = mapped_column(Integer, nullable=False)

    block: Mapped["ProgramBlock"] = relationship(back_populates="months")
    weeks: Mapped[List["ProgramWeek"]] = relationship(back_populates="month")

    __table_args__ = (UniqueConstraint("block_id", "order_num", name="uq_program_months_block_order"),)


class ProgramWeek(Base, TimestampMixin):
    """Week of stories; owns the bonus cartoon reward."""

    __tablename__ = "program_weeks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    month_id: Mapped[int] = mapped_column(
        ForeignKey("program_months.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    order_num: Mapped[int] = mapped_column(Integer, nullable=False)
    cartoon_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    month: Mapped["ProgramMonth"] = relationship(back_populates="weeks")
    stories: Mapped[List["ProgramStory"]] = relationship(back_populates="week")

    __table_args__ = (UniqueConstraint("month_id", "order_num", name="uq_program_weeks_month_order"),)


class ProgramStory(Base, TimestampMixin):
    """A story slot (day 1, 3 or 5 of its week)."""

    __tablename__ = "program_stories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    week_id: Mapped[int] = mapped_column(
        ForeignKey("program_weeks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    day_in_week: Mapped[int] = mapped_column(Integer, nullable=False)
    plot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    full_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    therapeutic_goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    methodology: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    why_important: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    week: Mapped["ProgramWeek"] = relationship(back_populates="stories")
    questions: Mapped[List["ProgramQuestion"]] = relationship(
        back_populates="story",
        order_by="ProgramQuestion.order_num",
    )

    __table_args__ = (UniqueConstraint("week_id", "day_in_week", name="uq_program_stories_week_day"),)


class ProgramQuestion(Base):
    """Discussion question asked after a story."""

    __tablename__ = "program_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    story_id: Mapped[int] = mapped_column(
        ForeignKey("program_stories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_type: Mapped[str] = mapped_column(String(50), nullable=False)  # QuestionType value
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    hint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_num: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    story: Mapped["ProgramStory"] = relationship(back_populates="questions")
