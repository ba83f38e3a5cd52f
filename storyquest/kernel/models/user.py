"""
Parent account, mirrored from the auth provider.

Only the fields that feed the access policy live here; passwords and
sessions stay with the provider.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from storyquest.kernel.models.base import Base, TimestampMixin, generate_uuid


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(default=True)

    # Policy inputs
    is_admin: Mapped[bool] = mapped_column(default=False)
    subscription_type: Mapped[Optional[str]] = mapped_column(String(50))  # free_trial | monthly | yearly
    subscription_until: Mapped[Optional[datetime]]

    def __repr__(self) -> str:
        return f"<User {self.email}>"
