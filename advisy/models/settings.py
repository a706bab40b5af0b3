"""
SystemSetting model for runtime tunables.
"""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from advisy.models.base import Base


class SystemSetting(Base):
    """
    Key-value store for runtime settings.

    Values are stored as JSON with a {'v': ...} wrapper.
    Defaults are created on application startup from the env config.

    Known keys:
    - ia_scan_min_match_score: Lowest alias score accepted by the product search
    - scan_followup_days: Days until the follow-up of a validated scan
    """

    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )
    value: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="JSON value - use {'v': ...} wrapper for simple values",
    )

    def __repr__(self) -> str:
        return f"<SystemSetting(key='{self.key}')>"

    def get_value(self):
        """Get the actual value from the JSON wrapper."""
        if isinstance(self.value, dict) and "v" in self.value:
            return self.value["v"]
        return self.value

    def set_value(self, val):
        """Set value with JSON wrapper."""
        self.value = {"v": val}
