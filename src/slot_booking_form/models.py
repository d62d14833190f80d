from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Optional

RESERVED_PLACEHOLDER = "已保留"

# Same pattern browsers apply to <input type="email">.
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

REQUIRED_FIELDS = ("company_name", "contact_person", "email")


class ViewMode(str, enum.Enum):
    BOOKING = "booking"
    BUYER_LIST = "buyer-list"
    PASSWORD_PROMPT = "password-prompt"


@dataclass(frozen=True)
class Slot:
    """One bookable (date, time) unit as stored in the remote sheet."""

    date: str
    time_slot: str
    is_booked: bool = False
    company_name: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Slot":
        company = raw.get("companyName")
        return cls(
            date=str(raw.get("date", "")),
            time_slot=str(raw.get("timeSlot", "")),
            is_booked=bool(raw.get("isBooked", False)),
            company_name=str(company) if company else None,
        )

    def to_dict(self) -> dict[str, object]:
        """Return the wire representation of the slot."""

        data: dict[str, object] = {
            "date": self.date,
            "timeSlot": self.time_slot,
            "isBooked": self.is_booked,
        }
        if self.company_name:
            data["companyName"] = self.company_name
        return data

    @property
    def hour(self) -> Optional[int]:
        head = self.time_slot.split(":", 1)[0].strip()
        try:
            return int(head)
        except ValueError:
            return None

    @property
    def display_name(self) -> str:
        return self.company_name or RESERVED_PLACEHOLDER


@dataclass
class Reservation:
    """Contact details collected by the registration form."""

    company_name: str = ""
    contact_person: str = ""
    email: str = ""
    product: str = ""
    notes: str = ""

    @property
    def sanitized_email(self) -> str:
        # Browsers strip surrounding whitespace from email inputs before checking or sending.
        return self.email.strip()

    def missing_fields(self) -> list[str]:
        values = {name: getattr(self, name) for name in REQUIRED_FIELDS}
        values["email"] = self.sanitized_email
        return [name for name in REQUIRED_FIELDS if not values[name]]

    def has_valid_email(self) -> bool:
        return bool(EMAIL_PATTERN.match(self.sanitized_email))

    def to_payload(self, date: str, time_slot: str) -> dict[str, str]:
        return {
            "action": "write",
            "date": date,
            "timeSlot": time_slot,
            "companyName": self.company_name,
            "contactPerson": self.contact_person,
            "email": self.sanitized_email,
            "product": self.product,
            "notes": self.notes,
        }
