from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmailAddress(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    email_address: Optional[str] = None

    @property
    def value(self) -> Optional[str]:
        return self.email or self.email_address


class UserData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_addresses: List[EmailAddress] = Field(default_factory=list)

    @property
    def primary_email(self) -> Optional[str]:
        return self.email_addresses[0].value if self.email_addresses else None


class WebhookEvent(BaseModel):
    """Identity-provider event envelope: ``{type, data}``."""

    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
