"""Stored notification configuration."""

from pydantic import BaseModel, Field


class ChannelCredentials(BaseModel):
    """Secrets for one provider.

    ``secret`` is the HMAC secret for the SMS provider and the sender key for
    Alimtalk.
    """

    api_key: str = Field(default="", description="API key")
    secret: str = Field(default="", description="API secret or sender key")

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key.strip() and self.secret.strip())

    def redacted(self) -> "ChannelCredentials":
        return ChannelCredentials(
            api_key=_mask(self.api_key),
            secret=_mask(self.secret),
        )

    def restore_masked(self, stored: "ChannelCredentials") -> "ChannelCredentials":
        """Keep stored values where this copy is empty or still masked.

        A configuration read back from the API carries redacted credentials;
        saving it again must not replace the real ones.
        """
        return ChannelCredentials(
            api_key=_unmask(self.api_key, stored.api_key),
            secret=_unmask(self.secret, stored.secret),
        )


def _mask(value: str) -> str:
    if not value:
        return ""
    return value[:4] + "*" * max(len(value) - 4, 4)


def _unmask(submitted: str, stored: str) -> str:
    if not submitted.strip() or submitted == _mask(stored):
        return stored
    return submitted



class AdminRecipient(BaseModel):
    """Shop administrator who receives copies and low-balance alerts."""

    enabled: bool = Field(default=True, description="Whether this admin receives messages")
    name: str = Field(default="", description="Display name")
    phone: str = Field(default="", description="Phone number")


class NotificationConfig(BaseModel):
    """Snapshot of everything a single dispatch needs to read.

    Template maps are keyed by status key (``wc-completed``,
    ``wc-subscription-active``, ``user_register`` ...).
    """

    shop_name: str = Field(default="", description="Shop name used in templates")
    sender_number: str = Field(default="", description="Registered SMS sender number")
    sms_credentials: ChannelCredentials = Field(default_factory=ChannelCredentials)
    alimtalk_credentials: ChannelCredentials = Field(default_factory=ChannelCredentials)
    sms_templates: dict[str, str] = Field(default_factory=dict)
    alimtalk_templates: dict[str, str] = Field(default_factory=dict)
    send_to_admin: dict[str, bool] = Field(
        default_factory=dict,
        description="Per status key: also send to enabled admins",
    )
    admins: list[AdminRecipient] = Field(default_factory=list)
    low_point_threshold: int = Field(default=0, ge=0)
    low_point_message: str = Field(default="")

    def sms_template(self, status_key: str) -> str:
        return self.sms_templates.get(status_key, "").strip()

    def alimtalk_template(self, status_key: str) -> str:
        return self.alimtalk_templates.get(status_key, "").strip()

    def admin_phones(self) -> list[str]:
        """Phones of enabled admins, in configured order, without duplicates."""
        phones: list[str] = []
        for admin in self.admins:
            phone = admin.phone.strip()
            if admin.enabled and phone and phone not in phones:
                phones.append(phone)
        return phones

    def redacted(self) -> "NotificationConfig":
        return self.model_copy(
            update={
                "sms_credentials": self.sms_credentials.redacted(),
                "alimtalk_credentials": self.alimtalk_credentials.redacted(),
            }
        )
