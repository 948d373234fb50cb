"""Store settings: informational pages, FAQ and social links shown on a storefront.

One settings record exists per tenant; it is created lazily on first update.
Content pages are stored as JSON so owners can keep per-language text.
"""

import json
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from shopu.domain import shop

CONTENT_FIELDS = (
    "about_us",
    "contact",
    "privacy_policy",
    "terms_of_service",
    "shipping_info",
    "returns",
    "faq",
)

LINK_FIELDS = (
    "facebook_url",
    "twitter_url",
    "instagram_url",
    "linkedin_url",
    "youtube_url",
    "track_order_url",
)


@shop.aggregate
class StoreSettings:
    tenant_id = Identifier(required=True)
    about_us = Text()  # JSON
    contact = Text()  # JSON
    privacy_policy = Text()  # JSON
    terms_of_service = Text()  # JSON
    shipping_info = Text()  # JSON
    returns = Text()  # JSON
    faq = Text()  # JSON: list of {question, answer}
    facebook_url = String(max_length=500)
    twitter_url = String(max_length=500)
    instagram_url = String(max_length=500)
    linkedin_url = String(max_length=500)
    youtube_url = String(max_length=500)
    track_order_url = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, tenant_id):
        now = datetime.now(UTC)
        return cls(tenant_id=tenant_id, created_at=now, updated_at=now)

    def apply_changes(self, changes: dict) -> None:
        """Apply a partial update; keys that are absent stay untouched."""
        unknown = set(changes) - set(CONTENT_FIELDS) - set(LINK_FIELDS)
        if unknown:
            raise ValidationError({field: ["Unknown setting"] for field in sorted(unknown)})

        if "faq" in changes and changes["faq"] is not None and not isinstance(changes["faq"], list):
            raise ValidationError({"faq": ["FAQ must be a list of entries"]})

        for field, value in changes.items():
            if field in CONTENT_FIELDS:
                setattr(self, field, json.dumps(value) if value is not None else None)
            else:
                setattr(self, field, value or None)
        self.updated_at = datetime.now(UTC)

    def to_dict(self) -> dict:
        data = {"tenant_id": str(self.tenant_id)}
        for field in CONTENT_FIELDS:
            raw = getattr(self, field)
            data[field] = json.loads(raw) if raw else None
        for field in LINK_FIELDS:
            data[field] = getattr(self, field)
        data["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return data


@shop.repository(part_of=StoreSettings)
class StoreSettingsRepository:
    def find_for_tenant(self, tenant_id) -> StoreSettings | None:
        matches = self._dao.query.filter(tenant_id=str(tenant_id)).all().items
        return matches[0] if matches else None


@shop.command(part_of="StoreSettings")
class UpdateStoreSettings:
    tenant_id = Identifier(required=True)
    changes = Text(required=True)  # JSON object of setting -> value


@shop.command_handler(part_of=StoreSettings)
class StoreSettingsHandler:
    @handle(UpdateStoreSettings)
    def update_store_settings(self, command):
        repo = current_domain.repository_for(StoreSettings)
        settings = repo.find_for_tenant(command.tenant_id) or StoreSettings.create(command.tenant_id)
        settings.apply_changes(json.loads(command.changes))
        repo.add(settings)
        return settings.to_dict()


def settings_for_tenant(tenant_id) -> dict | None:
    settings = current_domain.repository_for(StoreSettings).find_for_tenant(tenant_id)
    return settings.to_dict() if settings else None
