"""
Assistant settings persisted alongside the chat collection.
"""
import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

import schemas
from services.session_storage import SessionStorage

logger = logging.getLogger(__name__)

SETTINGS_KEY = "pa_settings_v1"


def _validate_leniently(data: Dict[str, Any]) -> schemas.AssistantSettings:
    """Validate stored settings, falling back to defaults field by field."""
    try:
        return schemas.AssistantSettings.model_validate(data)
    except ValidationError as e:
        bad_fields = {err["loc"][0] for err in e.errors() if err["loc"]}
        logger.warning(f"Ignoring invalid stored settings: {sorted(bad_fields)}")
    cleaned = {key: value for key, value in data.items() if key not in bad_fields}
    try:
        return schemas.AssistantSettings.model_validate(cleaned)
    except ValidationError:
        return schemas.AssistantSettings()


class AssistantSettingsStore:
    """Holds the current assistant settings and writes every change through to storage."""

    def __init__(self, storage: SessionStorage):
        self.storage = storage
        self.settings = schemas.AssistantSettings()

    def load(self) -> schemas.AssistantSettings:
        raw = self.storage.get_item(SETTINGS_KEY)
        data = None
        if raw:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Stored settings are not valid JSON; using defaults")
        self.settings = _validate_leniently(data) if isinstance(data, dict) else schemas.AssistantSettings()
        return self.settings

    def update(self, **changes: Any) -> schemas.AssistantSettings:
        """
        Apply changes by field name and persist.

        Raises:
            ValidationError: If a changed value is invalid; current settings are kept
        """
        merged = {**self.settings.model_dump(), **changes}
        self.settings = schemas.AssistantSettings.model_validate(merged)
        self.save()
        return self.settings

    def save(self) -> bool:
        payload = self.settings.model_dump(mode="json", by_alias=True)
        return self.storage.set_item(SETTINGS_KEY, json.dumps(payload))

    @property
    def system_prompt(self) -> str:
        return self.settings.system_prompt
