"""Config flow for GeoSentinel integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import aiohttp
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .api.auth import login
from .const import (
    DOMAIN,
    TOURNEE_TYPES,
    MODE_ON_FOOT,
    CONF_ENTRY_NAME,
    CONF_PRIMARY_URL,
    CONF_FALLBACK_URL,
    CONF_EMAIL,
    CONF_PASSWORD,
    CONF_TRACKED_ENTITY,
    CONF_NOTIFY_SERVICE,
    CONF_TOURNEE_TYPE,
    CONF_MAX_SESSION_MINUTES,
    CONF_SESSION_WARNING_MINUTES,
    CONF_ACCESS_TOKEN,
    CONF_REFRESH_TOKEN,
    DEFAULT_MAX_SESSION_MINUTES,
    DEFAULT_SESSION_WARNING_MINUTES,
)
from .requests import ApiResponseError
from .server_config import NoServerAvailable, normalize_url, probe_servers

_LOGGER = logging.getLogger(__name__)

minutes = vol.All(vol.Coerce(int), vol.Range(min=0))
session_minutes = vol.All(vol.Coerce(int), vol.Range(min=30))

CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default='GeoSentinel'): cv.string,
                vol.Required(CONF_PRIMARY_URL, default=''): cv.string,
                vol.Optional(CONF_FALLBACK_URL, default=''): cv.string,
                vol.Required(CONF_EMAIL, default=''): cv.string,
                vol.Required(CONF_PASSWORD, default=''): cv.string,
                vol.Required(CONF_TRACKED_ENTITY, default=''): cv.string,
                vol.Optional(CONF_NOTIFY_SERVICE, default=''): cv.string,
            }
        )


async def validate_login(primary_url: str, fallback_url: str, email: str, password: str) -> tuple[dict | None, str | None]:
    """
    Resolve a reachable server and log in.

    Returns (tokens, None) on success or (None, error_key) with error_key one
    of "cannot_connect" and "invalid_auth".
    """
    try:
        url, is_fallback = await probe_servers(primary_url, fallback_url)
    except NoServerAvailable:
        return None, "cannot_connect"

    try:
        response = await login(url, email, password)
    except ApiResponseError as err:
        if err.status in (400, 401, 403):
            return None, "invalid_auth"
        _LOGGER.error("Login failed on %s: %s", url, err)
        return None, "cannot_connect"
    except (TimeoutError, aiohttp.ClientError) as err:
        _LOGGER.error("Login failed on %s: %s", url, err)
        return None, "cannot_connect"

    if is_fallback:
        _LOGGER.warning("Logged in through the fallback server %s", url)
    return {CONF_ACCESS_TOKEN: response.access_token, CONF_REFRESH_TOKEN: response.refresh_token}, None


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            if not user_input.get(CONF_ENTRY_NAME):
                errors['base'] = 'entry_name_required'
            elif not user_input.get(CONF_EMAIL):
                errors['base'] = 'email_required'
            elif not user_input.get(CONF_PASSWORD):
                errors['base'] = 'password_required'
            elif not user_input.get(CONF_TRACKED_ENTITY):
                errors['base'] = 'entity_required'

            if not errors:
                tokens, error = await validate_login(
                    user_input.get(CONF_PRIMARY_URL),
                    user_input.get(CONF_FALLBACK_URL),
                    user_input[CONF_EMAIL],
                    user_input[CONF_PASSWORD],
                )
                if error:
                    errors['base'] = error
                else:
                    # The password is only needed for the login above
                    self.data = {
                        CONF_ENTRY_NAME: user_input[CONF_ENTRY_NAME],
                        CONF_PRIMARY_URL: normalize_url(user_input.get(CONF_PRIMARY_URL)),
                        CONF_FALLBACK_URL: normalize_url(user_input.get(CONF_FALLBACK_URL)),
                        CONF_EMAIL: user_input[CONF_EMAIL],
                        CONF_TRACKED_ENTITY: user_input[CONF_TRACKED_ENTITY],
                        CONF_NOTIFY_SERVICE: user_input.get(CONF_NOTIFY_SERVICE) or '',
                        **tokens,
                    }
                    return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._config_entry = config_entry

    def _default(self, key: str, default: Any) -> Any:
        if key in self._config_entry.options:
            return self._config_entry.options[key]
        return self._config_entry.data.get(key, default)

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        if user_input is not None:
            if not user_input.get(CONF_TRACKED_ENTITY):
                errors['base'] = 'entity_required'
            elif user_input[CONF_SESSION_WARNING_MINUTES] >= user_input[CONF_MAX_SESSION_MINUTES]:
                errors['base'] = 'warning_after_end'
            if not errors:
                return self.async_create_entry(title="", data=user_input)

        options_schema = vol.Schema(
            {
                vol.Required(CONF_TOURNEE_TYPE, default=self._default(CONF_TOURNEE_TYPE, MODE_ON_FOOT)): vol.In(TOURNEE_TYPES),
                vol.Required(CONF_TRACKED_ENTITY, default=self._default(CONF_TRACKED_ENTITY, '')): cv.string,
                vol.Optional(CONF_NOTIFY_SERVICE, default=self._default(CONF_NOTIFY_SERVICE, '')): cv.string,
                vol.Required(
                    CONF_MAX_SESSION_MINUTES,
                    default=self._default(CONF_MAX_SESSION_MINUTES, DEFAULT_MAX_SESSION_MINUTES),
                ): session_minutes,
                vol.Required(
                    CONF_SESSION_WARNING_MINUTES,
                    default=self._default(CONF_SESSION_WARNING_MINUTES, DEFAULT_SESSION_WARNING_MINUTES),
                ): minutes,
            }
        )
        return self.async_show_form(step_id="init", data_schema=options_schema, errors=errors)
