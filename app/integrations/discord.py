"""
Discord webhook notifications.

Best-effort side channel: every public method returns a bool and swallows
delivery problems after logging them. A slow or dead Discord never fails the
request that triggered the message.
"""

from enum import Enum

import httpx

from app.config import Settings

import structlog

logger = structlog.get_logger()

COLOR_INFO = 3447003      # blue
COLOR_SUCCESS = 3066993   # green
COLOR_ERROR = 15158332    # red

FIELD_VALUE_LIMIT = 1024


class NotificationKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


_STYLE = {
    NotificationKind.INFO: (COLOR_INFO, "Shopbridge"),
    NotificationKind.SUCCESS: (COLOR_SUCCESS, "Shopbridge Success"),
    NotificationKind.ERROR: (COLOR_ERROR, "Shopbridge Error"),
}


def _truncate(value: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return value[: limit - 3] + "..."


def build_embed(
    kind: NotificationKind,
    title: str,
    body: str,
    fields: dict[str, str] | None = None,
    avatar_url: str | None = None,
) -> dict:
    color, footer = _STYLE[kind]
    embed = {
        "title": title,
        "description": body,
        "color": color,
        "footer": {"text": footer},
    }
    if avatar_url:
        embed["footer"]["icon_url"] = avatar_url
    if fields:
        # Error/success details span the full width, event fields sit inline
        inline = kind == NotificationKind.INFO
        embed["fields"] = [
            {"name": name, "value": _truncate(str(value) or "-"), "inline": inline}
            for name, value in fields.items()
        ]
    return embed


class DiscordNotifier:
    def __init__(
        self,
        settings: Settings,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.timeout = timeout if timeout is not None else settings.discord_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.settings.discord_enabled and bool(self.settings.discord_webhook_url)

    async def notify(
        self,
        kind: NotificationKind | str,
        title: str,
        body: str,
        fields: dict[str, str] | None = None,
    ) -> bool:
        kind = NotificationKind(kind)
        if not self.enabled:
            logger.warning("discord_disabled", title=title)
            return False

        payload = {
            "username": self.settings.discord_bot_name,
            "embeds": [build_embed(kind, title, body, fields, self.settings.discord_avatar_url)],
        }
        if self.settings.discord_avatar_url:
            payload["avatar_url"] = self.settings.discord_avatar_url
        return await self._send(payload, title)

    async def _send(self, payload: dict, title: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.settings.discord_webhook_url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("discord_send_error", title=title, error=str(e))
            return False

        if resp.status_code >= 300:
            logger.warning(
                "discord_send_failed",
                title=title,
                status=resp.status_code,
                body=resp.text[:200],
            )
            return False

        logger.debug("discord_sent", title=title)
        return True
