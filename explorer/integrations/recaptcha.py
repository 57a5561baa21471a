"""reCAPTCHA v3 token verification for public write endpoints."""

from __future__ import annotations

import logging

import httpx

from explorer.core.config import get_settings
from explorer.verifier.errors import CaptchaRejected

logger = logging.getLogger(__name__)


class RecaptchaVerifier:
    """Check reCAPTCHA tokens against Google's site-verify endpoint.

    With no secret configured every token is accepted.
    """

    def __init__(
        self,
        secret: str = "",
        url: str = "https://www.google.com/recaptcha/api/siteverify",
        min_score: float = 0.5,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.secret = secret
        self.url = url
        self.min_score = min_score
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls) -> "RecaptchaVerifier":
        settings = get_settings()
        return cls(
            secret=settings.recaptcha_secret,
            url=settings.recaptcha_url,
            min_score=settings.recaptcha_min_score,
            timeout=settings.recaptcha_timeout_seconds,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.secret)

    async def verify(self, token: str | None, remote_ip: str | None = None) -> None:
        """Raise ``CaptchaRejected`` unless ``token`` passes the check."""
        if not self.enabled:
            return

        form = {"secret": self.secret, "response": token or ""}
        if remote_ip:
            form["remoteip"] = remote_ip

        try:
            if self._client is not None:
                response = await self._client.post(self.url, data=form, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, data=form)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("reCAPTCHA request failed: %s", exc)
            raise CaptchaRejected(
                "error occurred during processing your request. please try again"
            ) from exc

        if not isinstance(result, dict):
            logger.error("Unexpected reCAPTCHA response: %r", result)
            raise CaptchaRejected(
                "error occurred during processing your request. please try again"
            )
        if not result.get("success"):
            raise CaptchaRejected()

        score = result.get("score")
        if not isinstance(score, (int, float)) or score < self.min_score:
            raise CaptchaRejected("not handling bot request")
