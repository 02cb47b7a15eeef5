"""reCAPTCHA v3 verification"""
from dataclasses import dataclass
from typing import Optional

import requests

from portfolio_admin.config import settings
from portfolio_admin.utils.logger import logger


@dataclass(frozen=True)
class BotCheckResult:
    passed: bool
    score: Optional[float] = None
    skipped: bool = False

    def __bool__(self) -> bool:
        return self.passed


class RecaptchaVerifier:
    """Verifies a client-supplied reCAPTCHA token against Google's siteverify API.

    With no secret configured the check is skipped and always passes.
    Transport and parse failures fail closed: they count as a failed check
    and are never raised to the caller.
    """

    def __init__(
        self,
        secret_key: Optional[str],
        verify_url: str = "https://www.google.com/recaptcha/api/siteverify",
        min_score: float = 0.5,
        timeout: int = 5,
    ):
        self.secret_key = secret_key
        self.verify_url = verify_url
        self.min_score = min_score
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "RecaptchaVerifier":
        return cls(
            secret_key=settings.RECAPTCHA_SECRET_KEY,
            verify_url=settings.RECAPTCHA_VERIFY_URL,
            min_score=settings.RECAPTCHA_MIN_SCORE,
            timeout=settings.RECAPTCHA_TIMEOUT,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.secret_key)

    def verify(self, token: str, remote_ip: Optional[str] = None) -> BotCheckResult:
        if not self.enabled:
            return BotCheckResult(passed=True, skipped=True)

        data = {"secret": self.secret_key, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            resp = requests.post(self.verify_url, data=data, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
            success = payload.get("success") is True
            score = float(payload["score"]) if payload.get("score") is not None else None
        except (requests.RequestException, ValueError, TypeError, AttributeError) as exc:
            logger.warning(
                "reCAPTCHA verification failed",
                extra={"client_ip": remote_ip, "reason": str(exc)},
            )
            return BotCheckResult(passed=False)

        # v2 responses carry no score; without one the confidence check cannot pass
        passed = success and score is not None and score >= self.min_score
        if not passed:
            logger.info(
                "reCAPTCHA rejected token",
                extra={"client_ip": remote_ip, "reason": f"success={success} score={score}"},
            )
        return BotCheckResult(passed=passed, score=score)
