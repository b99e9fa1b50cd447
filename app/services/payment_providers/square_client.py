"""
Square OAuth client.

Handles the OAuth2 authorization-code flow against Square's Connect API:
building the authorize URL, exchanging and refreshing tokens, and reading
the merchant profile.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote
import httpx
from pydantic import BaseModel
from app.core.config import settings
from app.core.exceptions import ConfigurationError, ExternalProviderError
from app.core.logging_config import logger
from app.utils.time import as_utc

# Joined with "+" the way Square documents the scope parameter
SQUARE_SCOPES = [
    "MERCHANT_PROFILE_READ",
    "PAYMENTS_WRITE",
    "PAYMENTS_READ",
    "ORDERS_WRITE",
    "ORDERS_READ",
]

# Square access tokens last about 30 days when no expiry is returned
DEFAULT_TOKEN_LIFETIME = timedelta(days=30)


class SquareTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime


class SquareMerchant(BaseModel):
    merchant_id: str
    location_id: str = ""


class SquareOAuthClient:
    """Client for Square OAuth and merchant endpoints."""

    def __init__(self, http_client: Optional[httpx.Client] = None, base_url: Optional[str] = None):
        """
        Initialize Square client.

        Args:
            http_client: Optional httpx client (tests inject one with a mock transport)
            base_url: Connect API base URL (defaults to the configured environment)
        """
        self._http_client = http_client
        self.base_url = base_url or settings.square_base_url

    def _credentials(self):
        if not settings.SQUARE_APPLICATION_ID or not settings.SQUARE_APPLICATION_SECRET:
            logger.error("Square is not configured: SQUARE_APPLICATION_ID/SECRET not set")
            raise ConfigurationError("Square is not configured")
        return settings.SQUARE_APPLICATION_ID, settings.SQUARE_APPLICATION_SECRET

    def _request(self, method: str, path: str, action: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if self._http_client is not None:
                response = self._http_client.request(
                    method, url, timeout=settings.PROVIDER_TIMEOUT_SECONDS, **kwargs
                )
            else:
                with httpx.Client() as client:
                    response = client.request(method, url, timeout=settings.PROVIDER_TIMEOUT_SECONDS, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Square {action} failed: HTTP {e.response.status_code}: {e.response.text}")
            raise ExternalProviderError(provider="square")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Square {action} failed: {e}")
            raise ExternalProviderError(provider="square")

    def authorization_url(self, state: str) -> str:
        application_id, _ = self._credentials()
        return (
            f"{self.base_url}/oauth2/authorize?"
            f"client_id={quote(application_id)}&"
            f"scope={'+'.join(SQUARE_SCOPES)}&"
            f"state={state}&"
            f"session=false"
        )

    def _parse_tokens(self, data: Dict[str, Any], action: str) -> SquareTokens:
        access_token = data.get("access_token")
        if not access_token:
            logger.error(f"Square {action} returned no access token")
            raise ExternalProviderError(provider="square")

        expires_at = data.get("expires_at")
        if expires_at:
            try:
                expiry = as_utc(datetime.fromisoformat(expires_at.replace("Z", "+00:00")))
            except ValueError:
                logger.error(f"Square {action} returned an unreadable expires_at: {expires_at}")
                raise ExternalProviderError(provider="square")
        else:
            expiry = datetime.now(timezone.utc) + DEFAULT_TOKEN_LIFETIME

        return SquareTokens(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or None,
            expires_at=expiry,
        )

    def exchange_code(self, code: str) -> SquareTokens:
        """Exchange an authorization code for access and refresh tokens."""
        application_id, application_secret = self._credentials()
        data = self._request(
            "POST",
            "/oauth2/token",
            "token exchange",
            json={
                "client_id": application_id,
                "client_secret": application_secret,
                "code": code,
                "grant_type": "authorization_code",
            },
        )
        return self._parse_tokens(data, "token exchange")

    def refresh(self, refresh_token: str) -> SquareTokens:
        """Obtain a new access token. A new refresh token is returned only if Square rotates it."""
        application_id, application_secret = self._credentials()
        data = self._request(
            "POST",
            "/oauth2/token",
            "token refresh",
            json={
                "client_id": application_id,
                "client_secret": application_secret,
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
        )
        return self._parse_tokens(data, "token refresh")

    def fetch_merchant(self, access_token: str) -> SquareMerchant:
        data = self._request(
            "GET",
            "/v2/merchants/me",
            "merchant lookup",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        merchant = data.get("merchant") or {}
        if isinstance(merchant, list):
            merchant = merchant[0] if merchant else {}
        if not merchant.get("id"):
            logger.error("Square merchant lookup returned no merchant id")
            raise ExternalProviderError(provider="square")
        return SquareMerchant(
            merchant_id=merchant["id"],
            location_id=merchant.get("main_location_id") or "",
        )


# Create singleton instance
square_oauth_client = SquareOAuthClient()
