from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ZALO_OAUTH_TOKEN_URL = "https://oauth.zaloapp.com/v4/oa/access_token"
ZALO_CONSULTATION_URL = "https://openapi.zalo.me/v3.0/oa/message/cs"
ZALO_PROMOTION_URL = "https://openapi.zalo.me/v2.0/oa/message"
ZALO_OA_INFO_URL = "https://openapi.zalo.me/v3.0/oa/info"
ZALO_USER_PROFILE_URL = "https://openapi.zalo.me/v3.0/oa/user/detail"
ZALO_FOLLOWERS_URL = "https://openapi.zalo.me/v2.0/oa/getfollowers"

DEFAULT_TOKEN_LIFETIME_SECONDS = 24 * 60 * 60
# Upper bound on any lifetime reported by the OAuth server
MAX_TOKEN_LIFETIME_SECONDS = 90 * 24 * 60 * 60
DEFAULT_SAFETY_MARGIN_SECONDS = 5 * 60
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_BATCH_DELAY_SECONDS = 0.1


@dataclass(frozen=True)
class ZaloSettings:
    """Everything the Zalo domain layer needs, injected through constructors.

    Built by `server.config.Settings.zalo_settings()`; tests construct it
    directly.
    """

    access_token: str = ""
    refresh_token: str = ""
    app_id: str = ""
    app_secret: str = ""
    oa_id: str = ""
    webhook_sign_key: Optional[str] = None
    token_lifetime_seconds: float = DEFAULT_TOKEN_LIFETIME_SECONDS
    safety_margin_seconds: float = DEFAULT_SAFETY_MARGIN_SECONDS
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    oauth_token_url: str = ZALO_OAUTH_TOKEN_URL
    consultation_url: str = ZALO_CONSULTATION_URL
    promotion_url: str = ZALO_PROMOTION_URL
    oa_info_url: str = ZALO_OA_INFO_URL
    user_profile_url: str = ZALO_USER_PROFILE_URL
    followers_url: str = ZALO_FOLLOWERS_URL
