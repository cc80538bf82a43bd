"""Validation of the secret token GitLab sends with every webhook."""

import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def verify_gitlab_token(token_header: Optional[str], secret: str) -> bool:
    """Compare the X-Gitlab-Token header with the configured secret."""
    if not token_header or not secret:
        logger.error("Missing webhook token or secret")
        return False

    # Constant-time comparison
    return hmac.compare_digest(token_header.encode("utf-8"), secret.encode("utf-8"))
