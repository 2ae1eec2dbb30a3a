import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    phone: str
    role: str


@dataclass
class TokenService:
    secret: str
    algorithm: str = "HS256"
    expire_days: int = 7

    def issue(self, claims: SessionClaims, now: Optional[datetime] = None) -> str:
        """Create a signed session token valid for ``expire_days``."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "userId": claims.user_id,
            "phone": claims.phone,
            "role": claims.role,
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.expire_days),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[SessionClaims]:
        """Decode and verify a session token; ``None`` for any kind of failure."""
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Session token has expired")
            return None
        except jwt.PyJWTError as e:
            logger.info(f"Session token rejected: {e}")
            return None

        user_id, phone, role = payload.get("userId"), payload.get("phone"), payload.get("role")
        if not user_id or not phone or not role:
            return None
        return SessionClaims(user_id=user_id, phone=phone, role=role)
