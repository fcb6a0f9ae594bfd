import base64
import json
import logging
import time
from typing import Optional

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .models import Account, User, UserRole, UserSession, utcnow

logger = logging.getLogger(__name__)

FIREBASE_PROVIDER = "firebase"
GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys(force_refresh: bool = False) -> Optional[dict]:
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_CERTS_URL)
        if response.status_code == 200:
            _cached_keys = response.json()
            logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
            return _cached_keys
        logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode_segment(segment: str) -> bytes:
    """Decode one base64url JWT segment, restoring stripped padding"""
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token with full RS256 signature verification
    against Google's published certificates, then check its claims.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Authentication not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode_segment(header_b64))
        payload = json.loads(_b64decode_segment(payload_b64))
        signature = _b64decode_segment(signature_b64)
    except (ValueError, TypeError) as e:
        logger.error(f"❌ Failed to decode token: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token encoding") from e

    if header.get("alg") != "RS256":
        raise HTTPException(status_code=401, detail="Invalid token algorithm")

    kid = header.get("kid")
    if not kid:
        raise HTTPException(status_code=401, detail="Token missing key ID")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        # Keys rotate; refetch once before giving up
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, refreshing cache")
        public_keys = await get_google_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode())
    try:
        cert.public_key().verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    if payload.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")
    if payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if payload.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )
    # 60 seconds of clock skew
    if payload.get("iat", 0) > now + 60:
        raise HTTPException(status_code=401, detail="Invalid token")
    if "auth_time" not in payload:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    return payload


def resolve_user_for_identity(
    db: Session,
    provider_uid: str,
    email: Optional[str],
    name: Optional[str],
    email_verified: bool = False,
) -> User:
    """
    Map a verified external identity to a user row.

    Order: existing account link, then an existing user with the same email
    (a guest who booked before registering), then a brand new customer.
    Linking to an existing user requires a provider-verified email.
    """
    account = (
        db.query(Account)
        .filter(Account.provider == FIREBASE_PROVIDER, Account.provider_account_id == provider_uid)
        .first()
    )
    if account:
        return account.user

    normalized_email = (email or "").strip().lower()
    user = None
    if normalized_email:
        user = db.query(User).filter(User.email == normalized_email).first()

    try:
        if user:
            if not email_verified:
                logger.warning(f"🚫 Refusing to link unverified email {normalized_email} to existing user {user.id}")
                raise HTTPException(
                    status_code=409,
                    detail="This email is already registered. Verify your email address to sign in.",
                )
            logger.info(f"🔄 Linking existing user {user.email} to {FIREBASE_PROVIDER} identity")
            if name and not user.name:
                user.name = name
        else:
            if not normalized_email:
                raise HTTPException(status_code=401, detail="Token has no email claim")
            logger.info(f"🆕 Creating new user: {normalized_email}")
            user = User(email=normalized_email, name=name, role=UserRole.CUSTOMER.value)
            db.add(user)
            db.flush()

        db.add(Account(user_id=user.id, provider=FIREBASE_PROVIDER, provider_account_id=provider_uid))
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"❌ Identity link race for {normalized_email}: {str(e)}")
        raise HTTPException(
            status_code=409,
            detail="This email is already registered. Please sign in with your existing account.",
        ) from e


def record_session(db: Session, user: User, session_key: str, user_agent: Optional[str]) -> None:
    """Remember a sign-in; one row per token auth_time"""
    existing = db.query(UserSession).filter(UserSession.session_key == session_key).first()
    if existing:
        existing.last_seen_at = utcnow()
    else:
        db.add(UserSession(user_id=user.id, session_key=session_key, user_agent=user_agent))
    try:
        db.commit()
    except IntegrityError:
        # Parallel request for the same sign-in already recorded it
        db.rollback()


async def _authenticate(token: str, request: Request, db: Session) -> User:
    decoded_token = await verify_firebase_token(token)

    # Firebase ID tokens use 'sub' as the user ID claim
    provider_uid = decoded_token.get("sub") or decoded_token.get("user_id")
    if not provider_uid:
        logger.error(f"❌ Token missing user ID claim. Claims: {list(decoded_token.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = resolve_user_for_identity(
        db,
        provider_uid,
        decoded_token.get("email"),
        decoded_token.get("name"),
        email_verified=decoded_token.get("email_verified") is True,
    )
    if user.status != "ACTIVE":
        raise HTTPException(status_code=403, detail="Account is inactive")

    session_key = f"{provider_uid}:{decoded_token.get('auth_time')}"
    record_session(db, user, session_key, request.headers.get("user-agent"))
    return user


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from Firebase token"""
    try:
        return await _authenticate(credentials.credentials, request, db)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Authentication failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Authentication failed") from e


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of 401"""
    if not credentials:
        return None
    try:
        return await _authenticate(credentials.credentials, request, db)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Optional authentication failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Authentication failed") from e

