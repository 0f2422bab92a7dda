"""Service account assertion signing and OAuth token exchange."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from app.config import DEFAULT_OAUTH_TOKEN_URL, Settings
from app.core.errors import ConfigurationError, CredentialError

logger = logging.getLogger(__name__)

DATASTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class ServiceCredential:
  """Long-lived service account identity used to mint bearer tokens."""

  client_email: str
  private_key: str
  token_uri: str = DEFAULT_OAUTH_TOKEN_URL

  @classmethod
  def from_info(cls, info: dict[str, Any], *, default_token_uri: str = DEFAULT_OAUTH_TOKEN_URL) -> ServiceCredential:
    """Build a credential from a parsed service account JSON document."""
    client_email = info.get("client_email")
    private_key = info.get("private_key")
    if not client_email or not private_key:
      raise ConfigurationError("Service account JSON must contain client_email and private_key.")
    return cls(client_email=str(client_email), private_key=str(private_key), token_uri=str(info.get("token_uri") or default_token_uri))


def load_service_credential(settings: Settings) -> ServiceCredential:
  """Resolve the service credential from inline JSON or a key file."""
  raw = settings.gcp_key_json
  if raw is None and settings.gcp_key_path:
    try:
      raw = Path(settings.gcp_key_path).read_text(encoding="utf-8")
    except OSError as exc:
      raise ConfigurationError(f"Failed to read service account file {settings.gcp_key_path}: {exc}") from exc

  if not raw:
    raise ConfigurationError("GCP_KEY_JSON environment variable not set.")

  try:
    info = json.loads(raw)
  except json.JSONDecodeError as exc:
    raise ConfigurationError(f"GCP_KEY_JSON is not valid JSON: {exc}") from exc

  if not isinstance(info, dict):
    raise ConfigurationError("GCP_KEY_JSON must be a JSON object.")

  return ServiceCredential.from_info(info, default_token_uri=settings.oauth_token_url)


def _load_private_key(pem: str) -> rsa.RSAPrivateKey:
  try:
    key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
  except (ValueError, TypeError) as exc:
    raise CredentialError(f"Failed to load service account private key: {exc}") from exc

  if not isinstance(key, rsa.RSAPrivateKey):
    raise CredentialError("Service account private key must be an RSA key.")
  return key


def build_assertion(credential: ServiceCredential, *, issued_at: int | None = None) -> str:
  """Return a signed RS256 JWT asserting the credential's identity for the datastore scope."""
  iat = int(time.time()) if issued_at is None else issued_at
  claims = {"iss": credential.client_email, "scope": DATASTORE_SCOPE, "aud": credential.token_uri, "iat": iat, "exp": iat + ASSERTION_LIFETIME_SECONDS}

  key = _load_private_key(credential.private_key)
  try:
    return jwt.encode(claims, key, algorithm="RS256", headers={"typ": "JWT"})
  except jwt.PyJWTError as exc:
    raise CredentialError(f"Failed to sign service account assertion: {exc}") from exc


async def mint_access_token(credential: ServiceCredential, client: httpx.AsyncClient) -> str:
  """Exchange a freshly signed assertion for a short-lived bearer token."""
  assertion = build_assertion(credential)

  try:
    response = await client.post(credential.token_uri, data={"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion})
  except httpx.HTTPError as exc:
    raise CredentialError(f"GCP OAuth request failed: {exc}") from exc

  try:
    payload = response.json()
  except ValueError:
    payload = response.text

  token = payload.get("access_token") if isinstance(payload, dict) else None
  if not token:
    raise CredentialError(f"GCP OAuth error: {json.dumps(payload)}", payload=payload)

  logger.debug("Minted access token for %s", credential.client_email)
  return str(token)
