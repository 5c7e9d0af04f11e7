"""Minimal async clients for the identity broker and STS federation APIs."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from ..errors import FederationError
from .credentials import Credentials, parse_timestamp

COGNITO_TARGET_PREFIX = "AWSCognitoIdentityService"
COGNITO_CONTENT_TYPE = "application/x-amz-json-1.1"
STS_API_VERSION = "2011-06-15"


@dataclass(frozen=True)
class OpenIdToken:
    identity_id: str
    token: str


class _AsyncHttpClient:
    def __init__(self, endpoint: str, *, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0) -> None:
        self.endpoint = endpoint
        self._client = client
        self._timeout = timeout

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client


class CognitoIdentityClient(_AsyncHttpClient):
    """Unauthenticated calls to the Cognito Identity JSON API."""

    def __init__(self, region: str, *, endpoint: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(endpoint or f"https://cognito-identity.{region}.amazonaws.com/", **kwargs)

    async def get_id(self, identity_pool_id: str) -> str:
        payload = await self._call("GetId", {"IdentityPoolId": identity_pool_id})
        return _require(payload, "IdentityId", "GetId")

    async def get_open_id_token(self, identity_id: str) -> OpenIdToken:
        payload = await self._call("GetOpenIdToken", {"IdentityId": identity_id})
        return OpenIdToken(
            identity_id=payload.get("IdentityId") or identity_id,
            token=_require(payload, "Token", "GetOpenIdToken"),
        )

    async def _call(self, operation: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": COGNITO_CONTENT_TYPE,
            "X-Amz-Target": f"{COGNITO_TARGET_PREFIX}.{operation}",
        }
        async with self._session() as client:
            response = await client.post(self.endpoint, content=json.dumps(body), headers=headers)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code >= 400:
            if isinstance(payload, dict):
                message = f"{payload.get('__type', 'Error')}: {payload.get('message', payload.get('Message', ''))}"
            else:
                message = response.text
            raise FederationError(operation, message, response.status_code)
        if not isinstance(payload, dict):
            raise FederationError(operation, "response is not a JSON object", response.status_code)
        return payload


class StsClient(_AsyncHttpClient):
    """Unsigned ``AssumeRoleWithWebIdentity`` against the STS query API."""

    def __init__(self, region: str, *, endpoint: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(endpoint or f"https://sts.{region}.amazonaws.com/", **kwargs)

    async def assume_role_with_web_identity(self, role_arn: str, session_name: str, web_identity_token: str) -> Credentials:
        operation = "AssumeRoleWithWebIdentity"
        form = {
            "Action": operation,
            "Version": STS_API_VERSION,
            "RoleArn": role_arn,
            "RoleSessionName": session_name,
            "WebIdentityToken": web_identity_token,
        }
        async with self._session() as client:
            response = await client.post(self.endpoint, data=form)
        try:
            root = ET.fromstring(response.text)
        except ET.ParseError as exc:
            raise FederationError(operation, f"malformed XML: {exc}", response.status_code) from exc
        if response.status_code >= 400:
            code = _find_text(root, "Code") or "Error"
            raise FederationError(operation, f"{code}: {_find_text(root, 'Message') or ''}", response.status_code)

        values = {name: _find_text(root, name) for name in ("AccessKeyId", "SecretAccessKey", "SessionToken", "Expiration")}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise FederationError(operation, f"missing {', '.join(missing)}", response.status_code)
        try:
            expiration = parse_timestamp(values["Expiration"] or "")
        except ValueError as exc:
            raise FederationError(operation, f"bad expiration {values['Expiration']!r}", response.status_code) from exc
        return Credentials(
            access_key_id=values["AccessKeyId"] or "",
            secret_access_key=values["SecretAccessKey"] or "",
            session_token=values["SessionToken"] or "",
            expiration=expiration,
        )


def _require(payload: Dict[str, Any], key: str, operation: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise FederationError(operation, f"missing {key}")
    return value


def _find_text(root: ET.Element, local_name: str) -> Optional[str]:
    """First text of an element named ``local_name`` in any namespace."""
    for element in root.iter():
        if element.tag == local_name or element.tag.endswith("}" + local_name):
            return (element.text or "").strip()
    return None
