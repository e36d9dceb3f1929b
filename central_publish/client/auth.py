"""Authentication header construction.

Precedence, first match wins:
1. explicit token
2. explicit username + password
3. host credential with both username and password
Otherwise the header set is empty and the service will reject requests.
"""

import base64
from typing import Optional

from central_publish.client.types import Authentication, HostCredential

AUTHORIZATION_HEADER = "Authorization"


def build_authentication(
    host_credential: Optional[HostCredential] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    token: Optional[str] = None,
) -> Authentication:
    if token is not None:
        return _bearer(token)
    if username is not None and password is not None:
        return _bearer(encode_user_token(username, password))
    if (
        host_credential is not None
        and host_credential.username is not None
        and host_credential.password is not None
    ):
        return _bearer(encode_user_token(host_credential.username, host_credential.password))
    return Authentication()


def encode_user_token(username: str, password: str) -> str:
    """base64(username:password), as expected by the Central portal."""
    return base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")


def _bearer(token: str) -> Authentication:
    return Authentication(headers={AUTHORIZATION_HEADER: f"Bearer {token}"})
