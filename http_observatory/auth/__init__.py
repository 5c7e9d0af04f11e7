"""Anonymous credential acquisition for telemetry delivery."""

from .clients import CognitoIdentityClient, OpenIdToken, StsClient
from .credentials import Credentials
from .provider import AnonymousCredentialsProvider
from .store import CredentialStore, FileCredentialStore, InMemoryCredentialStore

__all__ = [
    "AnonymousCredentialsProvider",
    "CognitoIdentityClient",
    "CredentialStore",
    "Credentials",
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "OpenIdToken",
    "StsClient",
]
