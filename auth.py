"""OAuth2 credentials for the Classroom API: load, refresh or authorize, and cache"""

import logging
import os

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

logger = logging.getLogger(__name__)

# If you change these scopes, delete the cached token file.
SCOPES = [
    "https://www.googleapis.com/auth/classroom.courses.readonly",
    "https://www.googleapis.com/auth/classroom.coursework.me.readonly",
]


class AuthError(Exception):
    pass


def load_token(token_path, scopes=SCOPES):
    """Load cached credentials, or None if the file is missing or unreadable"""
    if not os.path.exists(token_path):
        return None
    try:
        return Credentials.from_authorized_user_file(token_path, scopes)
    except (ValueError, OSError) as e:
        logger.warning(f"Could not load token {token_path}: {e}")
        return None


def save_token(token_path, creds):
    """Write credentials JSON readable by the owner only"""
    logger.info(f"Saving credentials to {token_path}")
    directory = os.path.dirname(token_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fd = os.open(token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(creds.to_json())


def authorize(client_secret_path, scopes=SCOPES, port=0):
    """Run the installed-app flow; the user opens the printed URL to grant access.

    Google redirects the browser to http://localhost:<port>/ once access is
    granted, so the browser must reach this machine on that port. On a remote
    host, set a fixed `port` and forward it first: `ssh -L <port>:localhost:<port>`.
    """
    if not os.path.exists(client_secret_path):
        raise AuthError(f"Client secret not found: {client_secret_path}")
    try:
        flow = InstalledAppFlow.from_client_secrets_file(client_secret_path, scopes)
        return flow.run_local_server(
            port=port,
            open_browser=False,
            authorization_prompt_message=(
                "Open this link in a browser to authorize access:\n{url}\n"
                "(the browser is redirected to localhost on this machine afterwards)"
            ),
        )
    except (ValueError, OSError, GoogleAuthError) as e:
        raise AuthError(f"OAuth flow failed: {e}") from e


def get_credentials(client_secret_path, token_path, scopes=SCOPES, port=0):
    """Return valid credentials, refreshing or re-authorizing as needed.

    Newly obtained or refreshed credentials are cached to token_path.
    Raises AuthError when no valid credentials can be produced.
    """
    creds = load_token(token_path, scopes)
    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            logger.info("Refreshing expired access token")
            creds.refresh(Request())
        except GoogleAuthError as e:
            logger.warning(f"Token refresh failed, re-authorizing: {e}")
            creds = None
    else:
        creds = None

    if creds is None:
        creds = authorize(client_secret_path, scopes, port=port)

    if not creds or not creds.valid:
        raise AuthError("Could not obtain valid credentials")

    try:
        save_token(token_path, creds)
    except OSError as e:
        raise AuthError(f"Could not cache OAuth token: {e}") from e
    return creds
