from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.transport.requests import Request
import logging
import pickle
import os
from typing import Any, Dict, Optional
from .errors import SinkUnavailable

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

class GoogleAuth:
    def __init__(self, credentials_file: str, token_file: str, scopes: list[str]):
        self.credentials_file = credentials_file
        self.token_file = token_file
        self.scopes = scopes
        self.credentials: Optional[Credentials] = None

    def authenticate(self) -> Credentials:
        """Handles the complete authentication flow."""
        self.credentials = self._load_credentials()

        if not self.credentials or not self.credentials.valid:
            if self.credentials and self.credentials.expired and self.credentials.refresh_token:
                self._refresh_credentials()
            else:
                self._new_authentication()

            self._save_credentials()

        return self.credentials

    def _load_credentials(self) -> Optional[Credentials]:
        """Load credentials from token file if it exists."""
        if os.path.exists(self.token_file):
            try:
                with open(self.token_file, 'rb') as token:
                    return pickle.load(token)
            except (OSError, pickle.UnpicklingError, EOFError) as e:
                logger.warning(f"Error loading credentials, discarding token file: {e}")
                os.remove(self.token_file)
        return None

    def _refresh_credentials(self) -> None:
        """Refresh expired credentials."""
        try:
            self.credentials.refresh(Request())
        except Exception as e:
            logger.warning(f"Error refreshing credentials: {e}")
            self._new_authentication()

    def _new_authentication(self) -> None:
        """Perform new authentication flow."""
        if not os.path.exists(self.credentials_file):
            raise SinkUnavailable(f"Credentials file not found: {self.credentials_file}")
        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                self.credentials_file, self.scopes)
            self.credentials = flow.run_local_server(port=0)
        except Exception as e:
            raise SinkUnavailable(f"Authentication failed: {e}") from e

    def _save_credentials(self) -> None:
        """Save credentials to token file."""
        try:
            with open(self.token_file, 'wb') as token:
                pickle.dump(self.credentials, token)
        except OSError as e:
            logger.warning(f"Error saving credentials: {e}")

def get_credentials(config: Optional[Dict[str, Any]] = None) -> Credentials:
    """Authenticate with the settings from the google_sheets config section."""
    settings = (config or {}).get('google_sheets', {})
    auth = GoogleAuth(
        credentials_file=settings.get('credentials_file', 'config/credentials.json'),
        token_file=settings.get('token_file', 'config/token.pickle'),
        scopes=settings.get('scopes', DEFAULT_SCOPES),
    )
    return auth.authenticate()
