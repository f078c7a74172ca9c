"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: HTTP client for Microsoft Dynamics 365 Business Central.
             Obtains client-credentials tokens from Azure AD, reads
             OData v4 pages of the configured company and writes journal
             lines through the v2.0 API.
-------------------------------------------------------------------------
"""
import logging
import threading
import time
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

from apps.core.exceptions import BusinessCentralAuthException, BusinessCentralException


logger = logging.getLogger(__name__)

TOKEN_URL = 'https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token'
TOKEN_SCOPE = 'https://api.businesscentral.dynamics.com/.default'
API_URL = 'https://api.businesscentral.dynamics.com/v2.0/{tenant}/{environment}/api/v2.0'

# Tokens are refreshed this many seconds before they expire
TOKEN_EXPIRY_MARGIN = 300


def _error_details(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(details: Any, default: str) -> str:
    """BC wraps failures as {"error": {"code", "message"}}."""
    if isinstance(details, dict):
        error = details.get('error')
        if isinstance(error, dict) and error.get('message'):
            return error['message']
    return default


class BusinessCentralClient:
    """
    Thin wrapper over a requests session.

    The access token is shared by every thread using the client and is
    renewed under a lock.
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        base_url: str,
        api_url: str = '',
        company_name: str = '',
        environment: str = 'Production',
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip('/')
        self.api_url = (api_url or API_URL.format(tenant=tenant_id, environment=environment)).rstrip('/')
        self.company_name = company_name
        self.timeout = timeout
        self.session = session or requests.Session()

        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()
        self._company_id: Optional[str] = None

    @classmethod
    def from_settings(cls, session: Optional[requests.Session] = None) -> 'BusinessCentralClient':
        return cls(
            tenant_id=settings.BC_TENANT_ID,
            client_id=settings.BC_CLIENT_ID,
            client_secret=settings.BC_CLIENT_SECRET,
            base_url=settings.BC_BASE_URL,
            api_url=settings.BC_API_URL,
            company_name=settings.BC_COMPANY_NAME,
            environment=settings.BC_ENVIRONMENT,
            timeout=settings.BC_TIMEOUT,
            session=session,
        )

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def get_token(self) -> str:
        """
        Return a valid access token, fetching a new one when the cached
        token is within TOKEN_EXPIRY_MARGIN seconds of expiring.

        Raises:
            BusinessCentralAuthException: Azure AD refused or was unreachable.
        """
        with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            try:
                response = self.session.post(
                    TOKEN_URL.format(tenant=self.tenant_id),
                    data={
                        'client_id': self.client_id,
                        'client_secret': self.client_secret,
                        'scope': TOKEN_SCOPE,
                        'grant_type': 'client_credentials',
                    },
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                logger.error(f"Business Central token request failed: {str(e)}")
                raise BusinessCentralAuthException(details=str(e))

            if not response.ok:
                details = _error_details(response)
                logger.error(f"Business Central token request rejected ({response.status_code}): {details}")
                raise BusinessCentralAuthException(details=details)

            payload = response.json()
            self._token = payload['access_token']
            expires_in = int(payload.get('expires_in', 3600))
            self._token_expires_at = time.monotonic() + expires_in - TOKEN_EXPIRY_MARGIN
            logger.info("Business Central access token acquired")
            return self._token

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.get_token()}',
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, url: str, message: str, **kwargs) -> Dict[str, Any]:
        """
        Send a request and return the decoded JSON body.

        Raises:
            BusinessCentralException: Network failure (502) or an error
                status from Business Central (same status).
        """
        try:
            response = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{message}: {str(e)}")
            raise BusinessCentralException(message, details=str(e))

        if not response.ok:
            details = _error_details(response)
            logger.error(f"{message} ({response.status_code}): {details}")
            raise BusinessCentralException(
                _error_message(details, message),
                details=details,
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def odata(self, entity: str, params: Optional[Dict[str, Any]] = None, message: Optional[str] = None) -> Dict[str, Any]:
        """GET an OData page of the configured company; returns the whole body."""
        return self._request(
            'GET',
            f"{self.base_url}/{entity.lstrip('/')}",
            message or f"Failed to fetch {entity}",
            params=params,
        )

    def odata_values(self, entity: str, params: Optional[Dict[str, Any]] = None, message: Optional[str] = None) -> List[Dict[str, Any]]:
        """GET an OData page and return its ``value`` list."""
        return self.odata(entity, params, message).get('value') or []

    def api_get(self, path: str, params: Optional[Dict[str, Any]] = None, message: Optional[str] = None) -> Dict[str, Any]:
        return self._request('GET', f"{self.api_url}/{path.lstrip('/')}", message or f"Failed to fetch {path}", params=params)

    def api_post(self, path: str, payload: Dict[str, Any], message: Optional[str] = None) -> Dict[str, Any]:
        return self._request('POST', f"{self.api_url}/{path.lstrip('/')}", message or f"Failed to post {path}", json=payload)

    # -------------------------------------------------------------------------
    # Journals (API v2.0)
    # -------------------------------------------------------------------------

    def company_id(self) -> str:
        """
        Id of the configured company, looked up by name once.

        Raises:
            BusinessCentralException: 404 when no company has that name.
        """
        if self._company_id:
            return self._company_id

        companies = self.api_get('companies', message='Failed to fetch company').get('value') or []
        for company in companies:
            if self.company_name in (company.get('name'), company.get('displayName')):
                self._company_id = company['id']
                return self._company_id
        raise BusinessCentralException("Company not found", details=self.company_name, status_code=404)

    def journal_id(self, code: str, display_name: str) -> str:
        """Id of the journal batch with this code, created when missing."""
        path = f"companies({self.company_id()})/journals"
        message = f"Failed to access {display_name.lower()}"
        journals = self.api_get(path, params={'$filter': f"code eq '{code}'"}, message=message).get('value') or []
        if journals:
            return journals[0]['id']

        logger.info(f"Creating Business Central journal {code}")
        created = self.api_post(path, {'code': code, 'displayName': display_name}, message=message)
        return created['id']

    def create_journal_line(self, journal_id: str, line: Dict[str, Any]) -> Dict[str, Any]:
        path = f"companies({self.company_id()})/journals({journal_id})/journalLines"
        return self.api_post(path, line, message='Failed to create journal line')


_client: Optional[BusinessCentralClient] = None
_client_lock = threading.Lock()


def get_client() -> BusinessCentralClient:
    """The process-wide client, built from settings on first use."""
    global _client
    with _client_lock:
        if _client is None:
            if not (settings.BC_TENANT_ID and settings.BC_CLIENT_ID and settings.BC_CLIENT_SECRET):
                logger.warning("Business Central credentials are not configured")
            _client = BusinessCentralClient.from_settings()
        return _client


def reset_client() -> None:
    """Drop the cached client (and its token), e.g. after settings change."""
    global _client
    with _client_lock:
        _client = None
