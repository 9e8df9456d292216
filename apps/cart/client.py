"""
HTTP client for the remote cart persistence service.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class CartServiceError(Exception):
    """The cart service rejected a command or could not be reached"""


class CartServiceTimeout(CartServiceError):
    """No answer within CART_SERVICE_TIMEOUT; remote state is unknown"""


@dataclass(frozen=True)
class CartIdentity:
    """Who owns the cart: a signed-in user token or an anonymous guest session"""
    user_token: Optional[str] = None
    guest_session_id: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return not self.user_token

    def headers(self) -> Dict[str, str]:
        if self.user_token:
            return {'Authorization': f'Bearer {self.user_token}'}
        if self.guest_session_id:
            return {'X-Guest-Session': self.guest_session_id}
        return {}


class CartServiceClient:
    """Cart service API client: GET {base}/cart and POST {base}/cart commands"""

    def __init__(self, identity: CartIdentity = None, base_url: str = None, timeout: float = None):
        self.identity = identity or CartIdentity()
        self.base_url = (base_url or settings.CART_SERVICE_URL).rstrip('/')
        self.timeout = timeout or settings.CART_SERVICE_TIMEOUT

    @property
    def url(self):
        return f"{self.base_url}/cart"

    def _parse(self, response, action: str) -> Dict:
        if not response.ok:
            raise CartServiceError(f"Cart service rejected {action}: HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError:
            raise CartServiceError(f"Invalid response from cart service for {action}")

    def fetch_cart(self) -> List[Dict]:
        """Current remote cart items as wire payloads"""
        try:
            response = requests.get(
                self.url,
                headers={**self.identity.headers(), 'Cache-Control': 'no-store'},
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise CartServiceTimeout(f"Cart service timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise CartServiceError(f"Network error: {str(e)}")

        data = self._parse(response, 'fetch')
        cart = data.get('cart') if isinstance(data, dict) else None
        if cart is None and isinstance(data, dict):
            return []
        if not isinstance(cart, dict):
            raise CartServiceError("Invalid response from cart service for fetch")
        items = cart.get('items') or []
        if not isinstance(items, list):
            raise CartServiceError("Invalid response from cart service for fetch")
        return items

    def send(self, action: str, **payload) -> Dict:
        """POST one cart command (add, remove, update_quantity, clear)"""
        try:
            response = requests.post(
                self.url,
                json={'action': action, **payload},
                headers=self.identity.headers(),
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise CartServiceTimeout(f"Cart service timed out after {self.timeout}s on {action}")
        except requests.RequestException as e:
            raise CartServiceError(f"Network error: {str(e)}")

        return self._parse(response, action)
