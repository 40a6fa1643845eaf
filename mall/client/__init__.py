from mall.client.api import ApiClient, normalize_base_url
from mall.client.auth import AuthClient
from mall.client.cart import CartItem, CartStore
from mall.client.checkout import CheckoutClient, CheckoutCompletionResult, CheckoutSessionResult
from mall.client.exceptions import ApiAuthenticationError, ApiConfigurationError, ApiError
from mall.client.favorites import FavoritesStore
from mall.client.orders import OrderService
from mall.client.polling import OrderPoller
from mall.client.storage import LocalStorage
