from .stripe_connect import StripeAccountSnapshot, StripeConnectClient, stripe_connect_client
from .square_client import SquareMerchant, SquareOAuthClient, SquareTokens, square_oauth_client

__all__ = [
    "StripeAccountSnapshot",
    "StripeConnectClient",
    "stripe_connect_client",
    "SquareMerchant",
    "SquareOAuthClient",
    "SquareTokens",
    "square_oauth_client",
]
