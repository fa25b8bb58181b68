"""External provider contracts and clients."""

from .geocoding import Geocoder, ReverseGeocodingClient
from .kyc import KycProvider, KycResult, KycServiceClient

__all__ = ["Geocoder", "ReverseGeocodingClient", "KycProvider", "KycResult", "KycServiceClient"]
