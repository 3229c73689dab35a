"""
Configuration management for the bakery pricing core.

Loads business constants (promo code, birthday cake id, discount rates,
shipping options) and backend settings from a YAML file and provides typed access.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of bakery package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


@dataclass
class BakeryConfig:
    """Business rules and backend settings for the storefront."""

    # Reserved registration promo code; never accepted as a cart coupon
    promo_code: str = "FELICES50"
    birthday_cake_id: str = "BDAY001"

    # Profile discounts (fractions, 0.5 = 50%)
    senior_discount: float = 0.5
    promo_discount: float = 0.1
    senior_age_threshold: int = 50

    # Birthday reward is limited to academic accounts
    academic_email_pattern: str = r"@duoc\.cl$"

    # Shipping selector values (whole pesos)
    shipping_options: List[int] = field(default_factory=lambda: [3000, 6000])
    default_shipping_cost: int = 3000

    # Backend
    api_base_url: str = "http://localhost:8080"
    request_timeout: float = 15.0

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "BakeryConfig":
        """Load configuration from YAML file, then apply environment overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        promotions = data.get('promotions', {})
        discounts = data.get('discounts', {})
        shipping = data.get('shipping', {})
        backend = data.get('backend', {})

        defaults = cls()
        config = cls(
            promo_code=str(promotions.get('promo_code', defaults.promo_code)).upper(),
            birthday_cake_id=promotions.get('birthday_cake_id', defaults.birthday_cake_id),
            academic_email_pattern=promotions.get('academic_email_pattern', defaults.academic_email_pattern),
            senior_discount=float(discounts.get('senior', defaults.senior_discount)),
            promo_discount=float(discounts.get('promo', defaults.promo_discount)),
            senior_age_threshold=int(discounts.get('senior_age_threshold', defaults.senior_age_threshold)),
            shipping_options=[int(v) for v in shipping.get('options', defaults.shipping_options)],
            default_shipping_cost=int(shipping.get('default', defaults.default_shipping_cost)),
            api_base_url=backend.get('base_url', defaults.api_base_url),
            request_timeout=float(backend.get('timeout', defaults.request_timeout)),
        )

        env_url = os.getenv("BAKERY_API_BASE_URL", "").strip()
        if env_url:
            config.api_base_url = env_url
        env_timeout = os.getenv("BAKERY_REQUEST_TIMEOUT", "").strip()
        if env_timeout:
            config.request_timeout = float(env_timeout)
        config.api_base_url = config.api_base_url.rstrip("/")
        return config

    def normalize_shipping_cost(self, value: Optional[int]) -> int:
        """Map a stored/selected shipping value onto a known option (default otherwise)."""
        if isinstance(value, int) and not isinstance(value, bool) and value in self.shipping_options:
            return value
        return self.default_shipping_cost


# Global config instance
_config: Optional[BakeryConfig] = None


def get_config() -> BakeryConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = BakeryConfig.from_yaml()
    return _config


def set_config(config: Optional[BakeryConfig]) -> None:
    """Set (or with ``None``, reset) the global configuration instance."""
    global _config
    _config = config
