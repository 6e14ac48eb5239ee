"""
Configuration management for shopcore.

Loads settings from YAML config file and provides typed access.
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
    """Return project root (parent of shopcore package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


@dataclass
class ShopcoreConfig:
    """Configuration for the catalog/cart engine."""

    # Catalog browsing
    default_page_size: int = 10
    max_page_size: int = 100

    # Stock normalization
    variant_categories: List[str] = field(
        default_factory=lambda: ["Clothing", "Apparel", "Fashion", "Footwear"]
    )
    default_variant_keys: List[str] = field(default_factory=lambda: ["S", "M", "L", "XL"])
    variant_stock_floor: int = 10       # Units per variant when an even split yields zero

    # Checkout
    tax_rate: float = 0.1
    tax_enabled: bool = False

    # External collaborators
    catalog_base_url: str = "http://localhost:8080/api"
    checkout_url: str = "http://localhost:8080/api/orders"
    request_timeout: float = 30.0

    def is_variant_category(self, category: Optional[str]) -> bool:
        """Whether products in this category track stock per variant."""
        if not category:
            return False
        wanted = category.strip().lower()
        return any(c.lower() == wanted for c in self.variant_categories)

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "ShopcoreConfig":
        """Load configuration from YAML file."""
        path = config_path or DEFAULT_CONFIG_PATH
        if not path.exists():
            return cls()

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        catalog_config = data.get('catalog', {})
        stock_config = data.get('stock', {})
        checkout_config = data.get('checkout', {})
        services_config = data.get('services', {})

        defaults = cls()
        return cls(
            default_page_size=catalog_config.get('default_page_size', 10),
            max_page_size=catalog_config.get('max_page_size', 100),
            variant_categories=stock_config.get('variant_categories', defaults.variant_categories),
            default_variant_keys=[str(k) for k in stock_config.get('default_variant_keys', defaults.default_variant_keys)],
            variant_stock_floor=stock_config.get('variant_stock_floor', 10),
            tax_rate=checkout_config.get('tax_rate', 0.1),
            tax_enabled=checkout_config.get('tax_enabled', False),
            catalog_base_url=os.getenv(
                "SHOPCORE_CATALOG_URL",
                services_config.get('catalog_base_url', defaults.catalog_base_url),
            ),
            checkout_url=os.getenv(
                "SHOPCORE_CHECKOUT_URL",
                services_config.get('checkout_url', defaults.checkout_url),
            ),
            request_timeout=services_config.get('request_timeout', 30.0),
        )


# Global config instance
_config: Optional[ShopcoreConfig] = None


def get_config() -> ShopcoreConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ShopcoreConfig.from_yaml()
    return _config


def set_config(config: ShopcoreConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
