"""
Pydantic models for shopcore API requests and responses.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class PriceRangeModel(BaseModel):
    min: Optional[float] = Field(default=None, description="Inclusive lower bound")
    max: Optional[float] = Field(default=None, description="Inclusive upper bound")


class QueryRequest(BaseModel):
    """Request model for catalog query endpoint."""
    search_term: Optional[str] = Field(default="", description="Free-text search")
    category: str = Field(default="All", description="Category or 'All'")
    stock_status: str = Field(default="any", description="'any', 'inStock', 'lowStock' or 'outOfStock'")
    price_range: PriceRangeModel = Field(default_factory=PriceRangeModel)
    facets: Dict[str, str] = Field(default_factory=dict, description="Domain facet selections (dietary_type, cuisine, size, ...)")
    sort_field: str = Field(default="name", description="name, category, stock, price, created_at or rating")
    sort_direction: str = Field(default="asc", description="'asc' or 'desc'")
    page: int = Field(default=1, description="1-based page number")
    page_size: Optional[int] = Field(default=None, description="Items per page (config default if omitted)")


class PricingTierModel(BaseModel):
    min_quantity: int
    max_quantity: Optional[int] = None
    price: float


class ProductModel(BaseModel):
    """Product as returned to storefronts."""
    id: str
    name: str
    description: str
    category: str
    base_price: float
    sale_price: Optional[float] = None
    list_price: float
    stock: Dict[str, int] = Field(description="Per-variant counts, or {'total': n} for scalar stock")
    total_stock: int
    stock_status: str
    pricing_tiers: List[PricingTierModel] = Field(default_factory=list)
    facets: Dict[str, Any] = Field(default_factory=dict)
    image_urls: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    rating: Optional[float] = None


class QueryResponse(BaseModel):
    """Response model for catalog query endpoint."""
    items: List[ProductModel]
    total_count: int
    total_pages: int
    page: int
    page_size: int
    start_index: int
    end_index: int


class CatalogLoadRequest(BaseModel):
    """Raw vendor products to install (bypasses the remote catalog source)."""
    products: Optional[List[Dict[str, Any]]] = Field(default=None, description="Raw product payloads; fetched from the catalog source when omitted")


class IntegrityIssueModel(BaseModel):
    product_id: Optional[str] = None
    field: str
    message: str


class CatalogLoadResponse(BaseModel):
    vendor_id: str
    product_count: int
    version: int
    issues: List[IntegrityIssueModel] = Field(default_factory=list)


class FacetsResponse(BaseModel):
    vendor_id: str
    options: Dict[str, List[str]]
    stock_status_counts: Dict[str, int]


class AddItemRequest(BaseModel):
    """Request model for adding to the cart."""
    vendor_id: str = Field(description="Vendor whose catalog holds the product")
    product_id: str
    variant_key: Optional[str] = Field(default=None, description="Variant (size) for per-variant stock")
    quantity: int = Field(default=1, description="Units to add")


class SetQuantityRequest(BaseModel):
    quantity: int = Field(description="New quantity (0 or less removes the line)")
    variant_key: Optional[str] = None


class CartLineModel(BaseModel):
    product_id: str
    variant_key: Optional[str] = None
    quantity: int
    unit_price: float
    line_total: float


class CartResponse(BaseModel):
    """Response model for cart endpoints."""
    session_id: str
    lines: List[CartLineModel]
    item_count: int
    total_price: float


class CheckoutRequest(BaseModel):
    """Request model for cart checkout."""
    vendor_id: str
    discount_amount: float = Field(default=0.0, description="Flat discount")
    tax_enabled: Optional[bool] = Field(default=None, description="Override config tax_enabled")
    tax_rate: Optional[float] = Field(default=None, description="Override config tax_rate")
    customer: Optional[Dict[str, Any]] = None
    payment_method: Optional[str] = None
    notes: str = ""


class CheckoutResponse(BaseModel):
    session_id: str
    order_id: str
    order_number: Optional[str] = None
    subtotal: float
    tax_amount: float
    discount_amount: float
    total: float
    item_count: int


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    service: str
    version: str
    config: Dict[str, Any]
