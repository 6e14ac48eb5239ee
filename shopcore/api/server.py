"""
FastAPI server for shopcore.

Exposes the catalog query interface and per-session cart ledgers to the
vendor dashboard and storefront templates.

Usage:
    python -m shopcore.api.server
    # or
    uvicorn shopcore.api.server:app --reload --port 8000
"""
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv
load_dotenv()

from shopcore.api.models import (
    AddItemRequest,
    CartLineModel,
    CartResponse,
    CatalogLoadRequest,
    CatalogLoadResponse,
    CheckoutRequest,
    CheckoutResponse,
    FacetsResponse,
    HealthResponse,
    IntegrityIssueModel,
    ProductModel,
    PricingTierModel,
    QueryRequest,
    QueryResponse,
    SetQuantityRequest,
)
from shopcore.cart.checkout import CheckoutClient, summarize
from shopcore.cart.ledger import CartLedger
from shopcore.catalog.facets import FilterCriteria, PriceRange
from shopcore.catalog.ingest import normalize_catalog
from shopcore.catalog.models import ProductRecord, VariantStock
from shopcore.catalog.sorting import SortSpec
from shopcore.catalog.stock import StockStatus, stock_status
from shopcore.core.config import ShopcoreConfig, get_config
from shopcore.core.engine import CatalogEngine
from shopcore.data.catalog_repository import CatalogRepository
from shopcore.data.catalog_source import CatalogSource, HttpCatalogSource
from shopcore.errors import (
    CartError,
    CatalogSourceError,
    CheckoutError,
    InvalidQuantityError,
    LineNotFoundError,
)
from shopcore.utils.logger import get_logger

logger = get_logger("api.server")

SERVICE_VERSION = "0.1.0"


def product_to_model(product: ProductRecord) -> ProductModel:
    if isinstance(product.stock, VariantStock):
        stock = dict(product.stock.counts)
    else:
        stock = {"total": product.stock.count}
    facets = {
        "dietary_type": list(product.facets.dietary_types),
        "cuisine": product.facets.cuisine,
        "spice_level": product.facets.spice_level,
        "sizes": list(product.facets.sizes),
        "material": product.facets.material,
        "colors": list(product.facets.colors),
    }
    return ProductModel(
        id=product.id,
        name=product.name,
        description=product.description,
        category=product.category,
        base_price=product.base_price,
        sale_price=product.sale_price,
        list_price=product.list_price,
        stock=stock,
        total_stock=product.total_stock,
        stock_status=stock_status(product.total_stock).value,
        pricing_tiers=[
            PricingTierModel(min_quantity=t.min_quantity, max_quantity=t.max_quantity, price=t.price)
            for t in product.pricing_tiers
        ],
        facets={k: v for k, v in facets.items() if v},
        image_urls=list(product.image_urls),
        created_at=product.created_at,
        rating=product.rating,
    )


def cart_to_response(session_id: str, ledger: CartLedger) -> CartResponse:
    return CartResponse(
        session_id=session_id,
        lines=[
            CartLineModel(
                product_id=line.product_id,
                variant_key=line.variant_key,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
            )
            for line in ledger.snapshot()
        ],
        item_count=ledger.item_count(),
        total_price=ledger.total_price(),
    )


def _issues_to_models(issues) -> list:
    return [IntegrityIssueModel(product_id=i.product_id, field=i.field, message=i.message) for i in issues]


def create_app(
    repository: Optional[CatalogRepository] = None,
    source: Optional[CatalogSource] = None,
    checkout: Optional[CheckoutClient] = None,
    config: Optional[ShopcoreConfig] = None,
) -> FastAPI:
    """Build the API with explicitly supplied catalog state."""
    config = config or get_config()
    repository = repository or CatalogRepository(config=config)

    app = FastAPI(
        title="shopcore API",
        description="Catalog query and cart ledger API for vendor storefronts",
        version=SERVICE_VERSION,
    )
    app.state.config = config
    app.state.repository = repository
    app.state.engine = CatalogEngine(repository, config=config)
    app.state.source = source or HttpCatalogSource(config=config)
    app.state.checkout = checkout or CheckoutClient(config=config)
    # Cart storage: session_id -> CartLedger
    app.state.carts = {}
    # Vendor each non-empty cart is bound to: session_id -> vendor_id
    app.state.cart_vendors = {}

    # Enable CORS for storefronts
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_cart(request: Request, session_id: str, create: bool = False) -> CartLedger:
        carts = request.app.state.carts
        if session_id not in carts:
            if not create:
                raise HTTPException(status_code=404, detail="Cart not found")
            carts[session_id] = CartLedger()
            logger.info(f"Created new cart session: {session_id}")
        return carts[session_id]

    # API Endpoints

    @app.get("/", response_model=HealthResponse)
    async def root(request: Request):
        """Health check endpoint."""
        cfg = request.app.state.config
        return HealthResponse(
            status="online",
            service="shopcore API",
            version=SERVICE_VERSION,
            config={
                "default_page_size": cfg.default_page_size,
                "max_page_size": cfg.max_page_size,
                "tax_enabled": cfg.tax_enabled,
                "vendors_loaded": len(request.app.state.repository.vendors()),
            },
        )

    @app.post("/vendors/{vendor_id}/catalog", response_model=CatalogLoadResponse)
    async def load_catalog(vendor_id: str, body: CatalogLoadRequest, request: Request):
        """Install a vendor catalog from the request body or the catalog source."""
        repo: CatalogRepository = request.app.state.repository
        if body.products is not None:
            issues: list = []
            records = normalize_catalog(body.products, config=request.app.state.config, issues=issues)
            repo.replace(vendor_id, records, issues)
        else:
            try:
                await repo.load(vendor_id, request.app.state.source)
            except CatalogSourceError as e:
                logger.error(f"Catalog load failed for vendor {vendor_id}: {e}")
                raise HTTPException(status_code=502, detail=str(e))

        return CatalogLoadResponse(
            vendor_id=vendor_id,
            product_count=len(repo.records(vendor_id)),
            version=repo.version(vendor_id),
            issues=_issues_to_models(repo.issues(vendor_id)),
        )

    @app.post("/vendors/{vendor_id}/query", response_model=QueryResponse)
    async def query_catalog(vendor_id: str, body: QueryRequest, request: Request):
        """Filtered, sorted, paginated catalog page."""
        repo: CatalogRepository = request.app.state.repository
        if not repo.has_vendor(vendor_id):
            raise HTTPException(status_code=404, detail="Vendor catalog not loaded")
        try:
            criteria = FilterCriteria(
                search_term=body.search_term,
                category=body.category,
                stock_status=StockStatus(body.stock_status),
                price_range=PriceRange(min=body.price_range.min, max=body.price_range.max),
                facets=body.facets,
            )
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        result = request.app.state.engine.query(
            vendor_id,
            criteria,
            SortSpec(field=body.sort_field, direction=body.sort_direction),
            page=body.page,
            page_size=body.page_size,
        )
        return QueryResponse(
            items=[product_to_model(p) for p in result.items],
            total_count=result.total_count,
            total_pages=result.total_pages,
            page=result.page,
            page_size=result.page_size,
            start_index=result.start_index,
            end_index=result.end_index,
        )

    @app.get("/vendors/{vendor_id}/facets", response_model=FacetsResponse)
    async def get_facets(vendor_id: str, request: Request):
        """Selectable facet values and stock-status counts."""
        engine: CatalogEngine = request.app.state.engine
        if not request.app.state.repository.has_vendor(vendor_id):
            raise HTTPException(status_code=404, detail="Vendor catalog not loaded")
        return FacetsResponse(
            vendor_id=vendor_id,
            options=engine.facet_options(vendor_id),
            stock_status_counts={s.value: n for s, n in engine.stock_status_counts(vendor_id).items()},
        )

    @app.get("/cart/{session_id}", response_model=CartResponse)
    async def read_cart(session_id: str, request: Request):
        return cart_to_response(session_id, get_cart(request, session_id))

    @app.post("/cart", response_model=CartResponse)
    async def create_cart(request: Request):
        """Open a new cart session."""
        session_id = str(uuid.uuid4())
        return cart_to_response(session_id, get_cart(request, session_id, create=True))

    @app.post("/cart/{session_id}/items", response_model=CartResponse)
    async def add_item(session_id: str, body: AddItemRequest, request: Request):
        """Add units of a product/variant (creates the cart if needed)."""
        product = request.app.state.repository.get(body.vendor_id, body.product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")
        ledger = get_cart(request, session_id, create=True)
        bound_vendor = request.app.state.cart_vendors.get(session_id)
        if not ledger.is_empty() and bound_vendor not in (None, body.vendor_id):
            raise HTTPException(
                status_code=409,
                detail=f"Cart holds products from vendor {bound_vendor}; check out or clear it first",
            )
        try:
            ledger.add_or_increment(product, body.variant_key, body.quantity)
        except InvalidQuantityError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except CartError as e:
            raise HTTPException(status_code=409, detail=str(e))
        request.app.state.cart_vendors[session_id] = body.vendor_id
        return cart_to_response(session_id, ledger)

    @app.put("/cart/{session_id}/items/{product_id}", response_model=CartResponse)
    async def set_item_quantity(session_id: str, product_id: str, body: SetQuantityRequest, request: Request):
        """Set a line's quantity; 0 removes it."""
        ledger = get_cart(request, session_id)
        vendor_id = request.app.state.cart_vendors.get(session_id)
        current = request.app.state.repository.get(vendor_id, product_id) if vendor_id else None
        if current is not None:
            ledger.refresh_products([current])
        try:
            ledger.set_quantity(product_id, body.quantity, body.variant_key)
        except LineNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except CartError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return cart_to_response(session_id, ledger)

    @app.delete("/cart/{session_id}/items/{product_id}", response_model=CartResponse)
    async def remove_item(session_id: str, product_id: str, request: Request, variant_key: Optional[str] = None):
        ledger = get_cart(request, session_id)
        ledger.remove(product_id, variant_key)
        return cart_to_response(session_id, ledger)

    @app.delete("/cart/{session_id}")
    async def clear_cart(session_id: str, request: Request):
        """Empty and forget a cart session."""
        ledger = get_cart(request, session_id)
        ledger.clear()
        del request.app.state.carts[session_id]
        request.app.state.cart_vendors.pop(session_id, None)
        logger.info(f"Deleted cart session: {session_id}")
        return {"status": "deleted", "session_id": session_id}

    @app.post("/cart/{session_id}/checkout", response_model=CheckoutResponse)
    async def checkout_cart(session_id: str, body: CheckoutRequest, request: Request):
        """Submit the cart to the order service; the cart is cleared on success."""
        ledger = get_cart(request, session_id)
        summary = summarize(
            ledger,
            tax_enabled=body.tax_enabled,
            tax_rate=body.tax_rate,
            discount_amount=body.discount_amount,
            config=request.app.state.config,
        )
        try:
            receipt = await request.app.state.checkout.submit_cart(
                ledger,
                body.vendor_id,
                summary=summary,
                customer=body.customer,
                payment_method=body.payment_method,
                notes=body.notes,
            )
        except CheckoutError as e:
            raise HTTPException(status_code=502, detail=str(e))

        ledger.clear()
        request.app.state.cart_vendors.pop(session_id, None)
        return CheckoutResponse(
            session_id=session_id,
            order_id=receipt.order_id,
            order_number=receipt.order_number,
            subtotal=summary.subtotal,
            tax_amount=summary.tax_amount,
            discount_amount=summary.discount_amount,
            total=summary.total,
            item_count=summary.item_count,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("shopcore API Server")
    print("=" * 60)
    print("API Documentation: http://localhost:8000/docs")
    print("")
    print("Environment variables:")
    print("  SHOPCORE_CATALOG_URL   - Catalog source base URL")
    print("  SHOPCORE_CHECKOUT_URL  - Order service endpoint")
    print("  SHOPCORE_LOG_LEVEL     - Logging level (falls back to LOG_LEVEL, default INFO)")
    print("=" * 60)

    uvicorn.run(app, host="0.0.0.0", port=8000)
