"""
Tests for raw payload ingestion into ProductRecord.
"""

from shopcore.catalog.ingest import normalize_catalog, normalize_record
from shopcore.catalog.models import PricingTier, ScalarStock, VariantStock


class TestRestaurantPayloads:
    def test_tier_json_string_parsed(self, raw_restaurant_catalog, config):
        record = normalize_record(raw_restaurant_catalog[0], config=config)
        assert record.id == "1"
        assert record.pricing_tiers[0] == PricingTier(1, 2, 450.0)
        assert record.pricing_tiers[-1].max_quantity is None

    def test_food_details_dict(self, raw_restaurant_catalog, config):
        record = normalize_record(raw_restaurant_catalog[0], config=config)
        assert record.facets.cuisine == "Indian"
        assert record.facets.dietary_types == ("Non-Vegetarian",)
        assert record.facets.spice_level == "Medium"

    def test_food_details_json_string(self, raw_restaurant_catalog, config):
        record = normalize_record(raw_restaurant_catalog[1], config=config)
        assert record.facets.cuisine == "Italian"
        assert record.facets.dietary_types == ("Vegetarian",)

    def test_sale_price_kept(self, raw_restaurant_catalog, config):
        record = normalize_record(raw_restaurant_catalog[2], config=config)
        assert record.base_price == 280
        assert record.sale_price == 250
        assert record.list_price == 250

    def test_food_stock_is_scalar(self, raw_restaurant_catalog, config):
        record = normalize_record(raw_restaurant_catalog[1], config=config)
        assert record.stock == ScalarStock(15)

    def test_clean_catalog_has_no_issues(self, raw_restaurant_catalog, config):
        issues = []
        records = normalize_catalog(raw_restaurant_catalog, config=config, issues=issues)
        assert len(records) == 3
        assert issues == []


class TestClothingPayloads:
    def test_dict_stock_becomes_variant(self, raw_clothing_catalog, config):
        record = normalize_record(raw_clothing_catalog[0], config=config)
        assert isinstance(record.stock, VariantStock)
        assert record.total_stock == 43
        assert record.facets.sizes == ("XS", "S", "M", "L", "XL")

    def test_scalar_stock_split_across_sizes(self, raw_clothing_catalog, config):
        record = normalize_record(raw_clothing_catalog[1], config=config)
        assert record.stock.counts == {"S": 10, "M": 10, "L": 10, "XL": 10}
        assert record.facets.material == "Wool"

    def test_default_sizes_backfilled(self, config):
        record = normalize_record({"id": 5, "name": "Cap", "price": 10, "category": "Apparel", "stock": 20},
                                  config=config)
        assert record.facets.sizes == ("S", "M", "L", "XL")


class TestMalformedPayloads:
    def test_missing_id_skipped(self, config):
        issues = []
        assert normalize_record({"name": "Ghost", "price": 5}, config=config, issues=issues) is None
        assert issues[0].field == "id"

    def test_invalid_price_defaults_to_zero(self, config):
        issues = []
        record = normalize_record({"id": "x", "name": "X", "price": "free", "stock": 1},
                                  config=config, issues=issues)
        assert record.base_price == 0.0
        assert [i.field for i in issues] == ["price"]

    def test_invalid_sale_price_ignored(self, config):
        issues = []
        record = normalize_record({"id": "x", "name": "X", "price": 10, "sale_price": -3, "stock": 1},
                                  config=config, issues=issues)
        assert record.sale_price is None
        assert record.list_price == 10

    def test_non_object_entries_skipped(self, config):
        issues = []
        records = normalize_catalog([{"id": 1, "name": "A", "price": 1, "stock": 1}, "junk"],
                                    config=config, issues=issues)
        assert [r.id for r in records] == ["1"]
        assert issues[0].field == "record"

    def test_bad_food_details_ignored(self, config):
        issues = []
        record = normalize_record({"id": 1, "name": "A", "price": 1, "stock": 1, "food_details": "{nope"},
                                  config=config, issues=issues)
        assert record.facets.cuisine is None
        assert issues[0].field == "food_details"
