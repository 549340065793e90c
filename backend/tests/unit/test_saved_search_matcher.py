"""
Unit tests for saved_searches/matcher.py

Tests the boolean matching semantics of saved search criteria against
single listings.
"""

import unittest
from datetime import timedelta

from models import SavedSearchCriteria
from saved_searches.matcher import certification_variants, listing_matches
from tests.fixtures.saved_search_factory import BASE_TIME, create_test_listing


def criteria(**fields) -> SavedSearchCriteria:
    return SavedSearchCriteria.model_validate(fields)


class TestWatermarkBoundary(unittest.TestCase):
    """Listings must be first seen strictly after `since`."""

    def test_listing_after_since_matches(self):
        listing = create_test_listing(first_seen_at=BASE_TIME + timedelta(seconds=1))
        self.assertTrue(listing_matches(criteria(), listing, BASE_TIME))

    def test_listing_at_since_does_not_match(self):
        listing = create_test_listing(first_seen_at=BASE_TIME)
        self.assertFalse(listing_matches(criteria(), listing, BASE_TIME))

    def test_listing_before_since_does_not_match(self):
        listing = create_test_listing(first_seen_at=BASE_TIME - timedelta(hours=1))
        self.assertFalse(listing_matches(criteria(), listing, BASE_TIME))

    def test_naive_since_treated_as_utc(self):
        listing = create_test_listing(first_seen_at=BASE_TIME + timedelta(minutes=1))
        self.assertTrue(listing_matches(criteria(), listing, BASE_TIME.replace(tzinfo=None)))


class TestEmptyCriteria(unittest.TestCase):
    def test_empty_criteria_matches_any_new_listing(self):
        listing = create_test_listing(item_type="tsuba", cert_type=None, price_value=None)
        self.assertTrue(listing_matches(criteria(), listing, BASE_TIME))


class TestTab(unittest.TestCase):
    def test_available_tab_rejects_sold_listing(self):
        listing = create_test_listing(status="sold", is_available=False, is_sold=True)
        self.assertFalse(listing_matches(criteria(tab="available"), listing, BASE_TIME))

    def test_sold_tab_matches_presumed_sold(self):
        listing = create_test_listing(status="presumed_sold", is_available=False, is_sold=False)
        self.assertTrue(listing_matches(criteria(tab="sold"), listing, BASE_TIME))

    def test_sold_tab_rejects_available_listing(self):
        listing = create_test_listing()
        self.assertFalse(listing_matches(criteria(tab="sold"), listing, BASE_TIME))


class TestItemTypeAndCategory(unittest.TestCase):
    def test_item_type_case_insensitive(self):
        listing = create_test_listing(item_type="Katana")
        self.assertTrue(listing_matches(criteria(itemTypes=["katana"]), listing, BASE_TIME))

    def test_item_type_any_of(self):
        listing = create_test_listing(item_type="wakizashi")
        self.assertTrue(
            listing_matches(criteria(itemTypes=["katana", "wakizashi"]), listing, BASE_TIME)
        )

    def test_item_type_mismatch(self):
        listing = create_test_listing(item_type="tsuba")
        self.assertFalse(listing_matches(criteria(itemTypes=["katana"]), listing, BASE_TIME))

    def test_category_family(self):
        tsuba = create_test_listing(item_type="tsuba")
        katana = create_test_listing(item_type="katana")
        self.assertTrue(listing_matches(criteria(category="tosogu"), tsuba, BASE_TIME))
        self.assertFalse(listing_matches(criteria(category="tosogu"), katana, BASE_TIME))

    def test_category_all_is_unconstrained(self):
        listing = create_test_listing(item_type="kabuto")
        self.assertTrue(listing_matches(criteria(category="all"), listing, BASE_TIME))

    def test_unknown_category_matches_nothing(self):
        listing = create_test_listing(item_type="katana")
        self.assertFalse(listing_matches(criteria(category="ceramics"), listing, BASE_TIME))

    def test_category_and_item_types_are_anded(self):
        listing = create_test_listing(item_type="katana")
        self.assertFalse(
            listing_matches(
                criteria(category="tosogu", itemTypes=["katana"]), listing, BASE_TIME
            )
        )


class TestCertifications(unittest.TestCase):
    def test_certification_variant_spelling(self):
        listing = create_test_listing(cert_type="Tokubetsu Hozon")
        self.assertTrue(
            listing_matches(criteria(certifications=["TokuHozon"]), listing, BASE_TIME)
        )

    def test_certification_mismatch(self):
        listing = create_test_listing(cert_type="Hozon")
        self.assertFalse(listing_matches(criteria(certifications=["Juyo"]), listing, BASE_TIME))

    def test_missing_cert_does_not_match(self):
        listing = create_test_listing(cert_type=None)
        self.assertFalse(listing_matches(criteria(certifications=["Juyo"]), listing, BASE_TIME))

    def test_certification_variants_expansion(self):
        variants = certification_variants(["Tokuju", "Unknown"])
        self.assertIn("Tokubetsu Juyo", variants)
        self.assertIn("tokubetsu_juyo", variants)
        self.assertIn("Unknown", variants)

    def test_certification_variants_lowercase_dedupes(self):
        variants = certification_variants(["Juyo"], lowercase=True)
        self.assertEqual(variants, ["juyo"])


class TestDealersAndSchools(unittest.TestCase):
    def test_dealer_membership(self):
        listing = create_test_listing(dealer_id=7)
        self.assertTrue(listing_matches(criteria(dealers=[3, 7]), listing, BASE_TIME))
        self.assertFalse(listing_matches(criteria(dealers=[3]), listing, BASE_TIME))

    def test_school_matches_tosogu_school(self):
        listing = create_test_listing(item_type="tsuba", school=None, tosogu_school="Gotō")
        self.assertTrue(listing_matches(criteria(schools=["Goto"]), listing, BASE_TIME))

    def test_school_mismatch(self):
        listing = create_test_listing(school="Bizen")
        self.assertFalse(listing_matches(criteria(schools=["Soshu"]), listing, BASE_TIME))


class TestPrice(unittest.TestCase):
    def test_min_price_inclusive(self):
        listing = create_test_listing(price_value=1000000)
        self.assertTrue(listing_matches(criteria(minPrice=1000000), listing, BASE_TIME))
        self.assertFalse(listing_matches(criteria(minPrice=1000001), listing, BASE_TIME))

    def test_max_price_inclusive(self):
        listing = create_test_listing(price_value=500000)
        self.assertTrue(listing_matches(criteria(maxPrice=500000), listing, BASE_TIME))
        self.assertFalse(listing_matches(criteria(maxPrice=499999), listing, BASE_TIME))

    def test_price_bound_rejects_ask_listing(self):
        listing = create_test_listing(price_value=None)
        self.assertFalse(listing_matches(criteria(minPrice=1), listing, BASE_TIME))
        self.assertFalse(listing_matches(criteria(maxPrice=10**9), listing, BASE_TIME))

    def test_ask_only(self):
        ask = create_test_listing(price_value=None)
        priced = create_test_listing(price_value=100)
        self.assertTrue(listing_matches(criteria(askOnly=True), ask, BASE_TIME))
        self.assertFalse(listing_matches(criteria(askOnly=True), priced, BASE_TIME))


class TestQuery(unittest.TestCase):
    def test_every_term_must_match(self):
        listing = create_test_listing(title="Katana by Sukesada", smith="Sukesada")
        self.assertTrue(listing_matches(criteria(query="sukesada katana"), listing, BASE_TIME))
        self.assertFalse(listing_matches(criteria(query="sukesada tanto"), listing, BASE_TIME))

    def test_terms_match_across_fields(self):
        listing = create_test_listing(title="Fine blade", province="Bizen", era="Muromachi")
        self.assertTrue(listing_matches(criteria(query="bizen muromachi"), listing, BASE_TIME))

    def test_macrons_are_folded(self):
        listing = create_test_listing(title="Tsuba by Gotō Ichijō")
        self.assertTrue(listing_matches(criteria(query="goto ichijo"), listing, BASE_TIME))

    def test_item_type_word_filters_item_type(self):
        wakizashi = create_test_listing(item_type="wakizashi", title="Wakizashi, Soshu school")
        katana = create_test_listing(item_type="katana", title="Katana, ex-wakizashi mounts")
        self.assertTrue(listing_matches(criteria(query="waki"), wakizashi, BASE_TIME))
        self.assertFalse(listing_matches(criteria(query="waki"), katana, BASE_TIME))

    def test_certification_word_is_exact_filter(self):
        hozon = create_test_listing(
            item_type="tanto", cert_type="Hozon", title="Tanto by Goto, from a Juyo smith"
        )
        juyo = create_test_listing(item_type="tanto", cert_type="Juyo", title="Tanto, Goto school")
        search = criteria(query="Tanto Juyo Goto")
        self.assertFalse(listing_matches(search, hozon, BASE_TIME))
        self.assertTrue(listing_matches(search, juyo, BASE_TIME))

    def test_explicit_certifications_override_query_word(self):
        listing = create_test_listing(cert_type="Hozon", title="Katana, Juyo candidate")
        search = criteria(query="juyo", certifications=["Hozon"])
        self.assertTrue(listing_matches(search, listing, BASE_TIME))

    def test_category_word_matches_family(self):
        tsuba = create_test_listing(item_type="tsuba", title="Iron plate")
        katana = create_test_listing(item_type="katana", title="Blade with fittings")
        self.assertTrue(listing_matches(criteria(query="fittings"), tsuba, BASE_TIME))
        self.assertFalse(listing_matches(criteria(query="fittings"), katana, BASE_TIME))

    def test_short_query_ignored(self):
        listing = create_test_listing(title="Katana")
        self.assertTrue(listing_matches(criteria(query="x"), listing, BASE_TIME))


class TestJuyoKatanaOverMinimumPrice(unittest.TestCase):
    """Juyo katana over ¥1M, watermark at BASE_TIME."""

    def setUp(self):
        self.criteria = criteria(itemTypes=["katana"], certifications=["Juyo"], minPrice=1000000)

    def test_listing_matching_all_dimensions(self):
        listing = create_test_listing(
            item_type="katana", cert_type="Juyo", price_value=2500000,
            first_seen_at=BASE_TIME + timedelta(minutes=5),
        )
        self.assertTrue(listing_matches(self.criteria, listing, BASE_TIME))

    def test_price_below_minimum_rejected(self):
        listing = create_test_listing(
            item_type="katana", cert_type="Juyo", price_value=800000,
            first_seen_at=BASE_TIME + timedelta(minutes=5),
        )
        self.assertFalse(listing_matches(self.criteria, listing, BASE_TIME))


if __name__ == "__main__":
    unittest.main()
