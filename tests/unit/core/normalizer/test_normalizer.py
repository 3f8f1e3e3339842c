#!/usr/bin/env python3
"""
Unit tests for quote normalization.

Covers service keyword mapping and distance correction, the ordered cargo
rules, weight conversion, container/OOG detection, region lookup and the
lane distance proxy.
"""

import unittest

from core.normalizer import (
    CargoCategory,
    Region,
    ServiceCategory,
    are_compatible,
    classify_cargo,
    classify_region,
    correct_service_by_distance,
    detect_container_type,
    is_out_of_gauge,
    normalize_quote,
    normalize_service_type,
    to_kilograms,
    weight_range,
)
from core.normalizer.geo import CITY_POINTS, MIN_LANE_MILES, STATE_CENTROIDS, estimate_lane_miles, locate
from tests import make_quote


class TestServiceTypeNormalization(unittest.TestCase):
    """Free-text service types onto the closed category set."""

    def test_01_single_keywords(self):
        """Common service phrases map to their category."""
        print("\n📊 UNIT Test 1: Service Keywords")

        cases = {
            'LTL Ground': ServiceCategory.GROUND,
            'FTL dry van': ServiceCategory.GROUND,
            'Drayage - port pickup': ServiceCategory.DRAYAGE,
            'FCL 40HC': ServiceCategory.OCEAN,
            'Rail intermodal': ServiceCategory.INTERMODAL,
            'Air freight': ServiceCategory.AIR,
        }
        for raw, expected in cases.items():
            self.assertEqual(normalize_service_type(raw), expected, raw)
            print(f"  ✓ {raw!r} -> {expected.value}")

    def test_02_ground_precedes_air(self):
        """'air ride truck' is a truck move, not air freight."""
        print("\n📊 UNIT Test 2: Keyword Precedence")

        self.assertEqual(normalize_service_type('Air ride truck'), ServiceCategory.GROUND)
        print("  ✓ Air ride truck -> GROUND")

    def test_03_compound_inputs(self):
        """Ocean with a land leg is intermodal; ground with drayage stays ground."""
        print("\n📊 UNIT Test 3: Compound Service Types")

        self.assertEqual(normalize_service_type('Ocean / Drayage'), ServiceCategory.INTERMODAL)
        self.assertEqual(normalize_service_type('ocean + trucking'), ServiceCategory.INTERMODAL)
        self.assertEqual(normalize_service_type('Ground, Drayage'), ServiceCategory.GROUND)
        print("  ✓ Compound rules applied")

    def test_04_unknown_and_empty_are_other(self):
        print("\n📊 UNIT Test 4: Unknown Service")

        for raw in (None, '', '   ', 'teleportation'):
            self.assertEqual(normalize_service_type(raw), ServiceCategory.OTHER)
        print("  ✓ Unknown inputs -> OTHER")

    def test_05_distance_correction(self):
        """Short ocean moves are really drayage or intermodal."""
        print("\n📊 UNIT Test 5: Distance Correction")

        self.assertEqual(correct_service_by_distance(ServiceCategory.OCEAN, 40), ServiceCategory.DRAYAGE)
        self.assertEqual(
            correct_service_by_distance(ServiceCategory.OCEAN, 40, oversize=True), ServiceCategory.GROUND
        )
        self.assertEqual(correct_service_by_distance(ServiceCategory.INTERMODAL, 100), ServiceCategory.DRAYAGE)
        self.assertEqual(correct_service_by_distance(ServiceCategory.OCEAN, 200), ServiceCategory.INTERMODAL)
        self.assertEqual(correct_service_by_distance(ServiceCategory.INTERMODAL, 200), ServiceCategory.INTERMODAL)
        self.assertEqual(correct_service_by_distance(ServiceCategory.OCEAN, 6000), ServiceCategory.OCEAN)
        self.assertEqual(correct_service_by_distance(ServiceCategory.OCEAN, None), ServiceCategory.OCEAN)
        self.assertEqual(correct_service_by_distance(ServiceCategory.GROUND, 10), ServiceCategory.GROUND)
        print("  ✓ Corrections follow lane length")

    def test_06_compatibility_is_symmetric(self):
        self.assertTrue(are_compatible(ServiceCategory.GROUND, ServiceCategory.DRAYAGE))
        self.assertTrue(are_compatible(ServiceCategory.DRAYAGE, ServiceCategory.GROUND))
        self.assertTrue(are_compatible(ServiceCategory.OCEAN, ServiceCategory.INTERMODAL))
        self.assertFalse(are_compatible(ServiceCategory.OCEAN, ServiceCategory.GROUND))
        self.assertFalse(are_compatible(ServiceCategory.AIR, ServiceCategory.OCEAN))


class TestCargoClassification(unittest.TestCase):
    """Ordered cargo rules and cargo-derived attributes."""

    def test_01_rule_order_breaks_ties(self):
        """Machinery sits above container, so a container of machinery is MACHINERY."""
        print("\n📊 UNIT Test 1: Cargo Rule Order")

        self.assertEqual(classify_cargo('40ft container of machinery'), CargoCategory.MACHINERY)
        self.assertEqual(classify_cargo('40ft shipping container'), CargoCategory.CONTAINER)
        print("  ✓ MACHINERY wins over CONTAINER")

    def test_02_categories(self):
        print("\n📊 UNIT Test 2: Cargo Categories")

        cases = {
            'CAT 320 excavator': CargoCategory.MACHINERY,
            'Used cars for export': CargoCategory.VEHICLE,
            'Steel coils': CargoCategory.INDUSTRIAL,
            'Bagged fertilizer': CargoCategory.AGRICULTURAL,
            'Lithium batteries': CargoCategory.HAZMAT,
            'Household goods': CargoCategory.GENERAL,
        }
        for description, expected in cases.items():
            self.assertEqual(classify_cargo(description), expected, description)
            print(f"  ✓ {description!r} -> {expected.value}")

    def test_03_empty_description_is_unknown(self):
        self.assertEqual(classify_cargo(None), CargoCategory.UNKNOWN)
        self.assertEqual(classify_cargo('  '), CargoCategory.UNKNOWN)

    def test_04_weight_conversion(self):
        print("\n📊 UNIT Test 4: Weight Conversion")

        self.assertAlmostEqual(to_kilograms(1000, 'lbs'), 453.592)
        self.assertAlmostEqual(to_kilograms(1000, 'LB.'), 453.592)
        self.assertEqual(to_kilograms(2, 'tons'), 2000.0)
        self.assertEqual(to_kilograms(500, None), 500.0)
        self.assertEqual(to_kilograms(500, 'kg'), 500.0)
        self.assertIsNone(to_kilograms(0, 'kg'))
        self.assertIsNone(to_kilograms(-5, 'kg'))
        self.assertIsNone(to_kilograms(None, 'kg'))
        self.assertIsNone(to_kilograms('heavy', 'kg'))
        print("  ✓ lb/ton/kg conversions")

    def test_05_weight_ranges(self):
        self.assertEqual(weight_range(499), 'LIGHT')
        self.assertEqual(weight_range(500), 'MEDIUM')
        self.assertEqual(weight_range(2000), 'HEAVY')
        self.assertEqual(weight_range(10000), 'VERY_HEAVY')
        self.assertEqual(weight_range(25000), 'PROJECT')
        self.assertIsNone(weight_range(None))

    def test_06_container_detection(self):
        print("\n📊 UNIT Test 6: Container Detection")

        self.assertEqual(detect_container_type('40HC dry goods'), '40HC')
        self.assertEqual(detect_container_type('Reefer container of produce'), 'REEFER')
        self.assertEqual(detect_container_type('20ft container'), '20STD')
        self.assertEqual(detect_container_type('Machinery', 'Flat rack'), 'FLAT_RACK')
        # A bare number without container context is a piece count
        self.assertIsNone(detect_container_type('20 pallets of paper'))
        self.assertIsNone(detect_container_type(None, None))
        print("  ✓ Container types detected")

    def test_07_out_of_gauge(self):
        self.assertTrue(is_out_of_gauge('Oversized transformer'))
        self.assertTrue(is_out_of_gauge('Crated parts', height=110))
        self.assertFalse(is_out_of_gauge('Crated parts', height=90, width=96))
        self.assertFalse(is_out_of_gauge(None))


class TestRegionAndGeo(unittest.TestCase):
    """Region lookup tables and the coarse lane distance."""

    def test_01_us_states(self):
        print("\n📊 UNIT Test 1: US Regions")

        self.assertEqual(classify_region('IL', 'USA'), Region.MIDWEST)
        self.assertEqual(classify_region('GA', 'United States'), Region.SOUTHEAST)
        self.assertEqual(classify_region('Texas', None), Region.GULF)
        self.assertEqual(classify_region('ca', 'us'), Region.WEST)
        print("  ✓ State codes and names resolve")

    def test_02_international(self):
        print("\n📊 UNIT Test 2: International Regions")

        self.assertEqual(classify_region('Ontario', 'Canada'), Region.CANADA)
        self.assertEqual(classify_region(None, 'China'), Region.ASIA_PACIFIC)
        self.assertEqual(classify_region(None, 'DE'), Region.EUROPE)
        self.assertEqual(classify_region(None, 'UAE'), Region.MIDDLE_EAST)
        print("  ✓ Country aliases resolve")

    def test_03_city_fallback(self):
        self.assertEqual(classify_region(None, None, 'Chicago'), Region.MIDWEST)
        self.assertEqual(classify_region(None, None, 'Shanghai'), Region.ASIA_PACIFIC)

    def test_04_unknown_is_other(self):
        self.assertEqual(classify_region(None, None, None), Region.OTHER)
        self.assertEqual(classify_region('XX', 'Atlantis', 'Nowhere'), Region.OTHER)

    def test_05_locate(self):
        self.assertEqual(locate('Chicago', 'IL', 'USA'), CITY_POINTS['chicago'])
        self.assertEqual(locate(None, 'IL', 'USA'), STATE_CENTROIDS['IL'])
        self.assertEqual(locate('Springfield', 'IL', 'USA'), STATE_CENTROIDS['IL'])
        self.assertIsNone(locate(None, None, None))

    def test_06_lane_miles(self):
        print("\n📊 UNIT Test 6: Lane Miles")

        miles = estimate_lane_miles(CITY_POINTS['chicago'], CITY_POINTS['atlanta'])
        self.assertGreater(miles, 600)
        self.assertLess(miles, 800)
        self.assertEqual(estimate_lane_miles(CITY_POINTS['chicago'], CITY_POINTS['chicago']), MIN_LANE_MILES)
        self.assertIsNone(estimate_lane_miles(None, CITY_POINTS['chicago']))
        print(f"  ✓ Chicago -> Atlanta ~ {miles:.0f} miles")


class TestNormalizeQuote(unittest.TestCase):

    def test_01_chicago_to_atlanta_ground(self):
        print("\n📊 UNIT Test 1: Normalize Ground Quote")

        nq = normalize_quote(make_quote())

        self.assertEqual(nq.service, ServiceCategory.GROUND)
        self.assertEqual(nq.cargo, CargoCategory.GENERAL)
        self.assertEqual(nq.origin_region, Region.MIDWEST)
        self.assertEqual(nq.destination_region, Region.SOUTHEAST)
        self.assertAlmostEqual(nq.weight_kg, 5000 * 0.453592)
        self.assertEqual(nq.weight_range, 'HEAVY')
        self.assertIsNone(nq.container_type)
        self.assertFalse(nq.out_of_gauge)
        self.assertTrue(nq.has_origin and nq.has_destination)
        self.assertEqual(nq.lane, (Region.MIDWEST, Region.SOUTHEAST, ServiceCategory.GROUND))

        print(f"  ✓ {nq.service.value} {nq.origin_region.value}->{nq.destination_region.value}")

    def test_02_stated_distance_drives_correction(self):
        """A 40 mile 'ocean' move is normalized to drayage unless correction is off."""
        quote = make_quote(service_type='Ocean FCL', total_distance_miles=40)

        self.assertEqual(normalize_quote(quote).service, ServiceCategory.DRAYAGE)
        self.assertEqual(normalize_quote(quote, correct_by_distance=False).service, ServiceCategory.OCEAN)
        self.assertEqual(normalize_quote(quote).lane_miles, 40)

    def test_03_missing_locations(self):
        quote = make_quote(
            origin_city=None, origin_state_province=None, origin_country=None,
            destination_city=None, destination_state_province=None, destination_country=None,
        )
        nq = normalize_quote(quote)

        self.assertEqual(nq.origin_region, Region.OTHER)
        self.assertFalse(nq.has_origin)
        self.assertIsNone(nq.lane_miles)


if __name__ == '__main__':
    unittest.main()
