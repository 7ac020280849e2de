from __future__ import annotations

import unittest
from decimal import Decimal

from app.domain.discount_structure import (
    CalculatedStructure,
    CodeMappingStructure,
    PercentageStructure,
)
from app.domain.price_list import CanonicalRow, PricingMode, RowError
from app.services.pricing_engine import PricingResolutionEngine, cap_error_messages

CODES = CodeMappingStructure(mappings={"X": Decimal("25"), "Y": Decimal("40")})


def _row(**fields) -> CanonicalRow:
    return CanonicalRow(row_number=fields.pop("row_number", 2), supplier_sku="A1", **fields)


class TestPricingResolutionEngine(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = PricingResolutionEngine(decimal_places=4)

    def test_code_mapping_applies_mapped_percentage(self) -> None:
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("100"), discount_code="X"),
            PricingMode.CODE_MAPPING,
            CODES,
        )

        assert isinstance(result, CanonicalRow)
        self.assertEqual(result.net_price, Decimal("75"))
        self.assertEqual(result.discount_percentage, Decimal("25"))

    def test_code_mapping_unknown_code_lists_available_codes(self) -> None:
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("100"), discount_code="Z"),
            PricingMode.CODE_MAPPING,
            CODES,
        )

        self.assertIsInstance(result, RowError)
        self.assertIn('"Z"', str(result))
        self.assertIn("Available codes: X, Y", str(result))

    def test_code_mapping_requires_gross_and_code(self) -> None:
        no_gross = self.engine.resolve_price(_row(discount_code="X"), PricingMode.CODE_MAPPING, CODES)
        no_code = self.engine.resolve_price(_row(gross_price=Decimal("10")), PricingMode.CODE_MAPPING, CODES)
        zero_gross = self.engine.resolve_price(
            _row(gross_price=Decimal("0"), discount_code="X"),
            PricingMode.CODE_MAPPING,
            CODES,
        )

        for result in (no_gross, no_code, zero_gross):
            self.assertIsInstance(result, RowError)

    def test_code_mapping_with_other_structure_names_remediation(self) -> None:
        structure = PercentageStructure(default_percentage=Decimal("10"))
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("100"), discount_code="X"),
            PricingMode.CODE_MAPPING,
            structure,
        )

        self.assertIsInstance(result, RowError)
        self.assertIn("Configure discount codes for this supplier", str(result))
        self.assertIsNotNone(self.engine.configuration_problem(PricingMode.CODE_MAPPING, structure))
        self.assertIsNotNone(self.engine.configuration_problem(PricingMode.CODE_MAPPING, None))
        self.assertIsNone(self.engine.configuration_problem(PricingMode.CODE_MAPPING, CODES))
        self.assertIsNone(self.engine.configuration_problem(PricingMode.NET_ONLY, None))

    def test_percentage_mode(self) -> None:
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("200"), discount_percentage=Decimal("10")),
            PricingMode.PERCENTAGE,
            None,
        )

        assert isinstance(result, CanonicalRow)
        self.assertEqual(result.net_price, Decimal("180"))

    def test_percentage_mode_falls_back_to_default_percentage(self) -> None:
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("50")),
            PricingMode.PERCENTAGE,
            PercentageStructure(default_percentage=Decimal("20")),
        )

        assert isinstance(result, CanonicalRow)
        self.assertEqual(result.net_price, Decimal("40"))
        self.assertEqual(result.discount_percentage, Decimal("20"))

    def test_percentage_mode_rejects_out_of_range_and_missing(self) -> None:
        out_of_range = self.engine.resolve_price(
            _row(gross_price=Decimal("200"), discount_percentage=Decimal("150")),
            PricingMode.PERCENTAGE,
            None,
        )
        missing = self.engine.resolve_price(_row(gross_price=Decimal("200")), PricingMode.PERCENTAGE, None)

        self.assertIsInstance(out_of_range, RowError)
        self.assertIn("out of range", str(out_of_range))
        self.assertIsInstance(missing, RowError)

    def test_percentage_boundaries_are_accepted(self) -> None:
        free = self.engine.resolve_price(
            _row(gross_price=Decimal("80"), discount_percentage=Decimal("100")),
            PricingMode.PERCENTAGE,
            None,
        )
        full = self.engine.resolve_price(
            _row(gross_price=Decimal("80"), discount_percentage=Decimal("0")),
            PricingMode.PERCENTAGE,
            None,
        )

        assert isinstance(free, CanonicalRow) and isinstance(full, CanonicalRow)
        self.assertEqual(free.net_price, Decimal("0"))
        self.assertEqual(full.net_price, Decimal("80"))

    def test_calculated_mode_derives_discount(self) -> None:
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("100"), net_price=Decimal("80")),
            PricingMode.CALCULATED,
            CalculatedStructure(),
        )

        assert isinstance(result, CanonicalRow)
        self.assertEqual(result.discount_percentage, Decimal("20"))
        self.assertEqual(result.net_price, Decimal("80"))

    def test_calculated_mode_rejects_net_above_gross(self) -> None:
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("50"), net_price=Decimal("80")),
            PricingMode.CALCULATED,
            None,
        )

        self.assertIsInstance(result, RowError)
        self.assertIn("exceeds gross price", str(result))

    def test_net_only_clears_gross_and_discount(self) -> None:
        result = self.engine.resolve_price(
            _row(net_price=Decimal("12.5"), gross_price=Decimal("20"), discount_code="X"),
            PricingMode.NET_ONLY,
            None,
        )

        assert isinstance(result, CanonicalRow)
        self.assertEqual(result.net_price, Decimal("12.5"))
        self.assertIsNone(result.gross_price)
        self.assertIsNone(result.discount_code)
        self.assertIsNone(result.discount_percentage)

    def test_net_only_rejects_missing_or_non_positive(self) -> None:
        self.assertIsInstance(self.engine.resolve_price(_row(), PricingMode.NET_ONLY, None), RowError)
        self.assertIsInstance(
            self.engine.resolve_price(_row(net_price=Decimal("0")), PricingMode.NET_ONLY, None),
            RowError,
        )

    def test_computed_prices_are_rounded_half_up(self) -> None:
        result = self.engine.resolve_price(
            _row(gross_price=Decimal("10"), discount_percentage=Decimal("33.333")),
            PricingMode.PERCENTAGE,
            None,
        )

        assert isinstance(result, CanonicalRow)
        self.assertEqual(result.net_price, Decimal("6.6667"))

    def test_net_price_rounding_to_zero_is_rejected(self) -> None:
        net_only = self.engine.resolve_price(_row(net_price=Decimal("0.00001")), PricingMode.NET_ONLY, None)
        calculated = self.engine.resolve_price(
            _row(gross_price=Decimal("1E-40"), net_price=Decimal("1E-41")),
            PricingMode.CALCULATED,
            None,
        )
        percentage = self.engine.resolve_price(
            _row(gross_price=Decimal("0.0001"), discount_percentage=Decimal("60")),
            PricingMode.PERCENTAGE,
            None,
        )

        for result in (net_only, calculated, percentage):
            self.assertIsInstance(result, RowError)
            self.assertEqual(result.field, "net_price")

    def test_unroundable_magnitude_becomes_row_error(self) -> None:
        huge_net = self.engine.resolve_price(_row(net_price=Decimal("1E+30")), PricingMode.NET_ONLY, None)
        huge_gross = self.engine.resolve_price(
            _row(gross_price=Decimal("12345678901234567890123456"), discount_percentage=Decimal("10")),
            PricingMode.PERCENTAGE,
            None,
        )

        for result in (huge_net, huge_gross):
            self.assertIsInstance(result, RowError)
            self.assertIn("outside the supported range", str(result))


class TestCapErrorMessages(unittest.TestCase):
    def test_caps_and_summarizes(self) -> None:
        messages = [f"Row {index}: bad" for index in range(60)]

        capped = cap_error_messages(messages, 50)

        self.assertEqual(len(capped), 51)
        self.assertEqual(capped[:50], messages[:50])
        self.assertEqual(capped[-1], "... and 10 more errors omitted")

    def test_short_lists_are_unchanged(self) -> None:
        self.assertEqual(cap_error_messages(["a", "b"], 50), ["a", "b"])


if __name__ == "__main__":
    unittest.main()
