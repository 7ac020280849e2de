from __future__ import annotations

import unittest
from decimal import Decimal

from app.domain.price_list import CanonicalRow, RawRow, RowError
from app.domain.transformations import DateReformat, Divide, Uppercase
from app.mappers.row_mapper import RowMapper, resolve_column_mapping


class TestResolveColumnMapping(unittest.TestCase):
    def test_alias_list_picks_first_present_header(self) -> None:
        mapping = resolve_column_mapping(
            ["Part Number", "Prijs"],
            {"supplier_sku": ("sku", "part_number"), "net_price": "Prijs"},
            auto_match=False,
        )

        self.assertEqual(mapping.target_to_source, {"supplier_sku": "Part Number", "net_price": "Prijs"})
        self.assertEqual(mapping.match_strategies["supplier_sku"], "configured_alias")
        self.assertEqual(mapping.match_strategies["net_price"], "explicit")

    def test_missing_explicit_column_is_reported(self) -> None:
        mapping = resolve_column_mapping(["sku", "cost"], {"net_price": "Netto"}, auto_match=False)

        self.assertNotIn("net_price", mapping.target_to_source)
        self.assertEqual(mapping.missing_columns, {"net_price": "Netto"})

    def test_auto_match_fills_unmapped_fields(self) -> None:
        mapping = resolve_column_mapping(["sku", "gross", "code", "net"], {"supplier_sku": "sku"})

        self.assertEqual(mapping.target_to_source["gross_price"], "gross")
        self.assertEqual(mapping.target_to_source["discount_code"], "code")
        self.assertEqual(mapping.target_to_source["net_price"], "net")

    def test_identity_fallback_maps_named_columns(self) -> None:
        mapping = resolve_column_mapping(
            ["supplier_sku", "currency"],
            {},
            auto_match=False,
            identity_fallback=True,
        )

        self.assertEqual(mapping.target_to_source, {"supplier_sku": "supplier_sku", "currency": "currency"})


class TestRowMapper(unittest.TestCase):
    def _mapper(self, headers: list[str], column_mapping=None, transformations=None) -> RowMapper:
        mapping = resolve_column_mapping(headers, column_mapping or {}, auto_match=False, identity_fallback=True)
        return RowMapper(mapping=mapping, transformations=transformations)

    def test_maps_typed_fields_and_defaults_quantity(self) -> None:
        mapper = self._mapper(["supplier_sku", "gross_price", "discount_code", "net_price"])

        row = mapper.map_row(
            RawRow(
                row_number=2,
                values={"supplier_sku": "A1", "gross_price": "100", "discount_code": "X", "net_price": ""},
            )
        )

        self.assertIsInstance(row, CanonicalRow)
        assert isinstance(row, CanonicalRow)
        self.assertEqual(row.supplier_sku, "A1")
        self.assertEqual(row.gross_price, Decimal("100"))
        self.assertEqual(row.discount_code, "X")
        self.assertIsNone(row.net_price)
        self.assertEqual(row.quantity, 1)
        self.assertEqual(row.identifier, "A1")

    def test_missing_identifier_is_row_error(self) -> None:
        mapper = self._mapper(["supplier_sku", "net_price"])

        result = mapper.map_row(RawRow(row_number=7, values={"supplier_sku": "  ", "net_price": "10"}))

        self.assertIsInstance(result, RowError)
        self.assertTrue(str(result).startswith("Row 7: "))

    def test_non_numeric_price_is_row_error(self) -> None:
        mapper = self._mapper(["supplier_sku", "gross_price"])

        result = mapper.map_row(RawRow(row_number=3, values={"supplier_sku": "A1", "gross_price": "abc"}))

        self.assertIsInstance(result, RowError)
        assert isinstance(result, RowError)
        self.assertEqual(result.field, "gross_price")
        self.assertEqual(str(result), 'Row 3: Invalid gross_price value "abc": not a number.')

    def test_integer_fields_reject_fractions_and_negatives(self) -> None:
        mapper = self._mapper(["supplier_sku", "quantity", "lead_time_days"])

        fractional = mapper.map_row(
            RawRow(row_number=2, values={"supplier_sku": "A1", "quantity": "1.5", "lead_time_days": ""})
        )
        negative = mapper.map_row(
            RawRow(row_number=3, values={"supplier_sku": "A1", "quantity": "2", "lead_time_days": "-1"})
        )
        whole = mapper.map_row(
            RawRow(row_number=4, values={"supplier_sku": "A1", "quantity": "2.0", "lead_time_days": "14"})
        )

        self.assertIsInstance(fractional, RowError)
        self.assertIsInstance(negative, RowError)
        assert isinstance(whole, CanonicalRow)
        self.assertEqual((whole.quantity, whole.lead_time_days), (2, 14))

    def test_integer_fields_reject_huge_exponents(self) -> None:
        mapper = self._mapper(["supplier_sku", "quantity", "lead_time_days", "net_price"])

        quantity = mapper.map_row(
            RawRow(row_number=2, values={"supplier_sku": "A", "quantity": "1e999999999", "net_price": "1"})
        )
        lead_time = mapper.map_row(
            RawRow(row_number=3, values={"supplier_sku": "A", "lead_time_days": "1E+20", "net_price": "1"})
        )
        zero = mapper.map_row(
            RawRow(row_number=4, values={"supplier_sku": "A", "quantity": "0e999999999", "net_price": "1"})
        )

        assert isinstance(quantity, RowError) and isinstance(lead_time, RowError)
        self.assertEqual(quantity.field, "quantity")
        self.assertIn("expected a whole number", quantity.message)
        self.assertEqual(lead_time.field, "lead_time_days")
        assert isinstance(zero, CanonicalRow)
        self.assertEqual(zero.quantity, 0)

    def test_prices_at_or_above_1e15_are_row_errors(self) -> None:
        mapper = self._mapper(["supplier_sku", "gross_price", "net_price"])

        too_large = mapper.map_row(
            RawRow(row_number=5, values={"supplier_sku": "A", "gross_price": "1e30", "net_price": "1"})
        )
        largest = mapper.map_row(
            RawRow(row_number=6, values={"supplier_sku": "A", "gross_price": "999999999999999.99", "net_price": "1"})
        )

        assert isinstance(too_large, RowError)
        self.assertEqual(str(too_large), 'Row 5: Invalid gross_price value "1e30": must be below 1e15.')
        assert isinstance(largest, CanonicalRow)
        self.assertEqual(largest.gross_price, Decimal("999999999999999.99"))

    def test_transformations_apply_before_parsing(self) -> None:
        mapper = self._mapper(
            ["supplier_sku", "net_price", "valid_from"],
            transformations={
                "net_price": Divide(Decimal("100000")),
                "supplier_sku": Uppercase(),
                "valid_from": DateReformat("YYYYMMDD"),
            },
        )

        row = mapper.map_row(
            RawRow(
                row_number=1,
                values={"supplier_sku": "ab-1", "net_price": "0001250000", "valid_from": "20240301"},
            )
        )

        assert isinstance(row, CanonicalRow)
        self.assertEqual(row.supplier_sku, "AB-1")
        self.assertEqual(row.net_price, Decimal("12.5"))
        self.assertEqual(row.extra, {"valid_from": "2024-03-01"})

    def test_zero_divisor_at_runtime_becomes_row_error(self) -> None:
        mapper = self._mapper(["supplier_sku", "net_price"], transformations={"net_price": Divide(Decimal("0"))})

        result = mapper.map_row(RawRow(row_number=5, values={"supplier_sku": "A1", "net_price": "10"}))

        self.assertIsInstance(result, RowError)

    def test_legacy_cost_price_feeds_net_price(self) -> None:
        mapper = self._mapper(["sku", "Kostprijs"], {"supplier_sku": "sku", "cost_price": "Kostprijs"})

        row = mapper.map_row(RawRow(row_number=2, values={"sku": "A1", "Kostprijs": "12.50"}))

        assert isinstance(row, CanonicalRow)
        self.assertEqual(row.net_price, Decimal("12.50"))
        self.assertEqual(row.extra, {})

    def test_unknown_fields_are_kept_in_extra(self) -> None:
        mapper = self._mapper(["supplier_sku", "net_price", "currency", "brand"])

        row = mapper.map_row(
            RawRow(row_number=1, values={"supplier_sku": "A1", "net_price": "3", "currency": "EUR", "brand": ""})
        )

        assert isinstance(row, CanonicalRow)
        self.assertEqual(row.extra, {"currency": "EUR"})


if __name__ == "__main__":
    unittest.main()
