from __future__ import annotations

import unittest
from decimal import Decimal

from app.domain.discount_structure import (
    CalculatedStructure,
    CodeMappingStructure,
    NetOnlyStructure,
    PercentageStructure,
)
from app.validators.discount_structure_validator import (
    DiscountStructureValidationError,
    is_valid_discount_structure,
    validate_discount_structure,
)


class TestDiscountStructureValidator(unittest.TestCase):
    def test_code_mapping_accepts_boundary_percentages(self) -> None:
        structure = validate_discount_structure(
            {
                "type": "code_mapping",
                "description": "Caterpillar discount codes",
                "mappings": {"A": 25, "B": 0, "C": 100, "D": "12.5"},
            }
        )

        self.assertIsInstance(structure, CodeMappingStructure)
        assert isinstance(structure, CodeMappingStructure)
        self.assertEqual(structure.percentage_for("A"), Decimal("25"))
        self.assertEqual(structure.percentage_for("d"), Decimal("12.5"))
        self.assertIsNone(structure.percentage_for("Z"))
        self.assertEqual(structure.available_codes, ["A", "B", "C", "D"])

    def test_code_mapping_rejects_out_of_range_percentages(self) -> None:
        for bad in (-1, 100.01, 150):
            with self.subTest(percentage=bad):
                with self.assertRaises(DiscountStructureValidationError) as ctx:
                    validate_discount_structure({"type": "code_mapping", "mappings": {"A": bad}})
                self.assertTrue(ctx.exception.errors)

    def test_code_mapping_requires_mappings(self) -> None:
        self.assertFalse(is_valid_discount_structure({"type": "code_mapping"}))

    def test_percentage_bounds(self) -> None:
        self.assertIsInstance(
            validate_discount_structure({"type": "percentage", "default_percentage": 0}),
            PercentageStructure,
        )
        self.assertIsInstance(
            validate_discount_structure({"type": "percentage", "default_percentage": 100}),
            PercentageStructure,
        )
        self.assertFalse(is_valid_discount_structure({"type": "percentage", "default_percentage": 150}))
        self.assertFalse(is_valid_discount_structure({"type": "percentage", "default_percentage": -0.5}))

    def test_tag_only_structures(self) -> None:
        self.assertIsInstance(validate_discount_structure({"type": "calculated"}), CalculatedStructure)
        self.assertIsInstance(
            validate_discount_structure({"type": "net_only", "description": "Net prices only"}),
            NetOnlyStructure,
        )

    def test_rejects_missing_or_unknown_type_and_non_objects(self) -> None:
        with self.assertRaises(DiscountStructureValidationError) as missing:
            validate_discount_structure({"mappings": {"A": 10}})
        with self.assertRaises(DiscountStructureValidationError) as unknown:
            validate_discount_structure({"type": "tiered"})
        with self.assertRaises(DiscountStructureValidationError) as not_object:
            validate_discount_structure(["code_mapping"])

        self.assertEqual(missing.exception.errors[0].code, "missing_type")
        self.assertEqual(unknown.exception.errors[0].code, "unknown_type")
        self.assertEqual(not_object.exception.errors[0].code, "invalid_type")

    def test_error_payload_is_serializable(self) -> None:
        with self.assertRaises(DiscountStructureValidationError) as ctx:
            validate_discount_structure({"type": "percentage", "default_percentage": 101})

        payload = ctx.exception.to_dict()
        self.assertEqual(payload["message"], "Invalid 'percentage' discount structure.")
        self.assertEqual(payload["errors"][0]["field"], "default_percentage")


if __name__ == "__main__":
    unittest.main()
