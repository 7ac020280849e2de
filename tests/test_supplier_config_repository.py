from __future__ import annotations

import unittest
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.config import PriceListImportSettings
from app.domain.discount_structure import CodeMappingStructure
from app.domain.import_defaults import ImportDefaultsValidationError, ParsingMethod
from app.domain.price_list import DelimitedConfig, PricingMode
from app.repositories.supplier_config_repository import (
    PARSER_CONFIG_KEY,
    SupplierConfigRepository,
    SupplierConfigStoreError,
)
from app.services.price_list_import_service import PriceListImportService
from app.validators.discount_structure_validator import DiscountStructureValidationError
from app.validators.parser_config_validator import ParserConfigValidationError
from db.base import Base


class TestSupplierConfigRepository(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.session = Session(self.engine)
        self.repository = SupplierConfigRepository(self.session)
        self.repository.upsert_supplier(supplier_id="sup-1", name="Acme Parts")

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()

    def test_unknown_supplier_has_no_configuration(self) -> None:
        self.assertIsNone(self.repository.get_supplier("missing"))
        self.assertIsNone(self.repository.get_parser_config("missing"))
        self.assertIsNone(self.repository.get_discount_structure("missing"))
        self.assertIsNone(self.repository.get_import_defaults("missing"))

    def test_upsert_updates_existing_name(self) -> None:
        self.repository.upsert_supplier(supplier_id="sup-1", name=" Acme Parts BV ")

        self.assertEqual(self.repository.get_supplier("sup-1").name, "Acme Parts BV")

    def test_discount_structure_round_trip(self) -> None:
        self.repository.save_discount_structure(
            "sup-1",
            {"type": "code_mapping", "mappings": {"A": 25, "B": "12.5"}},
        )
        self.session.commit()
        self.session.expire_all()

        structure = self.repository.get_discount_structure("sup-1")

        self.assertIsInstance(structure, CodeMappingStructure)
        self.assertEqual(structure.percentage_for("A"), Decimal("25"))
        self.assertEqual(structure.available_codes, ["A", "B"])

    def test_invalid_discount_structure_is_not_stored(self) -> None:
        with self.assertRaises(DiscountStructureValidationError):
            self.repository.save_discount_structure("sup-1", {"type": "percentage", "default_percentage": 150})

        self.assertIsNone(self.repository.get_discount_structure("sup-1"))

    def test_parser_config_round_trip(self) -> None:
        self.repository.save_parser_config(
            "sup-1",
            {
                "type": "delimited",
                "config": {
                    "delimiter": ";",
                    "has_header": True,
                    "column_mapping": {"supplier_sku": "Artikel", "net_price": ["Netto", "Prijs"]},
                },
            },
        )
        self.session.commit()
        self.session.expire_all()

        config = self.repository.get_parser_config("sup-1")

        self.assertIsInstance(config.format_config, DelimitedConfig)
        self.assertEqual(config.format_config.delimiter, ";")
        self.assertEqual(config.format_config.column_mapping["net_price"], ("Netto", "Prijs"))
        self.assertIsNone(self.repository.get_template_name("sup-1"))

    def test_template_reference_only(self) -> None:
        self.repository.save_template_name("sup-1", " semicolon-csv ")

        self.assertIsNone(self.repository.get_parser_config("sup-1"))
        self.assertEqual(self.repository.get_template_name("sup-1"), "semicolon-csv")
        template = self.repository.get_named_template("semicolon-csv")
        self.assertEqual(template.format_config.delimiter, ";")
        self.assertIsNone(self.repository.get_named_template("no-such-template"))

    def test_invalid_stored_parser_config_raises_on_read(self) -> None:
        supplier = self.repository.get_supplier("sup-1")
        supplier.metadata_json = {PARSER_CONFIG_KEY: {"type": "xml", "config": {}}}
        self.session.flush()

        with self.assertRaises(ParserConfigValidationError):
            self.repository.get_parser_config("sup-1")

    def test_saving_for_missing_supplier_fails(self) -> None:
        with self.assertRaises(SupplierConfigStoreError):
            self.repository.save_discount_structure("missing", {"type": "net_only"})

    def test_import_defaults_round_trip(self) -> None:
        self.repository.save_import_defaults(
            "sup-1",
            {"pricing_mode": "calculated", "parsing_method": "delimited", "delimiter": "tab"},
        )
        self.session.commit()
        self.session.expire_all()

        defaults = self.repository.get_import_defaults("sup-1")

        self.assertIs(defaults.pricing_mode, PricingMode.CALCULATED)
        self.assertIs(defaults.parsing_method, ParsingMethod.DELIMITED)
        self.assertEqual(defaults.delimiter, "\t")
        self.assertFalse(defaults.is_derived)

    def test_invalid_import_defaults_are_rejected(self) -> None:
        with self.assertRaises(ImportDefaultsValidationError):
            self.repository.save_import_defaults("sup-1", {"pricing_mode": "net_only", "parsing_method": "template"})

    def test_saves_keep_other_configuration_keys(self) -> None:
        self.repository.save_template_name("sup-1", "generic-csv")
        self.repository.save_discount_structure("sup-1", {"type": "percentage", "default_percentage": 10})

        self.assertEqual(self.repository.get_template_name("sup-1"), "generic-csv")
        self.assertEqual(self.repository.get_discount_structure("sup-1").default_percentage, Decimal("10"))

    def test_import_service_reads_configuration_from_database(self) -> None:
        self.repository.save_template_name("sup-1", "semicolon-csv")
        self.repository.save_discount_structure("sup-1", {"type": "code_mapping", "mappings": {"A": 20}})
        self.session.commit()
        service = PriceListImportService(
            store=self.repository,
            settings=PriceListImportSettings(log_row_errors=False),
        )

        result = service.parse_price_list(
            supplier_id="sup-1",
            file_name="prices.csv",
            file_content=b"sku;gross;code\nA-1;50;A\nA-2;80;C\n",
        )

        self.assertEqual(result.parser_config.template_name, "semicolon-csv")
        self.assertIs(result.pricing_mode, PricingMode.CODE_MAPPING)
        self.assertEqual([item.net_price for item in result.items], [Decimal("40")])
        self.assertEqual(len(result.errors), 1)
        self.assertIn("Available codes: A", result.errors[0])


if __name__ == "__main__":
    unittest.main()
