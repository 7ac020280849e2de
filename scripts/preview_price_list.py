"""
Parse a supplier price list from the command line and print the result as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from app.domain.price_list import ParserConfig
from app.parsers.templates import get_parser_template, list_parser_templates
from app.repositories.supplier_config_repository import SupplierConfigStoreError
from app.schemas.price_list_import import PriceListParseResponse
from app.services.price_list_import_service import PriceListFormatError, get_price_list_import_service
from app.validators.parser_config_validator import ParserConfigValidationError, parse_parser_config
from db.session import session_scope


def _load_parser_config(args: argparse.Namespace) -> ParserConfig | None:
    if args.config_file is not None:
        payload = json.loads(args.config_file.read_text(encoding="utf-8"))
        return parse_parser_config(payload)
    if args.template:
        template = get_parser_template(args.template)
        if template is None:
            known = ", ".join(item.template_name or "" for item in list_parser_templates())
            raise ParserConfigValidationError(
                message=f"Unknown template '{args.template}'. Known templates: {known}",
                errors=[],
            )
        return template
    return None


def main() -> int:
    parser = argparse.ArgumentParser(description="Parse a supplier price list without importing it.")
    parser.add_argument("supplier_id", help="Supplier whose configuration drives parsing.")
    parser.add_argument("path", type=Path, help="Price list file to parse.")
    parser.add_argument(
        "--pricing-mode",
        dest="pricing_mode",
        default=None,
        choices=["net_only", "calculated", "percentage", "code_mapping"],
        help="Override the supplier's default pricing mode.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--template", default=None, help="Use a named parser template.")
    source.add_argument(
        "--config-file",
        dest="config_file",
        type=Path,
        default=None,
        help="JSON parser configuration to use instead of resolving one.",
    )
    parser.add_argument("--full", action="store_true", help="Parse the whole file instead of a preview.")
    parser.add_argument("--row-errors", action="store_true", help="Include every row error in the output.")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline events to stderr.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, stream=sys.stderr)

    try:
        parser_config = _load_parser_config(args)
    except ParserConfigValidationError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return 2

    content = args.path.read_bytes()
    try:
        with session_scope() as db:
            service = get_price_list_import_service(db)
            run = service.parse_price_list if args.full else service.preview_price_list
            result = run(
                supplier_id=args.supplier_id,
                file_name=args.path.name,
                file_content=content,
                pricing_mode=args.pricing_mode,
                parser_config=parser_config,
            )
    except (PriceListFormatError, SupplierConfigStoreError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    response = PriceListParseResponse.from_result(result, include_row_errors=args.row_errors)
    print(response.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
