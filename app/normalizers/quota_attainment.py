"""
app/normalizers/quota_attainment.py

Quota-attainment (commission) transaction exports.

Only the columns the dashboards aggregate on are typed; every other known
text column is kept in the ``attributes`` bag under its snake_case name.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from app.domain.canonical_rows import QuotaAttainmentTransaction
from app.domain.dataset_ingestion import NormalizationContext
from app.normalizers.base import RowNormalizer, json_safe, unknown_mapping
from app.utils.fiscal_year import calculate_fiscal_year
from app.validators.cell_parsers import (
    calendar_day,
    parse_optional_date,
    parse_optional_decimal,
    parse_optional_string,
    parse_required_date,
    parse_required_string,
)

TYPED_DECIMAL_COLUMNS: dict[str, str] = {
    "final_credited_amount": "Final Credited Amnt",
    "invoice_amt_dc": "Invoice Amt DC",
    "annual_inv_amt_dc": "Annual Inv Amt DC",
    "total_days": "Total Days",
    "trigger_multiplier": "Trigger Multiplier",
    "multiplier_factor": "Multiplier Factor",
}

TYPED_DATE_COLUMNS: dict[str, str] = {
    "original_order_date": "Original Order Date",
    "contract_start_date": "Contract Start Date",
    "contract_end_date": "Contract End Date",
    "settlement_start_date": "Settlement Start Date",
    "settlement_end_date": "Settlement End Date",
    "load_date": "Load Date",
}

TYPED_TEXT_COLUMNS: dict[str, str] = {
    "sales_rep_name": "Sales Rep Name",
    "order_number": "Order Number",
    "agreement_id": "Agreement ID",
    "currency_code": "Currency Code",
    "plan_currency": "Plan Currency",
}

ATTRIBUTE_DECIMAL_COLUMNS: dict[str, str] = {
    "spiff_multiplier": "SPIFF Multiplier",
    "assignment_multiplier": "Assignment Multiplier",
    "early_renewal_multiplier": "Early Renewal Multiplier",
    "premium_boost_multiplier": "Premium Boost Multiplier",
}

ATTRIBUTE_TEXT_COLUMNS: dict[str, str] = {
    "quota": "Quota",
    "adsk_data_source": "ADSK Data Source",
    "src_id": "Src ID",
    "account_type": "Account Type",
    "corporate_account_csn": "Corporate Account CSN",
    "end_user_trade_number": "End User Trade Number",
    "end_user_name": "End User Name",
    "sales_channel": "Sales Channel",
    "sales_team": "Sales Team",
    "consulting_indicator": "Consulting Indicator",
    "customer_po_number": "Customer PO Number",
    "wws_geo": "WWS Geo",
    "wws_area": "WWS Area",
    "wws_sub_area": "WWS Sub Area",
    "offer_detail": "Offer Detail",
    "solutions_division": "Solutions Division",
    "market_group": "Market Group",
    "product_class": "Product Class",
    "material_group": "Material Group",
    "etr_indicator": "ETR Indicator",
    "sold_to_customer_number": "Sold To Customer Number",
    "sold_to_customer_name": "Sold To Customer Name",
    "dealer_number": "Dealer Number",
    "dealer_account_name": "Dealer Account Name",
    "dealer_country": "Dealer Country",
    "end_user_trade_country_cd": "End User Trade Country CD",
    "end_user_trade_state_province_cd": "End User Trade State Province CD",
    "end_user_trade_city": "End User Trade City",
    "end_user_trade_zip": "End User Trade Zip",
    "ship_to_state_region": "Ship To State Region",
    "territory_acs": "Territory Acs",
    "territory_aec": "Territory AEC",
    "territory_mfg": "Territory MFG",
    "territory_me": "Territory Me",
    "territory_delcam": "Territory Delcam",
    "territory_innovyze": "Territory Innovyze",
    "manual_transaction": "Manual Transaction",
    "territory_channel": "Territory Channel",
    "invoice_cycle_nbr": "Invoice Cycle Nbr",
    "product_from": "Product From",
    "bsm_estore_order_origin": "Bsm Estore Order Origin",
    "offer_category": "Offer Category",
    "trigger_id": "Trigger ID",
    "portfolio_name": "Portfolio Name",
}


class QuotaAttainmentNormalizer(RowNormalizer):
    def normalize_row(
        self,
        row: Mapping[str, Any],
        context: NormalizationContext,
    ) -> QuotaAttainmentTransaction:
        columns = self.columns

        commission_month = parse_required_string(
            columns.value(row, "Commission Month"),
            column=self._label("Commission Month"),
        )
        corporate_account_name = parse_required_string(
            columns.value(row, "Corporate Account Name"),
            column=self._label("Corporate Account Name"),
        )
        transaction_date = calendar_day(
            parse_required_date(
                columns.value(row, "Transaction Date"),
                column=self._label("Transaction Date"),
            )
        )

        self._check_account_mapping(corporate_account_name, context)

        decimals: dict[str, Decimal | None] = {
            field: parse_optional_decimal(columns.value(row, header), column=self._label(header))
            for field, header in TYPED_DECIMAL_COLUMNS.items()
        }
        dates = {}
        for field, header in TYPED_DATE_COLUMNS.items():
            parsed = parse_optional_date(columns.value(row, header), column=self._label(header))
            dates[field] = calendar_day(parsed) if parsed else None
        texts = {
            field: parse_optional_string(columns.value(row, header))
            for field, header in TYPED_TEXT_COLUMNS.items()
        }

        return QuotaAttainmentTransaction(
            account_id=context.account_id,
            dataset_id=context.dataset_id,
            commission_month=commission_month,
            transaction_date=transaction_date,
            fiscal_year=calculate_fiscal_year(commission_month, transaction_date),
            corporate_account_name=corporate_account_name,
            attributes=self._attributes(row),
            **texts,
            **decimals,
            **dates,
        )

    def _check_account_mapping(self, corporate_account_name: str, context: NormalizationContext) -> None:
        mappings = context.corporate_account_mappings
        if not mappings:
            return
        mapped_account = mappings.get(corporate_account_name.strip().lower())
        if mapped_account != context.account_id:
            raise unknown_mapping(self._label("Corporate Account Name"), corporate_account_name)

    def _attributes(self, row: Mapping[str, Any]) -> dict[str, Any] | None:
        attributes: dict[str, Any] = {}
        for field, header in ATTRIBUTE_TEXT_COLUMNS.items():
            value = parse_optional_string(self.columns.value(row, header))
            if value is not None:
                attributes[field] = value
        for field, header in ATTRIBUTE_DECIMAL_COLUMNS.items():
            value = parse_optional_decimal(self.columns.value(row, header), column=self._label(header))
            if value is not None:
                attributes[field] = json_safe(value)
        return attributes or None
