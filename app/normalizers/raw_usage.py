"""
app/normalizers/raw_usage.py

Per-user usage exports. Three column layouts share one canonical table:

    daily_user_cloud    usageDate, productName, userName, tokensConsumed
    daily_user_desktop  the cloud columns plus usageHours, useCount and
                        productVersion / machineName / licenseServerName
    acc_bim360          Event Date, User Email, Project Name, Product;
                        every row is a single event
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from app.domain.canonical_rows import RawUsageRow
from app.domain.dataset_ingestion import NormalizationContext
from app.domain.dataset_lifecycle import UsageLayout
from app.normalizers.base import (
    RowNormalizer,
    normalize_product_key,
    normalize_project_key,
    normalize_user_key,
)
from app.services.dataset_type_detector import ACC_PRODUCT_HEADERS
from app.validators.cell_parsers import (
    calendar_day,
    parse_optional_decimal,
    parse_optional_int,
    parse_optional_string,
    parse_required_date,
    parse_required_string,
    source_timestamp,
)

_DESKTOP_DIMENSIONS: tuple[tuple[str, str], ...] = (
    ("productVersion", "productVersion"),
    ("machineName", "machineName"),
    ("licenseServerName", "licenseServerName"),
)
_ACC_DIMENSIONS: tuple[tuple[str, str], ...] = (
    ("Feature Category", "featureCategory"),
    ("Project ID", "projectId"),
)

_USAGE_COLUMNS: tuple[str, ...] = (
    "usagedate",
    "productname",
    "username",
    "tokensconsumed",
    "usagehours",
    "usecount",
)
_ACC_COLUMNS: tuple[str, ...] = ("event date", "user email", "project name") + ACC_PRODUCT_HEADERS


class RawUsageNormalizer(RowNormalizer):
    def __init__(self, headers: Sequence[str], layout: UsageLayout) -> None:
        super().__init__(headers)
        self._layout = layout

    @property
    def layout(self) -> UsageLayout:
        return self._layout

    def normalize_row(self, row: Mapping[str, Any], context: NormalizationContext) -> RawUsageRow:
        if self._layout is UsageLayout.ACC_BIM360:
            return self._normalize_event_row(row, context)
        return self._normalize_daily_row(row, context)

    def _normalize_daily_row(self, row: Mapping[str, Any], context: NormalizationContext) -> RawUsageRow:
        columns = self.columns

        usage_date = parse_required_date(
            columns.value(row, "usageDate"),
            column=self._label("usageDate"),
        )
        product_name = parse_required_string(
            columns.value(row, "productName"),
            column=self._label("productName"),
        )
        user_name = parse_required_string(
            columns.value(row, "userName"),
            column=self._label("userName"),
        )
        tokens = parse_optional_decimal(
            columns.value(row, "tokensConsumed"),
            column=self._label("tokensConsumed"),
        )

        usage_hours = None
        use_count = None
        dimensions: dict[str, Any] = {}
        consumed = list(_USAGE_COLUMNS)
        if self._layout is UsageLayout.DAILY_USER_DESKTOP:
            usage_hours = parse_optional_decimal(
                columns.value(row, "usageHours"),
                column=self._label("usageHours"),
            )
            use_count = parse_optional_int(
                columns.value(row, "useCount"),
                column=self._label("useCount"),
            )
            dimensions.update(self._named_dimensions(row, _DESKTOP_DIMENSIONS))
            consumed.extend(source for source, _ in _DESKTOP_DIMENSIONS)

        dimensions.update(columns.unmapped(row, consumed) or {})
        timestamp = source_timestamp(usage_date)
        if timestamp is not None:
            dimensions["sourceTimestamp"] = timestamp

        return RawUsageRow(
            account_id=context.account_id,
            dataset_id=context.dataset_id,
            usage_layout=self._layout.value,
            usage_date=calendar_day(usage_date),
            product_name=product_name,
            product_key=normalize_product_key(product_name, context.product_aliases),
            user_key=normalize_user_key(user_name),
            project_key=None,
            tokens_consumed=tokens,
            usage_hours=usage_hours,
            use_count=use_count,
            event_count=None,
            dimensions=dimensions or None,
        )

    def _normalize_event_row(self, row: Mapping[str, Any], context: NormalizationContext) -> RawUsageRow:
        columns = self.columns

        event_date = parse_required_date(
            columns.value(row, "Event Date"),
            column=self._label("Event Date"),
        )
        user_email = parse_required_string(
            columns.value(row, "User Email"),
            column=self._label("User Email"),
        )
        product_name = parse_required_string(
            self._event_product(row),
            column=self._label(*ACC_PRODUCT_HEADERS),
        )

        dimensions = self._named_dimensions(row, _ACC_DIMENSIONS)
        consumed = list(_ACC_COLUMNS) + [source for source, _ in _ACC_DIMENSIONS]
        dimensions.update(columns.unmapped(row, consumed) or {})
        timestamp = source_timestamp(event_date)
        if timestamp is not None:
            dimensions["sourceTimestamp"] = timestamp

        return RawUsageRow(
            account_id=context.account_id,
            dataset_id=context.dataset_id,
            usage_layout=self._layout.value,
            usage_date=calendar_day(event_date),
            product_name=product_name,
            product_key=normalize_product_key(product_name, context.product_aliases),
            user_key=normalize_user_key(user_email),
            project_key=normalize_project_key(columns.value(row, "Project Name")),
            tokens_consumed=None,
            usage_hours=None,
            use_count=None,
            event_count=1,
            dimensions=dimensions or None,
        )

    def _event_product(self, row: Mapping[str, Any]) -> Any:
        # First non-blank of the product column spellings.
        for candidate in ACC_PRODUCT_HEADERS:
            value = parse_optional_string(self.columns.value(row, candidate))
            if value is not None:
                return value
        return None

    def _named_dimensions(
        self,
        row: Mapping[str, Any],
        fields: tuple[tuple[str, str], ...],
    ) -> dict[str, Any]:
        dimensions: dict[str, Any] = {}
        for source, key in fields:
            value = parse_optional_string(self.columns.value(row, source))
            if value is not None:
                dimensions[key] = value
        return dimensions
