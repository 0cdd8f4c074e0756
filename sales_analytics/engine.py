import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from sales_analytics.errors import InvalidInputError, SchemaMismatchError, ValidationError
from sales_analytics.models import (
    AnalysisOptions,
    BonusRates,
    LineItem,
    Product,
    PurchaseRecord,
    RankedSeller,
    SalesDataset,
    Seller,
    SellerStat,
    TopProduct,
)
from sales_analytics.money import is_negative_infinity, round2, to_decimal

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")

_REQUIRED_COLLECTIONS = ("sellers", "products", "purchase_records")

# legacy field -> canonical field
_LEGACY_PRODUCT_FIELDS = {"cost": "purchase_price"}
_LEGACY_ITEM_FIELDS = {"product_id": "sku"}


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _describe(exc: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}"
        for err in exc.errors()
    )


# ── Line items ───────────────────────────────────────────────────────────────

def _line_terms(item: LineItem) -> tuple[Decimal, Decimal, Decimal]:
    """(price, quantity, discount factor) with neutral defaults for missing fields."""
    price = item.sale_price if item.sale_price is not None else _ZERO
    quantity = item.quantity if item.quantity is not None else _ONE
    discount = item.discount if item.discount is not None else _ZERO
    return price, quantity, _ONE - discount / _HUNDRED


def calculate_line_revenue(line_item: Union[LineItem, Mapping]) -> Decimal:
    """Revenue of one line item after discount, unrounded."""
    if isinstance(line_item, Mapping):
        line_item = LineItem.model_validate(dict(line_item))
    elif not isinstance(line_item, LineItem):
        raise InvalidInputError(
            f"Line item must be a mapping, got {type(line_item).__name__}"
        )
    price, quantity, factor = _line_terms(line_item)
    return price * quantity * factor


def calculate_bonus(
    rank_index: int,
    total_count: int,
    seller: Any,
    rates: Optional[BonusRates] = None,
) -> Decimal:
    """
    Bonus for the seller at ``rank_index`` (0-based) of ``total_count`` ranked
    sellers, as a share of profit. Rules are checked in order: first place,
    second and third place, second-to-last. Unrounded.
    """
    rates = rates or BonusRates()
    if isinstance(seller, Mapping):
        profit = to_decimal(seller.get("profit"))
    else:
        profit = to_decimal(getattr(seller, "profit", None))
    if profit is None:
        return _ZERO

    if rank_index == 0:
        return profit * rates.first
    if rank_index in (1, 2):
        return profit * rates.runner_up
    if rank_index == total_count - 2:
        return profit * rates.penultimate
    return _ZERO


# ── Validation ───────────────────────────────────────────────────────────────

def _parse_options(options: Any) -> AnalysisOptions:
    if options is None:
        return AnalysisOptions()
    if isinstance(options, AnalysisOptions):
        return options
    if not isinstance(options, Mapping):
        raise ValidationError("Options must be a mapping")
    try:
        return AnalysisOptions.model_validate(dict(options))
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid options: {_describe(exc)}") from exc


def _check_schema(data: Mapping) -> None:
    for p_index, product in enumerate(data["products"]):
        if not isinstance(product, Mapping):
            continue
        for legacy, canonical in _LEGACY_PRODUCT_FIELDS.items():
            if legacy in product:
                raise SchemaMismatchError(f"products[{p_index}]", legacy, canonical)

    for r_index, receipt in enumerate(data["purchase_records"]):
        if not isinstance(receipt, Mapping) or not _is_sequence(receipt.get("items")):
            continue
        for i_index, item in enumerate(receipt["items"]):
            if not isinstance(item, Mapping):
                continue
            for legacy, canonical in _LEGACY_ITEM_FIELDS.items():
                if legacy in item:
                    raise SchemaMismatchError(
                        f"purchase_records[{r_index}].items[{i_index}]", legacy, canonical
                    )


def validate_input(data: Any, options: Any = None) -> tuple[SalesDataset, AnalysisOptions]:
    """
    Check the top-level shape of the input and parse it.

    Raises ValidationError when data is not a mapping, when one of the
    required collections is missing, not a list, or empty, or when options
    are malformed. Raises SchemaMismatchError for legacy field names.
    """
    parsed_options = _parse_options(options)

    if isinstance(data, SalesDataset):
        for name in _REQUIRED_COLLECTIONS:
            if not getattr(data, name):
                raise ValidationError(f"{name} is empty", details={"field": name})
        return data, parsed_options

    if not isinstance(data, Mapping):
        raise ValidationError("Data must be a mapping")

    for name in _REQUIRED_COLLECTIONS:
        value = data.get(name)
        if not _is_sequence(value):
            raise ValidationError(f"{name} must be a list", details={"field": name})
        if len(value) == 0:
            raise ValidationError(f"{name} is empty", details={"field": name})

    _check_schema(data)

    try:
        dataset = SalesDataset.model_validate({name: data[name] for name in _REQUIRED_COLLECTIONS})
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid dataset: {_describe(exc)}") from exc
    return dataset, parsed_options


# ── Aggregation ──────────────────────────────────────────────────────────────

def _index_sellers(sellers: list[Seller]) -> dict[str, Seller]:
    index: dict[str, Seller] = {}
    for seller in sellers:
        if seller.id and seller.id not in index:
            index[seller.id] = seller
    return index


def _index_products(products: list[Product]) -> dict[str, Product]:
    index: dict[str, Product] = {}
    for product in products:
        for key in (product.sku, product.id):
            if key and key not in index:
                index[key] = product
    return index


def _in_window(receipt: PurchaseRecord, options: AnalysisOptions) -> bool:
    if not options.has_window:
        return True
    if receipt.date is None:
        return False
    if options.date_from and receipt.date < options.date_from:
        return False
    if options.date_to and receipt.date > options.date_to:
        return False
    return True


def _accumulate(dataset: SalesDataset, options: AnalysisOptions) -> list[SellerStat]:
    sellers = _index_sellers(dataset.sellers)
    products = _index_products(dataset.products)

    stats: dict[str, SellerStat] = {}
    unresolved = out_of_window = 0

    for receipt in dataset.purchase_records:
        seller = sellers.get(receipt.seller_id) if receipt.seller_id else None
        if seller is None:
            unresolved += 1
            continue
        if not _in_window(receipt, options):
            out_of_window += 1
            continue

        stat = stats.get(seller.id)
        if stat is None:
            stat = stats[seller.id] = SellerStat(seller_id=seller.id, name=seller.display_name)
        stat.add_receipt()

        for item in receipt.items:
            if not item.sku:
                continue
            product = products.get(item.sku)
            if product is None:
                logger.debug("Receipt %s: unknown sku %s, cost taken as 0", receipt.receipt_id, item.sku)
            unit_cost = (
                product.purchase_price
                if product is not None and product.purchase_price is not None
                else _ZERO
            )
            price, quantity, factor = _line_terms(item)
            stat.add_line(
                item.sku,
                quantity,
                revenue=price * quantity * factor,
                profit=(price - unit_cost) * quantity * factor,
            )

    if unresolved or out_of_window:
        logger.debug(
            "Skipped %d receipts with no known seller and %d outside the date window",
            unresolved, out_of_window,
        )
    return [stat.finalize() for stat in stats.values()]


def aggregate(data: Any, options: Any = None) -> list[SellerStat]:
    """Per-seller totals in order of first appearance, rounded to 2 dp."""
    dataset, parsed_options = validate_input(data, options)
    return _accumulate(dataset, parsed_options)


# ── Ranking ──────────────────────────────────────────────────────────────────

def _top_products(stat: SellerStat, limit: int) -> list[TopProduct]:
    ordered = sorted(stat.products.items(), key=lambda kv: kv[1], reverse=True)
    return [TopProduct(sku=sku, quantity=quantity) for sku, quantity in ordered[:limit]]


def rank(
    stats: list[SellerStat],
    min_profit: Any = None,
    bonus_rates: Optional[BonusRates] = None,
    top_limit: Optional[int] = None,
) -> list[RankedSeller]:
    """Filter by minimum profit, sort by profit descending and attach bonuses."""
    if min_profit is not None and not is_negative_infinity(min_profit):
        threshold = to_decimal(min_profit)
        if threshold is None:
            raise ValidationError(f"min_profit must be a number, got {min_profit!r}")
        stats = [s for s in stats if s.profit >= threshold]

    # sort is stable, equal profits keep first-appearance order
    ordered = sorted(stats, key=lambda s: s.profit, reverse=True)
    limit = top_limit if top_limit is not None else AnalysisOptions().top_products_limit
    total = len(ordered)

    return [
        RankedSeller(
            seller_id=stat.seller_id,
            name=stat.name,
            sales_count=stat.sales_count,
            revenue=stat.revenue,
            profit=stat.profit,
            bonus=round2(calculate_bonus(index, total, stat, bonus_rates)),
            top_products=_top_products(stat, limit),
        )
        for index, stat in enumerate(ordered)
    ]


def analyze(data: Any, options: Any = None) -> list[RankedSeller]:
    dataset, parsed_options = validate_input(data, options)
    stats = _accumulate(dataset, parsed_options)
    ranked = rank(
        stats,
        min_profit=parsed_options.min_profit,
        bonus_rates=parsed_options.bonus_rates,
        top_limit=parsed_options.top_products_limit,
    )
    logger.info(
        "Analyzed %d receipts: %d sellers with sales, %d ranked",
        len(dataset.purchase_records), len(stats), len(ranked),
    )
    return ranked
