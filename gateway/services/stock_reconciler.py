from typing import Dict, Iterable, List, Mapping, Sequence, Union

from gateway.schemas.checkout import CheckoutItem, CheckoutVerdict, StockCheckResult
from gateway.schemas.product import StockRecord

PRODUCT_NOT_FOUND = "Product not found"
SUCCESS_MESSAGE = "All items are available. Checkout can proceed."
FAILURE_PREFIX = "The following items are out of stock or insufficient quantity: "


def index_stock_records(records: Iterable[StockRecord]) -> Dict[str, StockRecord]:
    """Key a stock batch by product id. Later duplicates replace earlier ones."""
    return {record.id: record for record in records}


def reconcile(
    items: Sequence[CheckoutItem],
    stock_records: Union[Mapping[str, StockRecord], Iterable[StockRecord]],
) -> CheckoutVerdict:
    """
    Compare requested line items against a stock snapshot.

    Results follow the order of `items`. Each line is checked against the
    snapshot figure as fetched; stock is never decremented between lines, so
    repeated product ids are judged independently. Nothing is reserved.

    Args:
        items: Validated line items (non-empty, quantity >= 1).
        stock_records: Stock batch, either keyed by product id or as a sequence.

    Returns:
        CheckoutVerdict: Per-item results plus the overall decision.
    """
    if isinstance(stock_records, Mapping):
        lookup = dict(stock_records)
    else:
        lookup = index_stock_records(stock_records)

    results: List[StockCheckResult] = []
    for item in items:
        record = lookup.get(item.product_id)
        if record is None:
            results.append(
                StockCheckResult(
                    product_id=item.product_id,
                    product_name=PRODUCT_NOT_FOUND,
                    requested_quantity=item.quantity,
                    available_stock=0,
                    is_available=False,
                )
            )
            continue

        results.append(
            StockCheckResult(
                product_id=item.product_id,
                product_name=record.name or item.product_id,
                requested_quantity=item.quantity,
                available_stock=record.available_stock,
                is_available=record.available_stock >= item.quantity,
            )
        )

    total_items = sum(item.quantity for item in items)
    failing = [result.product_name for result in results if not result.is_available]

    if failing:
        return CheckoutVerdict(
            success=False,
            message=FAILURE_PREFIX + ", ".join(failing),
            stock_check=results,
            total_items=total_items,
            can_proceed=False,
        )

    return CheckoutVerdict(
        success=True,
        message=SUCCESS_MESSAGE,
        stock_check=results,
        total_items=total_items,
        can_proceed=True,
    )
