from typing import Any, Iterable

from app.models.billing_models import AggregatedBillingData, BillingLineItem, BillingValues


def aggregate_billing_items(items: Iterable[BillingLineItem]) -> AggregatedBillingData:
    """
    Group line items by billing date, then product code.

    Each bucket sums the original amount, the four discount components and the
    per-item actual amount. Items are never deduplicated: if the API returns
    the same line twice it is counted twice.
    """
    aggregated: AggregatedBillingData = {}
    for item in items:
        products = aggregated.get(item.billing_date)
        if products is None:
            products = aggregated[item.billing_date] = {}
        bucket = products.get(item.product_key)
        if bucket is None:
            bucket = products[item.product_key] = BillingValues()
        bucket.add(item)
    return aggregated


def to_jsonable(data: AggregatedBillingData) -> dict[str, dict[str, dict[str, Any]]]:
    return {
        billing_date: {code: values.model_dump() for code, values in products.items()}
        for billing_date, products in data.items()
    }
