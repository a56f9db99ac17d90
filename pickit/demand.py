import pandas as pd

from .schemas import Demand, Sale


def aggregate_demand(sales: list[Sale]) -> list[Demand]:
    """
    Sums quantities per bucket: one per valid SKU and one per distinct error
    payload. Buckets come out in the order their first sale was seen.
    """
    if not sales:
        return []

    df = pd.DataFrame(
        {
            "position": range(len(sales)),
            "kind": [sale.bucket_key[0] or "" for sale in sales],
            "key": [sale.bucket_key[1] for sale in sales],
            "quantity": [sale.quantity for sale in sales],
        }
    )

    # sort=False keeps first-seen order of the groups.
    grouped = (
        df.groupby(["kind", "key"], sort=False)
        .agg(position=("position", "first"), quantity=("quantity", "sum"))
        .reset_index()
    )

    demand = []
    for row in grouped.itertuples(index=False):
        first = sales[row.position]
        demand.append(Demand(sku=first.sku, quantity=float(row.quantity), error=first.error))
    return demand
