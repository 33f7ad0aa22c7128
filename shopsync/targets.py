from collections import namedtuple

from shopsync.exceptions import ConfigurationError
from shopsync.transforms import flatten_orders, flatten_products

SyncTarget = namedtuple('SyncTarget', ['name', 'connection', 'query', 'flatten'])

PRODUCTS_QUERY = """
query SyncProducts($first: Int!, $after: String, $sortKey: ProductSortKeys, $reverse: Boolean, $query: String) {
  products(first: $first, after: $after, sortKey: $sortKey, reverse: $reverse, query: $query) {
    edges {
      node {
        id
        title
        vendor
        productType
        tags
        handle
        createdAt
        updatedAt
        status
        descriptionHtml
        images(first: 1) {
          edges { node { url altText } }
        }
        variants(first: 50) {
          edges {
            node {
              id
              sku
              price
              inventoryQuantity
              updatedAt
              image { url altText }
              selectedOptions { name value }
              inventoryItem {
                id
                sku
                unitCost { amount currencyCode }
              }
            }
          }
          pageInfo { hasNextPage endCursor }
        }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

ORDERS_QUERY = """
query SyncOrders($first: Int!, $after: String, $sortKey: OrderSortKeys, $reverse: Boolean, $query: String) {
  orders(first: $first, after: $after, sortKey: $sortKey, reverse: $reverse, query: $query) {
    edges {
      node {
        id name email phone createdAt processedAt updatedAt note tags poNumber
        displayFinancialStatus displayFulfillmentStatus
        customer { id firstName lastName email phone }
        currencyCode
        totalPriceSet { shopMoney { amount currencyCode } }
        subtotalPriceSet { shopMoney { amount currencyCode } }
        totalShippingPriceSet { shopMoney { amount currencyCode } }
        totalTaxSet { shopMoney { amount currencyCode } }
        totalDiscountsSet { shopMoney { amount currencyCode } }
        totalRefundedSet { shopMoney { amount currencyCode } }
        lineItems(first: 50) {
          edges {
            node {
              id title variantTitle quantity sku vendor
              originalTotalSet { shopMoney { amount currencyCode } }
              discountedTotalSet { shopMoney { amount currencyCode } }
            }
          }
        }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

TARGETS = {
    'products': SyncTarget('products', 'products', PRODUCTS_QUERY, flatten_products),
    'orders': SyncTarget('orders', 'orders', ORDERS_QUERY, flatten_orders),
}


def get_target(name):
    try:
        return TARGETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown sync target {name!r}; expected one of {sorted(TARGETS)}"
        ) from None
