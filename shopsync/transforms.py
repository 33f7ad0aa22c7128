import logging
import math
import re

logger = logging.getLogger(__name__)

_NUMERIC_TAIL = re.compile(r'/(\d+)$')


def numeric_id(gid):
    """'gid://shopify/ProductVariant/123' -> '123'.

    Raises ValueError when the identifier has no numeric tail.
    """
    if not isinstance(gid, str):
        raise ValueError(f"not a global id: {gid!r}")
    match = _NUMERIC_TAIL.search(gid.split('?', 1)[0])
    if not match:
        raise ValueError(f"no numeric id in {gid!r}")
    return match.group(1)


def namespaced_key(kind, gid):
    """Key that stays unique when several entity kinds share one collection."""
    return f"{kind}:{numeric_id(gid)}"


def parse_money(value):
    """Shopify sends amounts as decimal strings. Anything unparseable is None."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        amount = float(value)
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def _int_or_none(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _str_or_none(value):
    if isinstance(value, str) and value != '':
        return value
    return None


def _shop_money(money_set):
    if not isinstance(money_set, dict):
        return None
    shop_money = money_set.get('shopMoney')
    if not isinstance(shop_money, dict):
        return None
    return parse_money(shop_money.get('amount'))


def _dict(value):
    return value if isinstance(value, dict) else {}


def _list_or_none(value):
    return value if isinstance(value, list) else None


def _edges(connection):
    """Nodes of a connection, or None when the connection itself is missing."""
    if not isinstance(connection, dict) or not isinstance(connection.get('edges'), list):
        return None
    return [edge['node'] for edge in connection['edges'] if isinstance(edge, dict) and edge.get('node')]


def _image(node):
    if not isinstance(node, dict) or not node.get('url'):
        return None
    return {'src': node['url'], 'alt_text': _str_or_none(node.get('altText'))}


def flatten_products(nodes):
    """One cache record per variant, carrying a copy of its product's fields.

    Returns (records, skipped) where skipped lists human-readable reasons.
    """
    records = []
    skipped = []
    for product in nodes:
        image_nodes = _edges(product.get('images'))
        product_images = None if image_nodes is None else [img for img in map(_image, image_nodes) if img]
        product_fields = {
            'shopify_product_id': product.get('id'),
            'product_title': _str_or_none(product.get('title')),
            'product_description_html': _str_or_none(product.get('descriptionHtml')),
            'product_vendor': _str_or_none(product.get('vendor')),
            'product_type': _str_or_none(product.get('productType')),
            'product_tags': _list_or_none(product.get('tags')),
            'product_handle': _str_or_none(product.get('handle')),
            'product_status': _str_or_none(product.get('status')),
            'product_created_at': _str_or_none(product.get('createdAt')),
            'product_updated_at': _str_or_none(product.get('updatedAt')),
            'product_images': product_images,
        }

        variants = _dict(product.get('variants'))
        if _dict(variants.get('pageInfo')).get('hasNextPage'):
            logger.warning(
                "Product %s has more variants than one page holds; extra variants are not synced",
                product.get('id'),
            )

        for variant in _edges(variants) or []:
            try:
                key = numeric_id(variant.get('id'))
            except ValueError as exc:
                logger.warning("Skipping variant of product %s: %s", product.get('id'), exc)
                skipped.append(f"variant of {product.get('id')}: {exc}")
                continue

            inventory_item = _dict(variant.get('inventoryItem'))
            options = _list_or_none(variant.get('selectedOptions'))
            records.append({
                'key': key,
                'shopify_variant_id': variant['id'],
                'sku': _str_or_none(variant.get('sku')) or _str_or_none(inventory_item.get('sku')),
                'price': parse_money(variant.get('price')),
                'inventory_quantity': _int_or_none(variant.get('inventoryQuantity')),
                'cost': parse_money(_dict(inventory_item.get('unitCost')).get('amount')),
                'variant_updated_at': _str_or_none(variant.get('updatedAt')),
                'variant_image': _image(variant.get('image')),
                'selected_options': None if options is None else [
                    {'name': opt.get('name'), 'value': opt.get('value')}
                    for opt in options
                    if isinstance(opt, dict)
                ],
                **product_fields,
            })
    return records, skipped


def _line_item(node):
    return {
        'title': _str_or_none(node.get('title')),
        'variant_title': _str_or_none(node.get('variantTitle')),
        'sku': _str_or_none(node.get('sku')),
        'vendor': _str_or_none(node.get('vendor')),
        'quantity': _int_or_none(node.get('quantity')),
        'original_total': _shop_money(node.get('originalTotalSet')),
        'discounted_total': _shop_money(node.get('discountedTotalSet')),
    }


def flatten_orders(nodes):
    """One cache record per order with its line items embedded.

    Returns (records, skipped) like flatten_products.
    """
    records = []
    skipped = []
    for order in nodes:
        try:
            key = numeric_id(order.get('id'))
        except ValueError as exc:
            logger.warning("Skipping order: %s", exc)
            skipped.append(f"order: {exc}")
            continue

        customer = _dict(order.get('customer'))
        line_items = _edges(order.get('lineItems'))
        customer_name = ' '.join(
            part for part in (_str_or_none(customer.get('firstName')), _str_or_none(customer.get('lastName'))) if part
        )
        records.append({
            'key': key,
            'shopify_order_id': order['id'],
            'name': _str_or_none(order.get('name')),
            'email': _str_or_none(order.get('email')),
            'phone': _str_or_none(order.get('phone')),
            'created_at': _str_or_none(order.get('createdAt')),
            'processed_at': _str_or_none(order.get('processedAt')),
            'updated_at': _str_or_none(order.get('updatedAt')),
            'note': _str_or_none(order.get('note')),
            'tags': _list_or_none(order.get('tags')),
            'po_number': _str_or_none(order.get('poNumber')),
            'financial_status': _str_or_none(order.get('displayFinancialStatus')),
            'fulfillment_status': _str_or_none(order.get('displayFulfillmentStatus')),
            'shopify_customer_id': _str_or_none(customer.get('id')),
            'customer_name': customer_name or None,
            'customer_email': _str_or_none(customer.get('email')),
            'currency_code': _str_or_none(order.get('currencyCode')),
            'total_price': _shop_money(order.get('totalPriceSet')),
            'subtotal_price': _shop_money(order.get('subtotalPriceSet')),
            'total_shipping': _shop_money(order.get('totalShippingPriceSet')),
            'total_tax': _shop_money(order.get('totalTaxSet')),
            'total_discounts': _shop_money(order.get('totalDiscountsSet')),
            'total_refunded': _shop_money(order.get('totalRefundedSet')),
            'line_items': None if line_items is None else [_line_item(node) for node in line_items],
        })
    return records, skipped


def deduplicate(records):
    """Last occurrence of a key wins."""
    seen = {}
    for record in records:
        seen[record['key']] = record
    return list(seen.values())
