"""
Production inventory: finished-feed stock the Production Manager maintains.

Products are never deleted. Deactivating a product hides it from the stock
list and the production dashboard while its row stays in the table.
"""
import logging
from typing import List, Optional

from feedportal.config import DEFAULT_REORDER_LEVEL, FEED_CATEGORIES
from feedportal.errors import ValidationError
from feedportal.store import table
from feedportal.utils import now, to_number

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = 'production_products'

EDITABLE_FIELDS = ('name', 'category', 'bags', 'min_bags_stock', 'weight_per_bag', 'price_per_bag')


def _whole_number(value, field_name) -> Optional[int]:
    if value is None or str(value).strip() == '':
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a whole number", field=field_name)
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return number


def _amount(value, field_name) -> Optional[float]:
    if value is None or str(value).strip() == '':
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return number


def clean_product(data: dict, partial: bool = False) -> dict:
    """
    Validate product form data.

    With partial=True only the fields present in data are checked and
    returned, so an update can change stock without resending the name.
    """
    cleaned = {}
    if not partial or 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError("Product name is required", field='name')
        cleaned['name'] = name
    if not partial or 'category' in data:
        category = (data.get('category') or '').strip()
        if not category:
            raise ValidationError("Category is required", field='category')
        cleaned['category'] = category
    if not partial or 'bags' in data:
        bags = _whole_number(data.get('bags'), 'bags')
        if bags is not None or not partial:
            cleaned['bags'] = bags or 0
    if 'min_bags_stock' in data:
        cleaned['min_bags_stock'] = _whole_number(data.get('min_bags_stock'), 'min_bags_stock')
    for field_name in ('weight_per_bag', 'price_per_bag'):
        if field_name in data:
            cleaned[field_name] = _amount(data.get(field_name), field_name)
    return cleaned


def list_products() -> List[dict]:
    """Active products with a low-stock flag against each reorder level."""
    products = (
        table(PRODUCTS_TABLE).select('*')
        .eq('is_active', True)
        .order('name')
        .execute().data
    )
    for product in products:
        reorder_level = product.get('min_bags_stock')
        if reorder_level is None:
            reorder_level = DEFAULT_REORDER_LEVEL
        product['reorder_level'] = int(reorder_level)
        product['low_stock'] = int(to_number(product.get('bags'))) < product['reorder_level']
    return products


def get_product(product_id: str) -> Optional[dict]:
    return table(PRODUCTS_TABLE).select('*').eq('id', product_id).maybe_single()


def add_product(data: dict, actor_id: Optional[str] = None) -> dict:
    product = clean_product(data)
    # Catalogue feeds pick up their bag weight and price when the form leaves them out
    info = FEED_CATEGORIES.get(product['name'], {})
    if product.get('weight_per_bag') is None:
        product['weight_per_bag'] = info.get('weight')
    if product.get('price_per_bag') is None:
        product['price_per_bag'] = info.get('price')

    timestamp = now()
    product.update({'is_active': True, 'created_at': timestamp, 'updated_at': timestamp})
    created = table(PRODUCTS_TABLE).insert(product)[0]
    logger.info(f"Product {created['id']} ({created['name']}) added by {actor_id}")
    return created


def update_product(product_id: str, data: dict, actor_id: Optional[str] = None) -> Optional[dict]:
    """Apply edits to an active product; None when no active product has that id."""
    changes = clean_product({k: v for k, v in data.items() if k in EDITABLE_FIELDS}, partial=True)
    if not changes:
        raise ValidationError("Nothing to update")
    changes['updated_at'] = now()
    updated = table(PRODUCTS_TABLE).eq('id', product_id).eq('is_active', True).update(changes)
    if not updated:
        return None
    logger.info(f"Product {product_id} updated by {actor_id}: {sorted(changes)}")
    return get_product(product_id)


def deactivate_product(product_id: str, actor_id: Optional[str] = None) -> bool:
    updated = table(PRODUCTS_TABLE).eq('id', product_id).eq('is_active', True).update(
        {'is_active': False, 'updated_at': now()}
    )
    if updated:
        logger.info(f"Product {product_id} deactivated by {actor_id}")
    return bool(updated)
